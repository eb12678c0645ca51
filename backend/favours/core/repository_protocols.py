"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE the *Like protocols are never async themselves
"""

from typing import Protocol

from favours.core.domain_types import BlobPath, Credential, FavourId, UserId


class PartyLike(Protocol):
    """Structural contract for a debtor or recipient."""
    id: UserId


class FavourLike(Protocol):
    """Structural contract for favour records passed to the lifecycle evaluator.

    Lets core evaluate pydantic models, dataclasses, or test doubles alike.
    """
    id: FavourId
    debtor: PartyLike
    recipient: PartyLike
    initial_evidence: BlobPath | None
    evidence: BlobPath | None


class ViewerLike(Protocol):
    """Structural contract for the acting identity."""
    id: UserId
    credential: Credential


class IdentityProvider(Protocol):
    """Supplies the already-authenticated current viewer — implemented outside this package."""
    async def current_viewer(self) -> ViewerLike: ...


class FavourApi(Protocol):
    """Contract for the remote favour store — implemented by infrastructure."""
    async def get_favour(self, favour_id: FavourId, credential: Credential): ...
    async def delete_favour(self, favour_id: FavourId, credential: Credential) -> None: ...
    async def register_evidence(
        self, favour_id: FavourId, path: BlobPath, credential: Credential,
    ) -> dict: ...


class BlobStore(Protocol):
    """Contract for binary artifact storage — implemented by infrastructure."""
    async def put(
        self, path: BlobPath, content: bytes, content_type: str | None = None,
    ) -> None: ...
    async def resolve_download_url(self, path: BlobPath) -> str: ...
