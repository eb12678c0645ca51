"""Favour Actions — the user-facing surface: view model plus one notification per action.

Invariants:
    - The viewer is read from the identity provider once per action and not re-read
    - Phase and permissions recomputed from the latest cached favour on every view()
    - delete() on an already-deleted favour yields a success notification
    - Every FavourError becomes exactly one notification; nothing is swallowed silently
    - Errors outside the FavourError hierarchy propagate (they are bugs, not outcomes)

Design Decisions:
    - Thin coordinator: permission rules live in core/lifecycle, effects in the workflows
    - Collaborators injected explicitly (no globals): same object graph in tests and apps
"""

import logging
from dataclasses import dataclass

from favours.config import Settings
from favours.core.domain_types import FavourId, Phase
from favours.core.errors import FavourError, ResourceNotFoundError
from favours.core.evidence_path import DEFAULT_EXTENSION
from favours.core.lifecycle import Permissions, permissions_of, phase_of
from favours.core.notifications import (
    UPLOAD_RESTRICTED_HINT,
    Notification,
    delete_failed,
    delete_succeeded,
    evidence_failed,
    evidence_submitted,
    phase_banner,
)
from favours.core.repository_protocols import BlobStore, FavourApi, IdentityProvider
from favours.infrastructure.observability import configure_logging
from favours.schemas.favour import EvidenceArtifact, Favour
from favours.services.evidence_submission import Clock, submit_evidence, utc_now
from favours.services.evidence_urls import resolve_evidence_urls
from favours.services.favour_deletion import delete_favour
from favours.services.favour_store import FavourStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FavourView:
    """Everything the favour details page renders, for one viewer."""
    favour: Favour
    phase: Phase
    permissions: Permissions
    banner: str
    upload_hint: str | None
    initial_evidence_url: str | None
    evidence_url: str | None

    @property
    def reward_items(self) -> list[tuple[str, int]]:
        return list(self.favour.rewards.items())


class FavourActions:
    """Loads favours and runs the delete / upload-evidence actions for the current viewer."""

    def __init__(
        self,
        identity: IdentityProvider,
        store: FavourStore,
        api_client: FavourApi,
        blob_store: BlobStore,
        *,
        clock: Clock = utc_now,
        default_extension: str = DEFAULT_EXTENSION,
    ):
        self.identity = identity
        self.store = store
        self.api_client = api_client
        self.blob_store = blob_store
        self.clock = clock
        self.default_extension = default_extension

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        identity: IdentityProvider,
        store: FavourStore,
        api_client: FavourApi,
        blob_store: BlobStore,
    ) -> "FavourActions":
        """Build from settings; also installs the favours log handler."""
        configure_logging(settings)
        return cls(
            identity, store, api_client, blob_store,
            default_extension=settings.evidence_default_extension,
        )

    async def view(self, favour_id: FavourId) -> FavourView:
        """Load (or reuse) the cached favour and derive the page state.

        Load failures propagate; notifications.load_failed() turns them into
        the error page contents.
        """
        viewer = await self.identity.current_viewer()
        favour = await self.store.fetch(favour_id, viewer.credential)
        phase = phase_of(favour)
        permissions = permissions_of(favour, viewer)
        urls = await resolve_evidence_urls(favour, self.blob_store)
        hint = None
        if not favour.evidence and not permissions.can_upload_evidence:
            hint = UPLOAD_RESTRICTED_HINT
        return FavourView(
            favour=favour,
            phase=phase,
            permissions=permissions,
            banner=phase_banner(phase),
            upload_hint=hint,
            initial_evidence_url=urls.initial_evidence_url,
            evidence_url=urls.evidence_url,
        )

    async def delete(self, favour_id: FavourId) -> Notification:
        viewer = await self.identity.current_viewer()
        try:
            favour = await self.store.fetch(favour_id, viewer.credential)
            await delete_favour(favour, viewer, self.api_client, self.store)
        except ResourceNotFoundError:
            self.store.remove(favour_id)
            return delete_succeeded()
        except FavourError as e:
            logger.warning(
                f"Delete failed: {e.message}",
                extra={"favour_id": favour_id, "viewer_id": viewer.id,
                       "error_code": e.code},
            )
            return delete_failed(e)
        return delete_succeeded()

    async def upload_evidence(
        self, favour_id: FavourId, artifact: EvidenceArtifact,
    ) -> Notification:
        viewer = await self.identity.current_viewer()
        try:
            favour = await self.store.fetch(favour_id, viewer.credential)
            await submit_evidence(
                favour, viewer, artifact, self.blob_store, self.api_client,
                self.store, clock=self.clock,
                default_extension=self.default_extension,
            )
        except FavourError as e:
            logger.warning(
                f"Evidence submission failed: {e.message}",
                extra={"favour_id": favour_id, "viewer_id": viewer.id,
                       "error_code": e.code},
            )
            return evidence_failed(e)
        return evidence_submitted()
