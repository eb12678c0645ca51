"""Favour Store — client-side cache of favour records with de-duplicated fetches.

Invariants:
    - One cached value per favour id; concurrent fetches for one id share one request
    - invalidate_with() merges a patch into the cached value WITHOUT a round trip and
      notifies subscribers; the patched value is not flagged as unverified
    - invalidate_with() never touches identity fields (id, debtor, recipient,
      initial_evidence) and never clears evidence once it is set
    - remove() drops the cached value and notifies subscribers with None
    - A caller cancelling its await never cancels the shared in-flight request
    - Fetch failures propagate to every waiting caller and leave the cache untouched

Design Decisions:
    - fetch() and invalidate_with() are NOT serialized against each other: a fetch
      response that lands after an optimistic patch overwrites it with whatever the
      remote returned (last writer wins, single writer per field assumed)
    - Subscriber callbacks are synchronous; a failing subscriber is logged and does
      not prevent the cache write or the remaining notifications
"""

import asyncio
import logging
from typing import Callable

from favours.core.domain_types import Credential, FavourId
from favours.core.errors import ErrorContext, InvalidFavourError
from favours.core.repository_protocols import FavourApi
from favours.schemas.favour import Favour

logger = logging.getLogger(__name__)

Subscriber = Callable[[FavourId, Favour | None], None]

_IMMUTABLE_KEYS = frozenset({
    "id", "_id", "debtor", "recipient", "initial_evidence", "initialEvidence",
})


class FavourStore:
    """Key-value cache with two entry points: fetch (remote truth) and invalidate_with (local patch)."""

    def __init__(self, api: FavourApi):
        self._api = api
        self._cache: dict[FavourId, Favour] = {}
        self._in_flight: dict[FavourId, asyncio.Future] = {}
        self._subscribers: dict[FavourId, list[Subscriber]] = {}

    def get(self, favour_id: FavourId) -> Favour | None:
        """Cached snapshot, or None. Never does IO."""
        return self._cache.get(favour_id)

    def is_loading(self, favour_id: FavourId) -> bool:
        return favour_id in self._in_flight

    async def fetch(self, favour_id: FavourId, credential: Credential) -> Favour:
        """Cached favour if present, otherwise load it (sharing any in-flight request)."""
        cached = self._cache.get(favour_id)
        if cached is not None:
            return cached
        return await self.revalidate(favour_id, credential)

    async def revalidate(self, favour_id: FavourId, credential: Credential) -> Favour:
        """Force a remote read; joins the in-flight request for this id if one exists."""
        future = self._in_flight.get(favour_id)
        if future is None:
            future = asyncio.ensure_future(self._load(favour_id, credential))
            self._in_flight[favour_id] = future
            future.add_done_callback(
                lambda done, fid=favour_id: self._forget(fid, done),
            )
        return await asyncio.shield(future)

    def invalidate_with(self, favour_id: FavourId, patch: dict) -> Favour | None:
        """Optimistically merge patch into the cached favour. None if nothing is cached."""
        cached = self._cache.get(favour_id)
        if cached is None:
            logger.warning(
                "Optimistic patch skipped: favour not cached",
                extra={"favour_id": favour_id},
            )
            return None
        _check_patch(favour_id, cached, patch)
        patched = cached.merged(patch)
        self._cache[favour_id] = patched
        logger.info(
            f"Optimistic patch applied: {sorted(patch)}",
            extra={"favour_id": favour_id},
        )
        self._notify(favour_id, patched)
        return patched

    def remove(self, favour_id: FavourId) -> None:
        """Drop the favour from the cache entirely."""
        self._cache.pop(favour_id, None)
        self._notify(favour_id, None)

    def subscribe(self, favour_id: FavourId, callback: Subscriber) -> Callable[[], None]:
        """Register for updates to one favour. Returns an unsubscribe callable."""
        subscribers = self._subscribers.setdefault(favour_id, [])
        subscribers.append(callback)

        def unsubscribe() -> None:
            current = self._subscribers.get(favour_id)
            if current and callback in current:
                current.remove(callback)
                if not current:
                    del self._subscribers[favour_id]

        return unsubscribe

    async def _load(self, favour_id: FavourId, credential: Credential) -> Favour:
        favour = await self._api.get_favour(favour_id, credential)
        self._cache[favour_id] = favour
        self._notify(favour_id, favour)
        return favour

    def _forget(self, favour_id: FavourId, done: asyncio.Future) -> None:
        if self._in_flight.get(favour_id) is done:
            del self._in_flight[favour_id]
        # Mark the result retrieved: every awaiting caller may have gone away.
        if not done.cancelled():
            done.exception()

    def _notify(self, favour_id: FavourId, favour: Favour | None) -> None:
        for callback in list(self._subscribers.get(favour_id, ())):
            try:
                callback(favour_id, favour)
            except Exception as e:
                logger.error(
                    f"Favour subscriber failed: {e}",
                    exc_info=True,
                    extra={"favour_id": favour_id},
                )


def _check_patch(favour_id: FavourId, cached: Favour, patch: dict) -> None:
    """Reject patches that rewrite identity fields or clear recorded evidence."""
    touched = sorted(_IMMUTABLE_KEYS.intersection(patch))
    if touched:
        raise InvalidFavourError(
            f"patch may not change {', '.join(touched)}",
            context=ErrorContext(favour_id=favour_id),
        )
    if cached.evidence and "evidence" in patch:
        value = patch["evidence"]
        if not (isinstance(value, str) and value.strip()):
            raise InvalidFavourError(
                "patch may not clear recorded evidence",
                context=ErrorContext(favour_id=favour_id),
            )
