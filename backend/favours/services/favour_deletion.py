"""Favour Deletion — authorized remote delete followed by cache removal.

Invariants:
    - Permission re-derived at call time from the latest cached favour (ForbiddenError)
    - Cache entry removed only after the remote confirmed the delete, or reported the
      favour already gone (ResourceNotFoundError is still raised to the caller)
    - Transport/Unauthorized failures leave the cache untouched

Design Decisions:
    - No soft delete: deletion is irreversible at this layer
    - NotFound re-raised rather than converted: the caller decides that an
      already-deleted favour counts as success
"""

import logging

from favours.core.domain_types import FavourAction
from favours.core.errors import ErrorContext, ForbiddenError, ResourceNotFoundError
from favours.core.lifecycle import check_action, phase_of
from favours.core.repository_protocols import FavourApi
from favours.schemas.favour import Favour, Viewer
from favours.services.favour_store import FavourStore

logger = logging.getLogger(__name__)


async def delete_favour(
    favour: Favour,
    viewer: Viewer,
    api_client: FavourApi,
    store: FavourStore,
) -> None:
    """Delete the favour remotely, then drop it from the cache."""
    current = store.get(favour.id) or favour

    denied = check_action(current, viewer, FavourAction.DELETE)
    if denied:
        logger.warning(
            f"Favour deletion refused: {denied['message']}",
            extra={
                "favour_id": current.id, "viewer_id": viewer.id,
                "phase": phase_of(current).value, "error_code": "FORBIDDEN",
            },
        )
        raise ForbiddenError(
            denied["action"], denied["message"],
            context=ErrorContext(
                favour_id=current.id, viewer_id=viewer.id,
                user_message=denied["message"],
            ),
        )

    try:
        await api_client.delete_favour(current.id, viewer.credential)
    except ResourceNotFoundError:
        store.remove(current.id)
        logger.info(
            "Favour already deleted",
            extra={"favour_id": current.id, "viewer_id": viewer.id},
        )
        raise

    store.remove(current.id)
    logger.info(
        "Favour deleted",
        extra={"favour_id": current.id, "viewer_id": viewer.id},
    )
