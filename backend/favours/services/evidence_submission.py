"""Evidence Submission — upload an artifact, register it on the favour, patch the cache.

Invariants:
    - Permission re-derived at call time from the latest cached favour (ForbiddenError)
    - Registration NEVER starts before the upload has completed successfully
    - Upload failure → StorageFailureError; no remote mutation, favour stays pending
    - Registration failure → RegistrationFailureError; the stored blob is orphaned and
      the favour stays pending, so the whole workflow can be re-invoked
    - Cache patched with {"evidence": path} only after the remote accepted the path

Design Decisions:
    - No automatic retry of partial success: a retry re-uploads to a fresh path rather
      than registering a path whose upload was never confirmed in this invocation
    - Orphaned blobs are an accepted risk; the path is logged for later cleanup
    - Clock injected: path uniqueness relies on a fresh timestamp per call
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from favours.core.domain_types import BlobPath, FavourAction
from favours.core.errors import (
    ErrorContext,
    FavourError,
    ForbiddenError,
    RegistrationFailureError,
    StorageFailureError,
    TransportError,
)
from favours.core.evidence_path import (
    DEFAULT_EXTENSION,
    build_evidence_path,
    evidence_extension,
)
from favours.core.lifecycle import check_action, phase_of
from favours.core.repository_protocols import BlobStore, FavourApi
from favours.schemas.favour import EvidenceArtifact, Favour, Viewer
from favours.services.favour_store import FavourStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EvidenceSubmission:
    """Outcome of a successful submission."""
    favour: Favour
    path: BlobPath


async def submit_evidence(
    favour: Favour,
    viewer: Viewer,
    artifact: EvidenceArtifact,
    blob_store: BlobStore,
    api_client: FavourApi,
    store: FavourStore,
    *,
    clock: Clock = utc_now,
    default_extension: str = DEFAULT_EXTENSION,
) -> EvidenceSubmission:
    """Run the upload-then-register workflow for one artifact."""
    current = store.get(favour.id) or favour
    context = ErrorContext(favour_id=current.id, viewer_id=viewer.id)

    denied = check_action(current, viewer, FavourAction.UPLOAD_EVIDENCE)
    if denied:
        context.user_message = denied["message"]
        logger.warning(
            f"Evidence upload refused: {denied['message']}",
            extra={
                "favour_id": current.id, "viewer_id": viewer.id,
                "phase": phase_of(current).value, "error_code": "FORBIDDEN",
            },
        )
        raise ForbiddenError(denied["action"], denied["message"], context=context)

    extension = evidence_extension(
        artifact.filename, artifact.content_type, default_extension,
    )
    path = build_evidence_path(
        current.debtor.id, current.recipient.id, clock(), extension,
    )

    await _upload(path, artifact, blob_store, context)
    await _register(current, viewer, path, api_client, context)

    patched = store.invalidate_with(current.id, {"evidence": path})
    if patched is None:
        patched = current.merged({"evidence": path})
    logger.info(
        "Evidence submitted",
        extra={
            "favour_id": current.id, "viewer_id": viewer.id,
            "storage_path": path, "phase": phase_of(patched).value,
        },
    )
    return EvidenceSubmission(favour=patched, path=path)


async def _upload(
    path: BlobPath,
    artifact: EvidenceArtifact,
    blob_store: BlobStore,
    context: ErrorContext,
) -> None:
    """Step 1 of 2: durable upload. Anything that goes wrong is a storage failure."""
    try:
        await blob_store.put(path, artifact.content, artifact.content_type)
    except StorageFailureError as e:
        logger.error(
            f"Evidence upload failed: {e.message}",
            extra={"favour_id": context.favour_id, "storage_path": path,
                   "error_code": e.code},
        )
        raise
    except Exception as e:
        logger.error(
            f"Evidence upload failed: {e}",
            exc_info=True,
            extra={"favour_id": context.favour_id, "storage_path": path},
        )
        raise StorageFailureError(str(e) or type(e).__name__, path, context=context) from e


async def _register(
    favour: Favour,
    viewer: Viewer,
    path: BlobPath,
    api_client: FavourApi,
    context: ErrorContext,
) -> None:
    """Step 2 of 2: point the remote record at the stored blob."""
    try:
        await api_client.register_evidence(favour.id, path, viewer.credential)
    except Exception as e:
        if isinstance(e, FavourError):
            cause = e
        else:
            cause = TransportError(
                str(e) or type(e).__name__, "register_evidence",
                context=ErrorContext(favour_id=favour.id),
            )
        logger.error(
            f"Evidence registration failed, blob orphaned: {cause.message}",
            extra={"favour_id": favour.id, "storage_path": path,
                   "error_code": cause.code},
        )
        raise RegistrationFailureError(path, cause, context=context) from e
