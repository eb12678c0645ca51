"""Evidence URLs — lazy resolution of blob references into renderable URLs.

Invariants:
    - URLs are never stored on the favour; they are resolved on demand from
      favour.initial_evidence / favour.evidence
    - Absent references resolve to None without touching the blob store
    - A reference that fails to resolve yields None for that slot only (logged)

Design Decisions:
    - Both references resolved concurrently: independent reads against the blob store
"""

import asyncio
import logging
from dataclasses import dataclass

from favours.core.domain_types import BlobPath
from favours.core.repository_protocols import BlobStore
from favours.schemas.favour import Favour

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvidenceUrls:
    initial_evidence_url: str | None = None
    evidence_url: str | None = None


async def resolve_evidence_urls(favour: Favour, blob_store: BlobStore) -> EvidenceUrls:
    initial, claim = await asyncio.gather(
        _resolve(favour, favour.initial_evidence, blob_store),
        _resolve(favour, favour.evidence, blob_store),
    )
    return EvidenceUrls(initial_evidence_url=initial, evidence_url=claim)


async def _resolve(
    favour: Favour, path: BlobPath | None, blob_store: BlobStore,
) -> str | None:
    if not path:
        return None
    try:
        return await blob_store.resolve_download_url(path)
    except Exception as e:
        logger.warning(
            f"Could not resolve evidence URL: {e}",
            extra={"favour_id": favour.id, "storage_path": path},
        )
        return None
