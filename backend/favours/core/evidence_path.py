"""Evidence Paths — deterministic blob storage paths for submitted evidence.

Invariants:
    - Path is a pure function of (debtor id, recipient id, timestamp, extension)
    - Layout: favours/{debtorId}_{recipientId}_{ISO-timestamp}/evidence.<ext>
    - Timestamps are rendered in UTC with millisecond precision and a trailing "Z"
    - Extension is lowercase, without the dot, and never empty

Design Decisions:
    - Caller supplies the timestamp (clock lives in the shell): a fresh timestamp per
      submission keeps repeated uploads for one pair from overwriting each other
    - Extension from filename first, then content type, then the configured default
"""

import posixpath
from datetime import datetime, timezone

from favours.core.domain_types import BlobPath, UserId

EVIDENCE_ROOT = "favours"
EVIDENCE_STEM = "evidence"
DEFAULT_EXTENSION = "png"

_CONTENT_TYPE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/heic": "heic",
    "image/svg+xml": "svg",
    "application/pdf": "pdf",
    "video/mp4": "mp4",
}


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp, e.g. 2020-10-17T09:30:00.123Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def evidence_extension(
    filename: str | None,
    content_type: str | None,
    default: str = DEFAULT_EXTENSION,
) -> str:
    """Pick the file extension for an evidence artifact."""
    if filename:
        _, ext = posixpath.splitext(filename.replace("\\", "/"))
        ext = ext.lstrip(".").lower()
        if ext and ext.isalnum():
            return ext
    if content_type:
        mime = content_type.split(";", 1)[0].strip().lower()
        if mime in _CONTENT_TYPE_EXTENSIONS:
            return _CONTENT_TYPE_EXTENSIONS[mime]
    return default.lstrip(".").lower() or DEFAULT_EXTENSION


def build_evidence_path(
    debtor_id: UserId,
    recipient_id: UserId,
    moment: datetime,
    extension: str = DEFAULT_EXTENSION,
) -> BlobPath:
    """Storage path for one evidence submission."""
    folder = f"{debtor_id}_{recipient_id}_{format_timestamp(moment)}"
    ext = extension.lstrip(".").lower() or DEFAULT_EXTENSION
    return BlobPath(f"{EVIDENCE_ROOT}/{folder}/{EVIDENCE_STEM}.{ext}")
