"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - FavourId, UserId wrap opaque strings assigned by the remote store
    - BlobPath is a storage-relative path, never a URL
    - Phase has exactly two members; it is derived, never stored

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

FavourId = NewType("FavourId", str)
UserId = NewType("UserId", str)


# ─── Value Types ─────────────────────────────────────────────────

BlobPath = NewType("BlobPath", str)            # favours/{debtor}_{recipient}_{ts}/evidence.<ext>
Credential = NewType("Credential", str)        # bearer access token


# ─── Enums ───────────────────────────────────────────────────────

class Phase(str, Enum):
    """Favour lifecycle phase, a function of evidence presence only."""
    PENDING = "pending"
    CLAIMED = "claimed"


class FavourAction(str, Enum):
    """Mutating actions gated by permissions."""
    UPLOAD_EVIDENCE = "upload_evidence"
    DELETE = "delete"


class NotificationStatus(str, Enum):
    """User-facing notification outcome."""
    SUCCESS = "success"
    ERROR = "error"
