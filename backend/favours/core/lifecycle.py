"""Lifecycle Evaluator — derives phase and viewer permissions from a favour record.

Invariants:
    - All functions are PURE: no IO, no async, no caching, no side effects
    - Total over any structurally valid favour/viewer pair; never raises
      (check_* guards return an error dict instead)
    - phase_of is CLAIMED iff evidence is non-empty
    - can_upload_evidence = viewer is debtor AND evidence absent
    - can_delete = viewer is recipient OR (viewer is debtor AND phase is CLAIMED)

Design Decisions:
    - Permissions recomputed on every read, never stored on the record or memoized
      across record versions: the latest cached favour is the only input
    - Guards return dicts (not exceptions), keeping the evaluator total;
      workflows in services/ turn a guard failure into ForbiddenError
"""

from dataclasses import dataclass

from favours.core.domain_types import FavourAction, Phase
from favours.core.repository_protocols import FavourLike, ViewerLike


@dataclass(frozen=True)
class Permissions:
    """Actions a viewer may take on one version of a favour."""
    can_upload_evidence: bool
    can_delete: bool


# --- Phase --------------------------------------------------------------------

def phase_of(favour: FavourLike) -> Phase:
    """CLAIMED once evidence is set, PENDING otherwise."""
    if favour.evidence:
        return Phase.CLAIMED
    return Phase.PENDING


# --- Roles --------------------------------------------------------------------

def is_debtor(favour: FavourLike, viewer: ViewerLike) -> bool:
    return viewer.id == favour.debtor.id


def is_recipient(favour: FavourLike, viewer: ViewerLike) -> bool:
    return viewer.id == favour.recipient.id


# --- Permissions --------------------------------------------------------------

def permissions_of(favour: FavourLike, viewer: ViewerLike) -> Permissions:
    """Compute the viewer's permissions against this exact favour version."""
    claimed = phase_of(favour) == Phase.CLAIMED
    debtor = is_debtor(favour, viewer)
    return Permissions(
        can_upload_evidence=debtor and not claimed,
        can_delete=is_recipient(favour, viewer) or (debtor and claimed),
    )


def check_can_upload_evidence(favour: FavourLike, viewer: ViewerLike) -> dict | None:
    """Guard for evidence submission. None when permitted."""
    if permissions_of(favour, viewer).can_upload_evidence:
        return None
    if not is_debtor(favour, viewer):
        return _error(FavourAction.UPLOAD_EVIDENCE, "Only the debtor can upload evidence.")
    return _error(FavourAction.UPLOAD_EVIDENCE, "Evidence has already been submitted.")


def check_can_delete(favour: FavourLike, viewer: ViewerLike) -> dict | None:
    """Guard for deletion. None when permitted."""
    if permissions_of(favour, viewer).can_delete:
        return None
    if is_debtor(favour, viewer):
        return _error(
            FavourAction.DELETE,
            "The debtor can only delete a favour after it has been claimed.",
        )
    return _error(FavourAction.DELETE, "Only the debtor or recipient can delete a favour.")


def check_action(
    favour: FavourLike, viewer: ViewerLike, action: FavourAction,
) -> dict | None:
    """Dispatch to the guard for the given action."""
    if action == FavourAction.UPLOAD_EVIDENCE:
        return check_can_upload_evidence(favour, viewer)
    return check_can_delete(favour, viewer)


# --- Helper -------------------------------------------------------------------

def _error(action: FavourAction, message: str) -> dict:
    """Construct a standard guard error dict."""
    return {
        "status": "error",
        "error_code": "FORBIDDEN",
        "action": action.value,
        "message": message,
    }
