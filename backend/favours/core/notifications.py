"""User Notifications — pure builders for the messages shown after each action.

Invariants:
    - All functions are pure (no IO, no async)
    - Failure text comes from the first structured error detail when available,
      otherwise from a generic fallback, never empty
    - Deleting an already-deleted favour is reported as success

Design Decisions:
    - Notification is a frozen dataclass: presentation decides how to render it
    - Remote error bodies follow {"errors": [{"message": ...}, ...]}; only the first
      message is surfaced, matching what the server puts first
"""

from dataclasses import dataclass
from typing import Any

from favours.core.domain_types import NotificationStatus, Phase
from favours.core.errors import FavourError

GENERIC_FAILURE = "Something went wrong..."

DELETE_SUCCESS_TITLE = "Favour deleted!"
DELETE_FAILURE_TITLE = "Unable to delete favour"
EVIDENCE_SUCCESS_TITLE = "Evidence submitted!"

PHASE_BANNERS = {
    Phase.CLAIMED: "This favour has been claimed!",
    Phase.PENDING: "This favour hasn't been completed yet.",
}
UPLOAD_RESTRICTED_HINT = "Only Debtor can upload evidence"


@dataclass(frozen=True)
class Notification:
    """Toast-style outcome of a user action."""
    status: NotificationStatus
    title: str
    description: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == NotificationStatus.SUCCESS


def extract_first_error_message(payload: Any) -> str | None:
    """First `errors[].message` in a remote error body, if any."""
    if not isinstance(payload, dict):
        return None
    errors = payload.get("errors")
    if not isinstance(errors, list) or not errors:
        return None
    first = errors[0]
    if isinstance(first, dict):
        message = first.get("message")
    else:
        message = first
    if isinstance(message, str) and message.strip():
        return message.strip()
    return None


def failure_text(error: BaseException) -> str:
    """Structured remote message, then the error's own message, then the fallback."""
    if isinstance(error, FavourError):
        return error.user_message or error.message or GENERIC_FAILURE
    return str(error) or GENERIC_FAILURE


def phase_banner(phase: Phase) -> str:
    return PHASE_BANNERS[phase]


# --- Deletion -----------------------------------------------------------------

def delete_succeeded() -> Notification:
    return Notification(NotificationStatus.SUCCESS, DELETE_SUCCESS_TITLE)


def delete_failed(error: BaseException) -> Notification:
    """Failure keeps a fixed title; the detail goes in the description."""
    if isinstance(error, FavourError) and error.user_message:
        description = error.user_message
    else:
        description = GENERIC_FAILURE
    return Notification(NotificationStatus.ERROR, DELETE_FAILURE_TITLE, description)


# --- Evidence -----------------------------------------------------------------

def evidence_submitted() -> Notification:
    return Notification(NotificationStatus.SUCCESS, EVIDENCE_SUCCESS_TITLE)


def evidence_failed(error: BaseException) -> Notification:
    """Failure title is the error text itself."""
    return Notification(NotificationStatus.ERROR, failure_text(error))


# --- Page load ----------------------------------------------------------------

@dataclass(frozen=True)
class LoadFailure:
    """What to show when the favour itself cannot be loaded."""
    status_code: int
    message: str


def load_failed(error: BaseException) -> LoadFailure:
    if isinstance(error, FavourError):
        status = error.context.status_code or error.http_status
        return LoadFailure(status, failure_text(error))
    return LoadFailure(500, failure_text(error))
