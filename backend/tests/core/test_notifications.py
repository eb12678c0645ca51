"""Notification tests — user-facing outcome text for each action.

Tests cover:
    - First structured error message extracted from {"errors": [...]} bodies
    - Delete failure: fixed title, detail or generic fallback in description
    - Evidence failure: title is structured message, else error message, else fallback
    - Phase banners and load-failure page contents
"""

from favours.core.domain_types import NotificationStatus, Phase
from favours.core.errors import (
    ErrorContext,
    ResourceNotFoundError,
    StorageFailureError,
    TransportError,
)
from favours.core.notifications import (
    DELETE_FAILURE_TITLE,
    GENERIC_FAILURE,
    delete_failed,
    delete_succeeded,
    evidence_failed,
    evidence_submitted,
    extract_first_error_message,
    load_failed,
    phase_banner,
)


# --- extract_first_error_message ----------------------------------------------

def test_extracts_first_message():
    body = {"errors": [{"message": "Favour not found"}, {"message": "second"}]}
    assert extract_first_error_message(body) == "Favour not found"


def test_extracts_plain_string_entries():
    assert extract_first_error_message({"errors": ["bad token"]}) == "bad token"


def test_no_message_for_unstructured_bodies():
    assert extract_first_error_message(None) is None
    assert extract_first_error_message("oops") is None
    assert extract_first_error_message({"errors": []}) is None
    assert extract_first_error_message({"errors": [{"message": "  "}]}) is None
    assert extract_first_error_message({"detail": "x"}) is None


# --- Deletion -----------------------------------------------------------------

def test_delete_success():
    n = delete_succeeded()
    assert n.ok
    assert n.title == "Favour deleted!"


def test_delete_failure_uses_remote_message():
    error = TransportError(
        "HTTP 500", "delete",
        context=ErrorContext(user_message="Database unavailable"),
    )
    n = delete_failed(error)
    assert n.status == NotificationStatus.ERROR
    assert n.title == DELETE_FAILURE_TITLE
    assert n.description == "Database unavailable"


def test_delete_failure_falls_back_to_generic():
    n = delete_failed(TransportError("connection refused", "delete"))
    assert n.description == GENERIC_FAILURE


# --- Evidence -----------------------------------------------------------------

def test_evidence_success():
    n = evidence_submitted()
    assert n.ok
    assert n.title == "Evidence submitted!"


def test_evidence_failure_prefers_remote_message():
    error = StorageFailureError(
        "HTTP 413", "favours/x/evidence.png",
        context=ErrorContext(user_message="File too large"),
    )
    assert evidence_failed(error).title == "File too large"


def test_evidence_failure_uses_error_message():
    error = StorageFailureError("quota exceeded", "favours/x/evidence.png")
    title = evidence_failed(error).title
    assert "quota exceeded" in title
    assert not evidence_failed(error).ok


def test_evidence_failure_for_foreign_exception_without_text():
    assert evidence_failed(RuntimeError()).title == GENERIC_FAILURE


# --- Page state ---------------------------------------------------------------

def test_phase_banners():
    assert phase_banner(Phase.CLAIMED) == "This favour has been claimed!"
    assert phase_banner(Phase.PENDING) == "This favour hasn't been completed yet."


def test_load_failure_carries_status_and_message():
    failure = load_failed(ResourceNotFoundError("Favour", "f9"))
    assert failure.status_code == 404
    assert failure.message == "Favour 'f9' not found"


def test_load_failure_prefers_remote_status_code():
    error = TransportError(
        "HTTP 418", "fetch",
        context=ErrorContext(status_code=418, user_message="teapot"),
    )
    failure = load_failed(error)
    assert failure.status_code == 418
    assert failure.message == "teapot"
