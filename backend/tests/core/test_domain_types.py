"""Domain Types — verifies rich type definitions and enum values.

Tests:
    - NewType wrappers are transparent strings
    - Phase has exactly two members (no other derived states exist)
    - Enums serialize to their string values
"""

from favours.core.domain_types import (
    BlobPath, Credential, FavourId, UserId,
    FavourAction, NotificationStatus, Phase,
)


def test_identity_types_wrap_str():
    assert FavourId("f1") == "f1"
    assert UserId("u1") == "u1"
    assert BlobPath("favours/a/evidence.png") == "favours/a/evidence.png"
    assert Credential("tok") == "tok"


def test_phase_has_exactly_two_states():
    assert set(Phase) == {Phase.PENDING, Phase.CLAIMED}


def test_enum_values():
    assert Phase.CLAIMED.value == "claimed"
    assert FavourAction.UPLOAD_EVIDENCE.value == "upload_evidence"
    assert FavourAction.DELETE.value == "delete"
    assert NotificationStatus.SUCCESS.value == "success"


def test_str_enums_compare_to_strings():
    assert Phase.PENDING == "pending"
    assert NotificationStatus.ERROR == "error"
