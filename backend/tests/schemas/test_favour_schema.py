"""Favour schema tests — wire parsing and field-level validation.

Tests cover:
    - Remote field names (_id, initialEvidence) and snake_case both accepted
    - debtor and recipient must differ
    - Reward quantities must be positive; empty rewards allowed
    - Blank evidence normalizes to None
    - merged() re-validates and leaves the original untouched
"""

import pytest
from pydantic import ValidationError

from favours.schemas.favour import (
    EvidenceArtifact,
    EvidenceRegistration,
    Favour,
    Viewer,
)

PATH = "favours/u1_u2_2020-10-17T09:30:00.000Z/evidence.png"


def _record(**overrides) -> dict:
    record = {
        "_id": "f1",
        "debtor": {"_id": "u1", "name": "Debbie", "avatar": "x.png"},
        "recipient": {"_id": "u2"},
        "rewards": {"coffee": 2},
        "initialEvidence": "favours/initial.png",
    }
    record.update(overrides)
    return record


def test_parses_wire_record():
    favour = Favour.model_validate(_record())
    assert favour.id == "f1"
    assert favour.debtor.id == "u1"
    assert favour.debtor.name == "Debbie"
    assert favour.recipient.id == "u2"
    assert favour.rewards == {"coffee": 2}
    assert favour.initial_evidence == "favours/initial.png"
    assert favour.evidence is None


def test_accepts_snake_case_names():
    favour = Favour.model_validate({
        "id": "f1", "debtor": {"id": "u1"}, "recipient": {"id": "u2"},
        "initial_evidence": None,
    })
    assert favour.rewards == {}


def test_rejects_same_debtor_and_recipient():
    with pytest.raises(ValidationError, match="different users"):
        Favour.model_validate(_record(recipient={"_id": "u1"}))


def test_rejects_non_positive_rewards():
    with pytest.raises(ValidationError, match="positive"):
        Favour.model_validate(_record(rewards={"coffee": 0}))


def test_blank_evidence_is_absent():
    favour = Favour.model_validate(_record(evidence="  "))
    assert favour.evidence is None


def test_merged_applies_patch_without_mutating():
    favour = Favour.model_validate(_record())
    patched = favour.merged({"evidence": PATH})
    assert patched.evidence == PATH
    assert favour.evidence is None
    assert patched.debtor == favour.debtor


def test_merged_accepts_wire_names():
    favour = Favour.model_validate(_record())
    patched = favour.merged({"initialEvidence": None})
    assert patched.initial_evidence is None


def test_favour_is_frozen():
    favour = Favour.model_validate(_record())
    with pytest.raises(ValidationError):
        favour.evidence = PATH


def test_viewer_hides_credential_in_repr():
    viewer = Viewer(id="u1", credential="secret-token")
    assert "secret-token" not in repr(viewer)


def test_artifact_rejects_empty_content():
    with pytest.raises(ValidationError):
        EvidenceArtifact(content=b"", filename="x.png")


def test_registration_body():
    assert EvidenceRegistration(evidence=PATH).model_dump() == {"evidence": PATH}
