"""Favour Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - debtor.id != recipient.id
    - rewards quantities are positive integers; the mapping may be empty
    - Empty evidence strings normalize to None (absent means "not yet claimed")
    - Models are frozen: cache updates produce new instances via merged()

Design Decisions:
    - Field aliases accept the remote's "_id" / "initialEvidence" names while Python
      code uses snake_case; populate_by_name keeps both spellings valid
    - extra="ignore": the remote may send display fields we never read
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from favours.core.domain_types import BlobPath, Credential, FavourId, UserId


class Party(BaseModel):
    """Debtor or recipient. Only the id matters to the lifecycle rules."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: UserId = Field(alias="_id", min_length=1)
    name: str | None = None
    email: str | None = None


class Favour(BaseModel):
    """Remote-owned favour record as cached on the client."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: FavourId = Field(alias="_id", min_length=1)
    debtor: Party
    recipient: Party
    rewards: dict[str, int] = Field(default_factory=dict)
    initial_evidence: BlobPath | None = Field(None, alias="initialEvidence")
    evidence: BlobPath | None = None

    @field_validator("rewards")
    @classmethod
    def rewards_positive(cls, v: dict[str, int]) -> dict[str, int]:
        for kind, quantity in v.items():
            if quantity <= 0:
                raise ValueError(f"reward '{kind}' must have a positive quantity")
        return v

    @field_validator("initial_evidence", "evidence", mode="before")
    @classmethod
    def blank_evidence_is_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def parties_distinct(self):
        if self.debtor.id == self.recipient.id:
            raise ValueError("debtor and recipient must be different users")
        return self

    def merged(self, patch: dict) -> "Favour":
        """New favour with patch applied, re-validated. Patch keys may use aliases."""
        data = self.model_dump()
        for key, value in patch.items():
            data[_FIELD_NAMES.get(key, key)] = value
        return Favour.model_validate(data)


_FIELD_NAMES = {"_id": "id", "initialEvidence": "initial_evidence"}


class Viewer(BaseModel):
    """Acting identity for one workflow invocation."""
    model_config = ConfigDict(frozen=True)

    id: UserId = Field(min_length=1)
    credential: Credential = Field(repr=False)


class EvidenceArtifact(BaseModel):
    """Binary evidence selected by the debtor."""
    model_config = ConfigDict(frozen=True)

    content: bytes = Field(repr=False)
    filename: str | None = None
    content_type: str | None = None

    @field_validator("content")
    @classmethod
    def content_not_empty(cls, v: bytes) -> bytes:
        if not v:
            raise ValueError("evidence artifact cannot be empty")
        return v


class EvidenceRegistration(BaseModel):
    """Body of POST /favours/{id}/evidence."""
    evidence: BlobPath = Field(min_length=1)
