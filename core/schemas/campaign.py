"""
Schemas - Campaign Artifacts
File: campaign.py

Purpose: Serializable records produced by a tree build.
- RecipientEntry: one input row (wallet, amount, optional secret)
- ClaimTicket: everything one recipient needs to claim, delivered out-of-band
- CampaignManifest: the authority's record of the tree (no secrets)

All byte values are lowercase unprefixed hex. Amounts are serialized as
decimal strings so u64 values survive JSON consumers that use doubles.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


HEX32_PATTERN = r"^[0-9a-f]{64}$"

MANIFEST_VERSION = "1"


def _parse_amount(value: Any) -> Any:
    # Accept "1000" as well as 1000; reject floats so no precision is lost
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise ValueError(f"Amount must be a non-negative integer string, got {value!r}")
        return int(value)
    if isinstance(value, float):
        raise ValueError("Amount must be an integer number of base units, not a float")
    return value


class RecipientEntry(BaseModel):
    """One recipient row as read from an input file."""

    model_config = ConfigDict(extra="forbid")

    wallet: str = Field(..., description="Base58 wallet public key", min_length=1)
    amount: int = Field(..., description="Allocation in smallest units", ge=0, le=(1 << 64) - 1)
    secret: str | None = Field(default=None, description="32-byte secret (hex)", pattern=HEX32_PATTERN)

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, value: Any) -> Any:
        return _parse_amount(value)

    @field_serializer("amount")
    def serialize_amount(self, amount: int) -> str:
        return str(amount)


class ClaimTicket(BaseModel):
    """
    Private claim material for one recipient.

    Contains the secret, so it must only be delivered to the recipient.
    """

    model_config = ConfigDict(extra="forbid")

    version: str = Field(default=MANIFEST_VERSION)
    provider: str = Field(..., description="Hash provider the tree was built with")
    depth: int = Field(..., ge=1, le=32)
    root: str = Field(..., pattern=HEX32_PATTERN)
    wallet: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0, le=(1 << 64) - 1)
    secret: str = Field(..., pattern=HEX32_PATTERN)
    leaf_index: int = Field(..., ge=0)
    leaf: str = Field(..., pattern=HEX32_PATTERN)
    siblings: list[str] = Field(..., description="Sibling path, leaf-to-root")
    nullifier: str = Field(..., pattern=HEX32_PATTERN)

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, value: Any) -> Any:
        return _parse_amount(value)

    @field_serializer("amount")
    def serialize_amount(self, amount: int) -> str:
        return str(amount)

    @field_validator("siblings")
    @classmethod
    def check_siblings(cls, siblings: list[str]) -> list[str]:
        for sibling in siblings:
            if len(sibling) != 64 or any(c not in "0123456789abcdef" for c in sibling):
                raise ValueError(f"Sibling is not 32-byte lowercase hex: {sibling[:16]}...")
        return siblings


class ManifestRecipient(BaseModel):
    """Public per-leaf record in a manifest (no secret)."""

    model_config = ConfigDict(extra="forbid")

    leaf_index: int = Field(..., ge=0)
    wallet: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0, le=(1 << 64) - 1)

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, value: Any) -> Any:
        return _parse_amount(value)

    @field_serializer("amount")
    def serialize_amount(self, amount: int) -> str:
        return str(amount)


class CampaignManifest(BaseModel):
    """
    The campaign authority's record of a built tree.

    Holds enough to rebuild the tree and serve proofs, and nothing that
    lets anyone derive a nullifier.
    """

    model_config = ConfigDict(extra="forbid")

    version: str = Field(default=MANIFEST_VERSION)
    provider: str = Field(..., description="Hash provider the tree was built with")
    depth: int = Field(..., ge=1, le=32)
    root: str = Field(..., pattern=HEX32_PATTERN)
    leaves: list[str] = Field(..., description="Real (unpadded) leaves in index order")
    recipients: list[ManifestRecipient] = Field(default_factory=list)
    total_amount: int = Field(default=0, ge=0)

    @field_validator("total_amount", mode="before")
    @classmethod
    def parse_total(cls, value: Any) -> Any:
        return _parse_amount(value)

    @field_serializer("total_amount")
    def serialize_total(self, total: int) -> str:
        return str(total)

    @property
    def capacity(self) -> int:
        return 1 << self.depth
