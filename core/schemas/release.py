"""
Module 01 - Schemas
File: release.py

Purpose: Recipients, leaf proofs, builder artifacts and ledger deposits.
These schemas define the contract between the commitment builder,
the artifact store, the ledger and the watcher.

Wire format: artifacts are serialized with camelCase aliases
(root, proofs[].recipient/amount/releaseTime/proof, totalGrossAmount, ...).
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.crypto.hashing import UINT_MAX, normalize_account, normalize_digest


class Recipient(BaseModel):
    """
    One requested release: pay `amount` to `account` at `release_time`.

    The amount is the gross (pre-fee) amount the depositor asked for;
    the builder derives the net leaf amount from it.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    account: str = Field(
        ...,
        description="0x-prefixed 20-byte account identifier",
    )
    amount: int = Field(
        ...,
        description="Requested amount in smallest units",
        gt=0,
        le=UINT_MAX,
    )
    release_time: int = Field(
        ...,
        description="Unix time (seconds) at which the amount becomes releasable",
        gt=0,
        le=UINT_MAX,
    )

    @field_validator("account", mode="before")
    @classmethod
    def validate_account(cls, v: object) -> str:
        if not isinstance(v, str):
            raise ValueError("account must be a string")
        return normalize_account(v)


class LeafProof(BaseModel):
    """A leaf of the commitment together with its inclusion proof."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    recipient: str = Field(..., description="Account the leaf pays")
    amount: int = Field(..., description="Net (post-fee) amount in smallest units", gt=0)
    release_time: int = Field(..., alias="releaseTime", gt=0)
    proof: list[str] = Field(
        default_factory=list,
        description="Sibling digests, bottom-up",
    )

    @field_validator("recipient", mode="before")
    @classmethod
    def validate_recipient(cls, v: object) -> str:
        if not isinstance(v, str):
            raise ValueError("recipient must be a string")
        return normalize_account(v)

    @field_validator("proof", mode="after")
    @classmethod
    def validate_proof(cls, v: list[str]) -> list[str]:
        return [normalize_digest(node) for node in v]


class CommitmentArtifact(BaseModel):
    """
    Persisted builder output for one root.

    Write-once: the artifact store refuses to overwrite an existing root.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    root: str = Field(..., description="Merkle root (0x + 64 hex)")
    proofs: list[LeafProof] = Field(..., min_length=1)
    total_gross_amount: int = Field(
        ...,
        alias="totalGrossAmount",
        description="Sum of requested amounts; the value to register with the ledger",
        gt=0,
    )
    total_net_amount: int = Field(
        ...,
        alias="totalNetAmount",
        description="Sum of leaf amounts promised by this commitment",
        gt=0,
    )
    fee_rate: int = Field(..., alias="feeRate", ge=0, description="Fee rate in basis points")
    depth: int = Field(..., ge=0)
    leaves: list[str] = Field(default_factory=list, description="Leaf digests in tree order")

    @field_validator("root", mode="after")
    @classmethod
    def validate_root(cls, v: str) -> str:
        return normalize_digest(v)

    @field_validator("leaves", mode="after")
    @classmethod
    def validate_leaves(cls, v: list[str]) -> list[str]:
        return [normalize_digest(leaf) for leaf in v]

    @model_validator(mode="after")
    def validate_totals(self) -> "CommitmentArtifact":
        """Ensure the declared net total matches the leaves."""
        net = sum(p.amount for p in self.proofs)
        if net != self.total_net_amount:
            raise ValueError(
                f"totalNetAmount ({self.total_net_amount}) does not match leaves ({net})"
            )
        return self

    def to_json(self) -> str:
        """Serialize with wire aliases."""
        return self.model_dump_json(by_alias=True, indent=4)


class Deposit(BaseModel):
    """
    Ledger bookkeeping for one registered root.

    remaining_amount starts at value minus fee and only decreases.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    root: str
    depositor: str
    remaining_amount: int = Field(..., ge=0)


__all__ = [
    "Recipient",
    "LeafProof",
    "CommitmentArtifact",
    "Deposit",
]
