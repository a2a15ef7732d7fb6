"""
Module 09D - API Request Models

Pydantic models for API request validation.
"""

from pydantic import BaseModel, ConfigDict, Field


class WalletEntry(BaseModel):
    """One requested release in a deposit request."""

    model_config = ConfigDict(extra="forbid")

    address: str = Field(..., description="Recipient account (0x + 40 hex)")
    amount: int = Field(..., description="Requested gross amount in smallest units")
    date: int = Field(..., description="Release time, unix seconds")


class DepositRequest(BaseModel):
    """Request body for POST /deposits endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    user_address: str = Field(
        ...,
        alias="userAddress",
        description="Depositor account that will fund the commitment",
    )
    wallets: list[WalletEntry] = Field(
        ...,
        description="Recipients to commit to",
    )

    def to_recipients(self) -> list[dict]:
        """Map wallet entries to builder recipient dicts."""
        return [
            {"account": w.address, "amount": w.amount, "release_time": w.date}
            for w in self.wallets
        ]
