"""
Module 09D - API Response Models

Pydantic models for API response serialization.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    status: str = "ok"
    service: str = "merkle-escrow-api"
    version: str = "v1"


class DepositResponse(BaseModel):
    """Response for POST /deposits endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    deposit_id: str = Field(..., alias="depositId", description="Commitment root")
    deposit_amount: int = Field(
        ...,
        alias="depositAmount",
        description="Gross value the depositor must register with the ledger",
    )
    net_amount: int = Field(..., alias="netAmount", description="Sum of committed leaf amounts")
    fee_rate: int = Field(..., alias="feeRate", description="Fee rate applied, in basis points")


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail = Field(..., description="Error details")
