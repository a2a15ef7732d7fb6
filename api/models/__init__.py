"""API request and response models."""

from api.models.requests import DepositRequest, WalletEntry
from api.models.responses import (
    DepositResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "DepositRequest",
    "WalletEntry",
    "DepositResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
]
