"""
Module 09D - API Error Handling

Standardized error handling for the API.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.models.responses import ErrorResponse, ErrorDetail
from core.schemas.errors import ErrorCodes, EscrowException


logger = logging.getLogger(__name__)


# Domain error code -> HTTP status
STATUS_BY_CODE: dict[str, int] = {
    ErrorCodes.VALIDATION_ERROR: 400,
    ErrorCodes.PROOF_INVALID: 400,
    ErrorCodes.UNAUTHORIZED: 403,
    ErrorCodes.NOT_FOUND: 404,
    ErrorCodes.DUPLICATE_COMMITMENT: 409,
    ErrorCodes.ALREADY_CLAIMED: 409,
    ErrorCodes.INSUFFICIENT_BALANCE: 409,
    ErrorCodes.NOT_YET_RELEASABLE: 425,
    ErrorCodes.PAUSED: 503,
    ErrorCodes.TRANSFER_FAILURE: 502,
    ErrorCodes.STORAGE_IO: 500,
}


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    @classmethod
    def from_exception(cls, exc: EscrowException) -> "APIError":
        return cls(
            code=exc.code,
            message=exc.message,
            status_code=STATUS_BY_CODE.get(exc.code, 500),
            details=exc.details,
        )

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                details=self.details,
            ),
        )


class InvalidRequestError(APIError):
    """Invalid request parameters."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code=ErrorCodes.VALIDATION_ERROR,
            message=message,
            status_code=400,
            details=details,
        )


class ServiceUnavailableError(APIError):
    """A required service component is not configured."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            code="SERVICE_UNAVAILABLE",
            message=message,
            status_code=503,
            details=details,
        )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


async def escrow_error_handler(request: Request, exc: EscrowException) -> JSONResponse:
    """Handle domain exceptions raised by the builder, store or ledger."""
    api_error = APIError.from_exception(exc)
    if api_error.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return await api_error_handler(request, api_error)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 with the first offending field."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Invalid request: {loc} {first.get('msg', '')}".strip()
    return JSONResponse(
        status_code=400,
        content=InvalidRequestError(
            message,
            details={"error_count": len(errors)},
        ).to_response().model_dump(),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            ok=False,
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
                details={"type": type(exc).__name__},
            ),
        ).model_dump(),
    )
