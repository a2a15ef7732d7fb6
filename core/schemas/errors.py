"""
Module 01 - Schemas
File: errors.py

Purpose: Standard error taxonomy across the escrow builder, ledger and watcher.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the system."""

    # Input Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_COMMITMENT = "DUPLICATE_COMMITMENT"

    # Access Errors
    UNAUTHORIZED = "UNAUTHORIZED"
    PAUSED = "PAUSED"

    # Deposit & Claim Errors
    NOT_FOUND = "NOT_FOUND"
    ALREADY_CLAIMED = "ALREADY_CLAIMED"
    PROOF_INVALID = "PROOF_INVALID"
    NOT_YET_RELEASABLE = "NOT_YET_RELEASABLE"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"

    # Infrastructure Errors
    TRANSFER_FAILURE = "TRANSFER_FAILURE"
    STORAGE_IO = "STORAGE_IO"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class EscrowError(BaseModel):
    """
    Base error model for structured error communication.

    Used by the API layer and CLI reports to serialize failures
    without leaking exception objects.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.VALIDATION_ERROR],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "EscrowException":
        """Convert this error model to a raised exception."""
        return EscrowException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class EscrowException(Exception):
    """
    Base exception for all escrow errors.

    This exception carries structured error information and can be
    converted to/from EscrowError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "ESCROW_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> EscrowError:
        """Convert this exception to an EscrowError model."""
        return EscrowError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ValidationException(EscrowException):
    """Exception raised when an input is malformed or out of range."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(
            message=message,
            code=ErrorCodes.VALIDATION_ERROR,
            details=full_details,
            retryable=False,
        )


class DuplicateCommitmentException(EscrowException):
    """Exception raised when a root is already registered or persisted."""

    def __init__(self, root: str, details: dict[str, Any] | None = None) -> None:
        full_details = details or {}
        full_details["root"] = root
        super().__init__(
            message=f"Commitment already exists: {root}",
            code=ErrorCodes.DUPLICATE_COMMITMENT,
            details=full_details,
            retryable=False,
        )


class UnauthorizedException(EscrowException):
    """Exception raised when the caller lacks the required role."""

    def __init__(self, caller: str, role: str) -> None:
        super().__init__(
            message=f"Caller {caller} does not hold role {role}",
            code=ErrorCodes.UNAUTHORIZED,
            details={"caller": caller, "role": role},
            retryable=False,
        )


class PausedException(EscrowException):
    """Exception raised when a normal flow is attempted while paused."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            message=f"Ledger is paused: {operation} is disabled",
            code=ErrorCodes.PAUSED,
            details={"operation": operation},
            retryable=True,
        )


class NotFoundException(EscrowException):
    """Exception raised when no active deposit exists for a root."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.NOT_FOUND,
            details=details,
            retryable=False,
        )


class AlreadyClaimedException(EscrowException):
    """Exception raised when a leaf has already been withdrawn."""

    def __init__(self, root: str, recipient: str, release_time: int) -> None:
        super().__init__(
            message=f"Already withdrawn: {recipient} at {release_time}",
            code=ErrorCodes.ALREADY_CLAIMED,
            details={"root": root, "recipient": recipient, "release_time": release_time},
            retryable=False,
        )


class ProofInvalidException(EscrowException):
    """Exception raised when a merkle proof does not verify against its root."""

    def __init__(self, root: str, details: dict[str, Any] | None = None) -> None:
        full_details = details or {}
        full_details["root"] = root
        super().__init__(
            message="Invalid merkle proof",
            code=ErrorCodes.PROOF_INVALID,
            details=full_details,
            retryable=False,
        )


class NotYetReleasableException(EscrowException):
    """Exception raised when a leaf's release time has not arrived."""

    def __init__(self, release_time: int, current_time: int) -> None:
        super().__init__(
            message=f"Funds not yet available: release at {release_time}, now {current_time}",
            code=ErrorCodes.NOT_YET_RELEASABLE,
            details={"release_time": release_time, "current_time": current_time},
            retryable=True,
        )


class InsufficientBalanceException(EscrowException):
    """Exception raised when a deposit cannot cover a withdrawal."""

    def __init__(self, root: str, requested: int, available: int) -> None:
        super().__init__(
            message=f"Insufficient balance: requested {requested}, available {available}",
            code=ErrorCodes.INSUFFICIENT_BALANCE,
            details={"root": root, "requested": requested, "available": available},
            retryable=False,
        )


class TransferFailureException(EscrowException):
    """Exception raised when an outgoing value transfer fails."""

    def __init__(
        self,
        recipient: str,
        amount: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        full_details.update({"recipient": recipient, "amount": amount})
        super().__init__(
            message=f"Transfer of {amount} to {recipient} failed",
            code=ErrorCodes.TRANSFER_FAILURE,
            details=full_details,
            retryable=True,
        )


class StorageIOException(EscrowException):
    """Exception raised when artifact storage cannot be read or written."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if path:
            full_details["path"] = path
        super().__init__(
            message=message,
            code=ErrorCodes.STORAGE_IO,
            details=full_details,
            retryable=True,
        )


__all__ = [
    "ErrorCodes",
    "EscrowError",
    "EscrowException",
    "ValidationException",
    "DuplicateCommitmentException",
    "UnauthorizedException",
    "PausedException",
    "NotFoundException",
    "AlreadyClaimedException",
    "ProofInvalidException",
    "NotYetReleasableException",
    "InsufficientBalanceException",
    "TransferFailureException",
    "StorageIOException",
]
