"""
Module 01 - Schemas
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import schema definitions.
"""

# Error models and exceptions
from .errors import (
    AlreadyClaimedException,
    DuplicateCommitmentException,
    ErrorCodes,
    EscrowError,
    EscrowException,
    InsufficientBalanceException,
    NotFoundException,
    NotYetReleasableException,
    PausedException,
    ProofInvalidException,
    StorageIOException,
    TransferFailureException,
    UnauthorizedException,
    ValidationException,
)

# Release schemas
from .release import (
    CommitmentArtifact,
    Deposit,
    LeafProof,
    Recipient,
)

__all__ = [
    # Errors
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
    # Release
    "Recipient",
    "LeafProof",
    "CommitmentArtifact",
    "Deposit",
]
