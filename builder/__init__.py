"""
Commitment Builder

Provides functionality for turning recipient lists into merkle commitments.
"""

from builder.commitment import (
    CommitmentBuilder,
    build_commitment,
    parse_recipients,
    verify_leaf,
)

__all__ = [
    "CommitmentBuilder",
    "build_commitment",
    "parse_recipients",
    "verify_leaf",
]
