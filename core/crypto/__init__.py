"""
Core cryptographic utilities.

Module 02 provides hashing and fixed-width leaf encoding.
"""
from .hashing import (
    ZERO_ROOT,
    sha256,
    to_hex,
    from_hex,
    is_account,
    is_digest,
    normalize_account,
    normalize_digest,
    encode_leaf,
    hash_leaf,
    hash_sorted_pair,
)

__all__ = [
    "ZERO_ROOT",
    "sha256",
    "to_hex",
    "from_hex",
    "is_account",
    "is_digest",
    "normalize_account",
    "normalize_digest",
    "encode_leaf",
    "hash_leaf",
    "hash_sorted_pair",
]
