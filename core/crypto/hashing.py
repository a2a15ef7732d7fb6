"""
Module 02 - Hashing Utilities
Hashing and fixed-width leaf encoding for merkle commitments.

This module provides:
- SHA-256 hashing for raw bytes
- Fixed-width packed encoding of (account, amount, release_time) leaves
- Sorted-pair parent hashing
- Hex encoding/decoding with 0x prefix

Encoding Rules (Hard Contracts):
1. Account: 20 raw bytes (the 0x-prefixed 40-hex-char identifier, decoded)
2. Amount: 32-byte unsigned big-endian integer
3. Release time: 32-byte unsigned big-endian integer
4. No delimiters and no length prefixes: leaf = sha256(account || amount || time)
5. Parent: sha256(min(a, b) || max(a, b))
"""
from __future__ import annotations

import hashlib
import re


ACCOUNT_BYTES = 20
DIGEST_BYTES = 32
UINT_BYTES = 32
UINT_MAX = 2 ** (UINT_BYTES * 8) - 1

ZERO_ROOT = "0x" + "00" * DIGEST_BYTES

_ACCOUNT_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_DIGEST_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte SHA-256 digest

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Args:
        hex_string: Hex string with 0x prefix

    Returns:
        Decoded bytes

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def is_account(value: object) -> bool:
    """Check that value is a 0x-prefixed 20-byte account identifier."""
    return isinstance(value, str) and bool(_ACCOUNT_RE.match(value))


def is_digest(value: object) -> bool:
    """Check that value is a 0x-prefixed 32-byte digest."""
    return isinstance(value, str) and bool(_DIGEST_RE.match(value))


def normalize_account(account: str) -> str:
    """
    Normalize an account identifier to lowercase hex.

    Raises:
        ValueError: If the identifier is not 0x + 40 hex characters
    """
    if not is_account(account):
        raise ValueError(f"Invalid account identifier: {account!r}")
    return account.lower()


def normalize_digest(digest: str) -> str:
    """
    Normalize a digest to lowercase hex.

    Raises:
        ValueError: If the digest is not 0x + 64 hex characters
    """
    if not is_digest(digest):
        raise ValueError(f"Invalid digest: {digest!r}")
    return digest.lower()


def encode_uint(value: int) -> bytes:
    """Encode a non-negative integer as a 32-byte big-endian word."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer, got {type(value).__name__}")
    if value < 0 or value > UINT_MAX:
        raise ValueError(f"Integer out of range for {UINT_BYTES}-byte word: {value}")
    return value.to_bytes(UINT_BYTES, "big")


def encode_leaf(account: str, amount: int, release_time: int) -> bytes:
    """
    Packed fixed-width encoding of a leaf.

    Returns:
        84 bytes: account (20) || amount (32) || release_time (32)
    """
    return (
        from_hex(normalize_account(account))
        + encode_uint(amount)
        + encode_uint(release_time)
    )


def hash_leaf(account: str, amount: int, release_time: int) -> bytes:
    """Compute the 32-byte leaf digest for (account, amount, release_time)."""
    return sha256(encode_leaf(account, amount, release_time))


def hash_sorted_pair(a: bytes, b: bytes) -> bytes:
    """
    Hash two sibling nodes in sorted order.

    Sorting makes the parent independent of which child is left or right,
    so proofs carry no position bits.
    """
    if a <= b:
        return sha256(a + b)
    return sha256(b + a)


__all__ = [
    "ACCOUNT_BYTES",
    "DIGEST_BYTES",
    "UINT_BYTES",
    "UINT_MAX",
    "ZERO_ROOT",
    "sha256",
    "to_hex",
    "from_hex",
    "is_account",
    "is_digest",
    "normalize_account",
    "normalize_digest",
    "encode_uint",
    "encode_leaf",
    "hash_leaf",
    "hash_sorted_pair",
]
