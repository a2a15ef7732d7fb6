"""
Fee Arithmetic

Integer basis-point fee math shared by the commitment builder and the ledger.
Division always truncates toward zero; nothing is rounded to nearest.
"""

from __future__ import annotations

from core.schemas.errors import ValidationException


BASIS_POINTS = 10_000

# Ceiling for the configurable fee rate (1000 bp = 10%)
MAX_FEE = 1_000


def compute_fee(amount: int, fee_rate: int) -> int:
    """
    Fee charged on amount at fee_rate basis points.

    Example:
        >>> compute_fee(100, 100)
        1
        >>> compute_fee(199, 100)
        1
    """
    return amount * fee_rate // BASIS_POINTS


def compute_net_amount(amount: int, fee_rate: int) -> int:
    """Amount left after the fee is taken."""
    return amount - compute_fee(amount, fee_rate)


def validate_fee_rate(fee_rate: int, *, allow_zero: bool = False) -> int:
    """
    Check a fee rate against (0, MAX_FEE].

    allow_zero widens the range to [0, MAX_FEE] for off-ledger previews.

    Raises:
        ValidationException: If the rate is not an integer or out of range
    """
    if isinstance(fee_rate, bool) or not isinstance(fee_rate, int):
        raise ValidationException(
            f"Fee rate must be an integer, got {type(fee_rate).__name__}",
            field_path="fee_rate",
        )
    lower_ok = fee_rate >= 0 if allow_zero else fee_rate > 0
    if not lower_ok:
        raise ValidationException(
            f"Fee rate must be greater than zero, got {fee_rate}",
            field_path="fee_rate",
        )
    if fee_rate > MAX_FEE:
        raise ValidationException(
            f"Fee cannot exceed maximum (10%): {fee_rate} > {MAX_FEE}",
            field_path="fee_rate",
        )
    return fee_rate


__all__ = [
    "BASIS_POINTS",
    "MAX_FEE",
    "compute_fee",
    "compute_net_amount",
    "validate_fee_rate",
]
