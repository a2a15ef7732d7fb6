"""
Value Transfers

The ledger custodies deposited value and pays it out through a
ValueTransfer. A transfer either completes or raises; the ledger rolls
back its own bookkeeping when it raises.
"""

from __future__ import annotations

import logging
from typing import Protocol

from core.schemas.errors import TransferFailureException


logger = logging.getLogger(__name__)


class ValueTransfer(Protocol):
    """Moves value out of ledger custody."""

    def send(self, recipient: str, amount: int) -> None:
        """Pay amount to recipient or raise."""
        ...


class InMemoryTransfers:
    """
    Balance book that records every payout.

    Recipients can be marked as failing to exercise rollback paths:

        transfers = InMemoryTransfers()
        transfers.fail_for("0xabc...")
        ledger.execute_withdrawal(...)   # raises TransferFailureException
    """

    def __init__(self) -> None:
        self.balances: dict[str, int] = {}
        self.history: list[tuple[str, int]] = []
        self._failing: set[str] = set()

    def fail_for(self, recipient: str) -> None:
        self._failing.add(recipient.lower())

    def recover(self, recipient: str) -> None:
        self._failing.discard(recipient.lower())

    def balance_of(self, recipient: str) -> int:
        return self.balances.get(recipient.lower(), 0)

    @property
    def total_sent(self) -> int:
        return sum(amount for _, amount in self.history)

    def send(self, recipient: str, amount: int) -> None:
        key = recipient.lower()
        if key in self._failing:
            raise TransferFailureException(key, amount, details={"reason": "recipient rejected transfer"})
        self.balances[key] = self.balances.get(key, 0) + amount
        self.history.append((key, amount))
        logger.debug(f"Sent {amount} to {key}")


__all__ = ["ValueTransfer", "InMemoryTransfers"]
