"""
Ledger Audit Events

Every committed mutation appends one event. Failed operations append
nothing, so the event list mirrors the observable state history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    DEPOSIT_CREATED = "DepositCreated"
    WITHDRAWAL_EXECUTED = "WithdrawalExecuted"
    EMERGENCY_WITHDRAWAL = "EmergencyWithdrawal"
    DEPOSIT_DELETED = "DepositDeleted"
    FEE_UPDATED = "FeeUpdated"
    FEE_RECIPIENT_UPDATED = "FeeRecipientUpdated"
    PAUSED_UPDATED = "PausedUpdated"
    ROLE_GRANTED = "RoleGranted"
    ROLE_REVOKED = "RoleRevoked"


@dataclass(frozen=True)
class LedgerEvent:
    """
    A committed ledger mutation.

    Setter events carry "old" and "new" in data.
    """
    sequence: int
    kind: EventKind
    timestamp: int
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "kind": self.kind.value,
            "timestamp": self.timestamp,
            "data": dict(self.data),
        }


__all__ = ["EventKind", "LedgerEvent"]
