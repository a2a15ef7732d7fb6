"""
Ledger Package

Deposits, claim flags, fees, roles and pause state for committed releases.
"""

from ledger.clock import Clock, ManualClock, SystemClock
from ledger.events import EventKind, LedgerEvent
from ledger.ledger import DEFAULT_FEE_RATE, ReleaseLedger
from ledger.roles import Role, RoleRegistry
from ledger.transfers import InMemoryTransfers, ValueTransfer

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "EventKind",
    "LedgerEvent",
    "DEFAULT_FEE_RATE",
    "ReleaseLedger",
    "Role",
    "RoleRegistry",
    "InMemoryTransfers",
    "ValueTransfer",
]
