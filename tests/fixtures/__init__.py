"""
Test fixtures package for escrow tests.

This package provides factory functions for creating test objects.
Organized into layers:
- common.py: Accounts, recipients and artifacts
- ledger_fixtures.py: Ledger wired to in-memory transfers and a manual clock

Usage:
    from fixtures import make_artifact, make_ledger, fund_artifact

    def test_something():
        harness = make_ledger()
        artifact = make_artifact()
        fund_artifact(harness, artifact)
"""

from .common import (
    ADMIN,
    ALICE,
    BASE_TIME,
    BOB,
    CAROL,
    DEPOSITOR,
    MALLORY,
    OWNER,
    make_account,
    make_artifact,
    make_recipient,
    make_recipients,
)

from .ledger_fixtures import (
    LedgerHarness,
    fund_artifact,
    make_ledger,
)

__all__ = [
    # Common
    "ADMIN",
    "ALICE",
    "BASE_TIME",
    "BOB",
    "CAROL",
    "DEPOSITOR",
    "MALLORY",
    "OWNER",
    "make_account",
    "make_artifact",
    "make_recipient",
    "make_recipients",
    # Ledger
    "LedgerHarness",
    "fund_artifact",
    "make_ledger",
]
