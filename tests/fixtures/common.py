"""
Common test fixtures shared by all modules.

Provides fixed accounts and factory functions for recipient lists and
commitment artifacts.
"""

from typing import Any, Optional

from builder.commitment import build_commitment
from core.schemas.release import CommitmentArtifact


# Fixed principals
OWNER = "0x" + "0a" * 20
ADMIN = "0x" + "0b" * 20
DEPOSITOR = "0x" + "0c" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20
MALLORY = "0x" + "ee" * 20

BASE_TIME = 1_700_000_000


def make_account(n: int) -> str:
    """Deterministic distinct account for index n."""
    return "0x" + f"{n + 1:040x}"


def make_recipient(
    account: str = ALICE,
    amount: int = 1_000,
    release_time: int = BASE_TIME,
) -> dict[str, Any]:
    """Create a raw recipient entry."""
    return {"account": account, "amount": amount, "release_time": release_time}


def make_recipients(
    count: int = 3,
    amount: int = 1_000,
    release_time: int = BASE_TIME,
    step: int = 0,
) -> list[dict[str, Any]]:
    """Create count recipients with distinct accounts; release times grow by step."""
    return [
        make_recipient(make_account(i), amount, release_time + i * step)
        for i in range(count)
    ]


def make_artifact(
    recipients: Optional[list[dict[str, Any]]] = None,
    fee_rate: int = 100,
) -> CommitmentArtifact:
    """Build an (unpersisted) artifact."""
    return build_commitment(recipients or make_recipients(), fee_rate)
