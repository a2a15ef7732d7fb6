"""
Module 09C - CLI Build Command

Build a commitment from a request file and persist its artifact.

The request file is either the POST /deposits body
({"userAddress": ..., "wallets": [{"address", "amount", "date"}]})
or a bare list of {"account", "amount", "release_time"} entries.

Usage:
    escrow build request.json [--store DIR] [--fee-rate BP] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any

from builder.commitment import CommitmentBuilder
from core.schemas.errors import EscrowException
from store.artifacts import ArtifactStore


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


@dataclass
class BuildSummary:
    """Summary of a built commitment for CLI output."""
    deposit_id: str = ""
    deposit_amount: int = 0
    net_amount: int = 0
    fee_rate: int = 0
    leaves: int = 0
    depth: int = 0
    path: str = ""

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["depositId"] = d.pop("deposit_id")
        d["depositAmount"] = d.pop("deposit_amount")
        return d


def load_recipients(path: Path) -> list[dict[str, Any]]:
    """
    Read recipient entries from a request file.

    Raises:
        ValueError: If the file is not one of the accepted shapes
    """
    with open(path, "r") as f:
        data = json.load(f)

    if isinstance(data, dict) and "wallets" in data:
        wallets = data["wallets"]
        if not isinstance(wallets, list):
            raise ValueError("'wallets' must be a list")
        return [
            {
                "account": w.get("address"),
                "amount": w.get("amount"),
                "release_time": w.get("date"),
            }
            for w in wallets
        ]
    if isinstance(data, list):
        return data
    raise ValueError("Request must be a wallets object or a list of recipients")


def print_summary_human(summary: BuildSummary) -> None:
    """Print summary in human-readable format."""
    print(f"depositId: {summary.deposit_id}")
    print(f"depositAmount: {summary.deposit_amount}")
    print(f"net_amount: {summary.net_amount}")
    print(f"fee_rate: {summary.fee_rate}")
    print(f"leaves: {summary.leaves} (depth {summary.depth})")
    print(f"artifact: {summary.path}")


def build_cmd(args: Namespace) -> int:
    """
    Execute the build command.

    Returns:
        Exit code
    """
    config = args.cli_config
    request_path = Path(args.request)
    store = ArtifactStore(Path(args.store or config.artifact_dir))
    fee_rate = args.fee_rate if args.fee_rate is not None else config.fee_rate

    if not request_path.exists():
        print(f"Error: Request file not found: {request_path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        recipients = load_recipients(request_path)
    except ValueError as e:
        print(f"Error reading request: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    builder = CommitmentBuilder(store, fee_source=fee_rate)
    try:
        artifact = builder.build(recipients)
    except EscrowException as e:
        print(f"Error: [{e.code}] {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    summary = BuildSummary(
        deposit_id=artifact.root,
        deposit_amount=artifact.total_gross_amount,
        net_amount=artifact.total_net_amount,
        fee_rate=artifact.fee_rate,
        leaves=len(artifact.proofs),
        depth=artifact.depth,
        path=str(store.path_for(artifact.root)),
    )

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    return EXIT_SUCCESS
