"""
Module 09C - CLI Verify Command

Re-check a stored artifact offline:
- Every leaf digest matches its (recipient, amount, release_time)
- Every proof reproduces the root
- Totals and depth are consistent

Usage:
    escrow verify <root> [--store DIR] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

from builder.commitment import verify_leaf
from core.crypto.hashing import hash_leaf, to_hex
from core.merkle import compute_tree_depth
from core.schemas.errors import EscrowException
from core.schemas.release import CommitmentArtifact
from store.artifacts import ArtifactStore


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class VerifySummary:
    """Summary of artifact verification for CLI output."""
    root: str = ""
    leaves: int = 0
    proofs_ok: int = 0
    depth_ok: bool = False
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["all_ok"] = self.all_ok
        if not d["errors"]:
            del d["errors"]
        return d

    @property
    def all_ok(self) -> bool:
        return self.proofs_ok == self.leaves and self.depth_ok and not self.errors


def verify_artifact(artifact: CommitmentArtifact) -> VerifySummary:
    """Check every proof and leaf of an artifact against its root."""
    summary = VerifySummary(root=artifact.root, leaves=len(artifact.proofs))

    for i, leaf in enumerate(artifact.proofs):
        if not verify_leaf(artifact.root, leaf.recipient, leaf.amount, leaf.release_time, leaf.proof):
            summary.errors.append(f"Proof {i} ({leaf.recipient}) does not reproduce the root")
            continue
        if artifact.leaves and i < len(artifact.leaves):
            digest = to_hex(hash_leaf(leaf.recipient, leaf.amount, leaf.release_time))
            if digest != artifact.leaves[i]:
                summary.errors.append(f"Leaf {i} digest mismatch: {artifact.leaves[i]} != {digest}")
                continue
        summary.proofs_ok += 1

    summary.depth_ok = artifact.depth == compute_tree_depth(len(artifact.proofs))
    if not summary.depth_ok:
        summary.errors.append(
            f"Depth {artifact.depth} does not match {len(artifact.proofs)} leaves"
        )
    return summary


def print_summary_human(summary: VerifySummary) -> None:
    """Print summary in human-readable format."""
    print(f"root: {summary.root}")
    print(f"proofs_ok: {summary.proofs_ok}/{summary.leaves}")
    print(f"depth_ok: {str(summary.depth_ok).lower()}")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors[:10]:
            print(f"  ✗ {err}")


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Returns:
        Exit code
    """
    config = args.cli_config
    store = ArtifactStore(Path(args.store or config.artifact_dir))

    try:
        artifact = store.load(args.root)
    except EscrowException as e:
        print(f"Error loading artifact: [{e.code}] {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    summary = verify_artifact(artifact)

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    if summary.all_ok:
        logger.info("Verification passed")
        return EXIT_SUCCESS
    logger.warning("Verification failed")
    return EXIT_VERIFICATION_FAILED
