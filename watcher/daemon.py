"""
Release Watcher

Polling loop that settles every leaf whose release time has arrived.

Cycle:
1. Read the number of active roots; an empty ledger means an empty cycle
2. For each root by index, load its artifact from the store
3. For each leaf: skip if already claimed, else run the eligibility
   checks and, when they pass, execute the withdrawal synchronously

Failures at leaf, root or cycle level are logged and the loop carries on.
There is no retry cap, no backoff and no persisted checkpoint; the next
cycle simply sees the ledger as it is.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from core.schemas.errors import EscrowException, NotYetReleasableException
from core.schemas.release import CommitmentArtifact, LeafProof
from ledger.ledger import ReleaseLedger
from store.artifacts import ArtifactStore


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 12.0


# =============================================================================
# Cycle Report
# =============================================================================

@dataclass
class CycleReport:
    """Outcome counts for one watcher cycle."""
    cycle: int = 0
    roots_seen: int = 0
    settled: int = 0            # withdrawals executed this cycle
    already_claimed: int = 0    # skipped, flag already set
    waiting: int = 0            # release time not reached
    failed_leaves: int = 0
    failed_roots: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.roots_seen == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycle": self.cycle,
            "roots_seen": self.roots_seen,
            "settled": self.settled,
            "already_claimed": self.already_claimed,
            "waiting": self.waiting,
            "failed_leaves": self.failed_leaves,
            "failed_roots": self.failed_roots,
            "errors": list(self.errors),
        }


# =============================================================================
# Watcher
# =============================================================================

class Watcher:
    """
    Drives withdrawals for every active root.

    Usage:
        watcher = Watcher(ledger, store, caller=admin)
        watcher.run_cycle()                 # one pass
        watcher.run_forever()               # until stop()
    """

    def __init__(
        self,
        ledger: ReleaseLedger,
        store: ArtifactStore,
        caller: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
    ) -> None:
        if poll_interval < 0:
            raise ValueError(f"poll_interval must be non-negative, got {poll_interval}")
        self.ledger = ledger
        self.store = store
        self.caller = caller
        self.poll_interval = poll_interval
        self.cycles_run = 0
        self._stop = threading.Event()

    # -------------------------------------------------------------------------
    # Loop control
    # -------------------------------------------------------------------------

    def stop(self) -> None:
        """
        Request a stop; a cycle in progress runs to completion.

        A stop requested before run_forever is entered is honoured, so
        the loop returns without running a cycle.
        """
        self._stop.set()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def run_forever(self, max_cycles: Optional[int] = None) -> int:
        """
        Run cycles until stop() is called or max_cycles is reached.

        Returns:
            Number of cycles run
        """
        logger.info(f"Watcher started (interval={self.poll_interval}s, caller={self.caller})")
        ran = 0
        while not self._stop.is_set():
            try:
                self.run_cycle()
            except Exception:
                logger.exception("Watcher cycle failed")
            ran += 1
            if max_cycles is not None and ran >= max_cycles:
                break
            # Interruptible sleep between cycles
            self._stop.wait(self.poll_interval)
        logger.info(f"Watcher stopped after {ran} cycle(s)")
        return ran

    # -------------------------------------------------------------------------
    # Cycle
    # -------------------------------------------------------------------------

    def run_cycle(self) -> CycleReport:
        """Run one pass over every active root."""
        self.cycles_run += 1
        report = CycleReport(cycle=self.cycles_run)

        total = self.ledger.total_active_roots()
        if total == 0:
            logger.debug("No active deposits")
            return report

        # Snapshot roots first; withdrawals may remove entries and shift indices
        roots: list[str] = []
        for index in range(total):
            try:
                roots.append(self.ledger.root_at(index))
            except EscrowException as e:
                logger.debug(f"Root index {index} vanished during cycle: {e}")
        report.roots_seen = len(roots)

        for root in roots:
            try:
                self._process_root(root, report)
            except EscrowException as e:
                report.failed_roots += 1
                report.errors.append(f"{root}: {e}")
                logger.warning(f"Cannot process deposit {root}: [{e.code}] {e.message}")
            except Exception as e:
                report.failed_roots += 1
                report.errors.append(f"{root}: {e}")
                logger.exception(f"Failed to process deposit {root}")

        logger.info(
            f"Cycle {report.cycle}: roots={report.roots_seen} settled={report.settled} "
            f"waiting={report.waiting} failed_leaves={report.failed_leaves} "
            f"failed_roots={report.failed_roots}"
        )
        return report

    def _process_root(self, root: str, report: CycleReport) -> None:
        artifact: CommitmentArtifact = self.store.load(root)
        for leaf in artifact.proofs:
            try:
                self._process_leaf(root, leaf, report)
            except EscrowException as e:
                # Ledger refusal, e.g. a leaf that can never be paid
                report.failed_leaves += 1
                report.errors.append(f"{root}/{leaf.recipient}@{leaf.release_time}: {e}")
                logger.warning(
                    f"Cannot settle {leaf.recipient} ({leaf.amount}) on {root}: [{e.code}] {e.message}"
                )
            except Exception as e:
                report.failed_leaves += 1
                report.errors.append(f"{root}/{leaf.recipient}@{leaf.release_time}: {e}")
                logger.exception(
                    f"Failed to settle {leaf.recipient} ({leaf.amount}) on {root}"
                )

    def _process_leaf(self, root: str, leaf: LeafProof, report: CycleReport) -> None:
        if self.ledger.has_withdrawn(root, leaf.recipient, leaf.release_time):
            report.already_claimed += 1
            return

        try:
            self.ledger.check_eligibility(
                root, leaf.recipient, leaf.amount, leaf.release_time, leaf.proof
            )
        except NotYetReleasableException:
            report.waiting += 1
            return

        self.ledger.execute_withdrawal(
            root, leaf.recipient, leaf.amount, leaf.release_time, leaf.proof, self.caller
        )
        report.settled += 1
        logger.info(f"Released {leaf.amount} to {leaf.recipient} from {root}")


__all__ = ["DEFAULT_POLL_INTERVAL_S", "CycleReport", "Watcher"]
