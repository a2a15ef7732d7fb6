"""
Watcher Package

Polling daemon that executes withdrawals once leaves become releasable.
"""

from watcher.daemon import DEFAULT_POLL_INTERVAL_S, CycleReport, Watcher

__all__ = ["DEFAULT_POLL_INTERVAL_S", "CycleReport", "Watcher"]
