# load_diagnostics/collector/pending_tracker.py - Backlog tracking
"""
Tracks loads that have not finished yet.
Measures how long pending loads have been queued and how long running
loads have been running, relative to an injectable clock.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence
import statistics
import logging

from load_diagnostics.collector.records import LoadState, OperationRecord


Clock = Callable[[], datetime]


class PendingTracker:
    """
    Computes wait and running durations for unfinished loads.
    """

    def __init__(self, clock: Optional[Clock] = None, long_running_threshold_seconds: float = 3600.0):
        """
        Initialize the pending tracker.

        Args:
            clock: Callable returning the current time (defaults to datetime.now)
            long_running_threshold_seconds: Running time above which a load counts as long-running
        """
        self.clock = clock or datetime.now
        self.long_running_threshold_seconds = long_running_threshold_seconds
        self.logger = logging.getLogger(__name__)

    def get_backlog(self, records: Sequence[OperationRecord]) -> Optional[Dict]:
        """
        Summarize pending and running loads.

        Args:
            records: Load records of one table

        Returns:
            Dictionary with backlog statistics or None if every load has completed
        """
        pending = [r for r in records if r.state is LoadState.PENDING]
        running = [r for r in records if r.state is LoadState.RUNNING]

        if not pending and not running:
            return None

        now = self.clock()

        waits = [self._elapsed(r.created_at, now) for r in pending]
        running_times = [self._elapsed(r.started_at or r.created_at, now) for r in running]

        long_running = [t for t in running_times if t > self.long_running_threshold_seconds]

        if long_running:
            self.logger.debug(f"{len(long_running)} loads running longer than {self.long_running_threshold_seconds}s")

        return {
            'as_of': now.isoformat(),
            'pending': self._summarize(waits),
            'running': self._summarize(running_times),
            'long_running_count': len(long_running),
        }

    @staticmethod
    def _elapsed(since: datetime, now: datetime) -> float:
        # Clamped when the cluster clock is ahead of ours
        return max(0.0, (now - since).total_seconds())

    @staticmethod
    def _summarize(durations: List[float]) -> Dict:
        if not durations:
            return {'count': 0, 'avg_seconds': 0.0, 'max_seconds': 0.0}

        return {
            'count': len(durations),
            'avg_seconds': round(statistics.mean(durations), 2),
            'max_seconds': round(max(durations), 2),
        }
