# load_diagnostics/analyzer/phase_analyzer.py - Load phase duration analysis
"""
Breaks finished loads down into their write and publish phases.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence
import statistics
import logging

from load_diagnostics.collector.records import LoadState, OperationRecord
from load_diagnostics.utils.config import RuleSet, DEFAULT_RULES


PHASES = ('write', 'publish', 'total')

_PHASE_DURATIONS: Dict[str, Callable[[OperationRecord], Optional[float]]] = {
    'write': lambda r: r.write_duration,
    'publish': lambda r: r.publish_duration,
    'total': lambda r: r.total_duration,
}


@dataclass(frozen=True)
class PhaseStatistics:
    """
    Duration statistics of one phase across finished loads (seconds).
    """
    phase: str
    avg_duration: float
    min_duration: float
    max_duration: float
    stddev: float
    percentage_of_total: float
    slow_count: int
    slow_threshold: float

    def to_dict(self) -> Dict:
        return {
            'avg_duration': round(self.avg_duration, 2),
            'min_duration': round(self.min_duration, 2),
            'max_duration': round(self.max_duration, 2),
            'stddev': round(self.stddev, 2),
            'percentage_of_total': round(self.percentage_of_total, 1),
            'slow_count': self.slow_count,
            'slow_threshold': round(self.slow_threshold, 2),
        }


@dataclass(frozen=True)
class PhaseDurationStatistics:
    """
    Write, publish and total phase statistics of one table.
    """
    analyzed_loads: int
    excluded_loads: int
    write: PhaseStatistics
    publish: PhaseStatistics
    total: PhaseStatistics

    @property
    def phases(self) -> List[PhaseStatistics]:
        """Phase statistics in write, publish, total order"""
        return [self.write, self.publish, self.total]

    def to_dict(self) -> Dict:
        return {
            'analyzed_loads': self.analyzed_loads,
            'excluded_loads': self.excluded_loads,
            'write_phase': self.write.to_dict(),
            'publish_phase': self.publish.to_dict(),
            'total_phase': self.total.to_dict(),
        }


class PhaseAnalyzer:
    """
    Computes per-phase duration statistics and slow outliers.

    Only finished loads with start, commit and finish times in order are
    analyzed; the rest are excluded without raising.
    """

    def __init__(self, rules: RuleSet = DEFAULT_RULES):
        """
        Initialize the phase analyzer.

        Args:
            rules: Thresholds (slow_outlier_factor is used here)
        """
        self.rules = rules
        self.logger = logging.getLogger(__name__)

    def analyze_phases(self, records: Sequence[OperationRecord]) -> Optional[PhaseDurationStatistics]:
        """
        Compute phase duration statistics.

        Args:
            records: Load records of one table

        Returns:
            PhaseDurationStatistics or None if no load has complete phase times
        """
        finished = [r for r in records if r.state is LoadState.FINISHED]
        complete = [r for r in finished if r.has_complete_phases]
        excluded = len(finished) - len(complete)

        self.logger.debug(f"Phase check: finished={len(finished)}, complete={len(complete)}")

        if not complete:
            return None

        durations = {
            phase: [_PHASE_DURATIONS[phase](r) for r in complete]
            for phase in PHASES
        }
        total_mean = statistics.fmean(durations['total'])

        stats = {
            phase: self._phase_statistics(phase, values, total_mean)
            for phase, values in durations.items()
        }

        return PhaseDurationStatistics(
            analyzed_loads=len(complete),
            excluded_loads=excluded,
            write=stats['write'],
            publish=stats['publish'],
            total=stats['total'],
        )

    def _phase_statistics(self, phase: str, durations: List[float], total_mean: float) -> PhaseStatistics:
        """
        Summarize the durations of one phase.

        Args:
            phase: Phase name
            durations: Durations in seconds, one per analyzed load
            total_mean: Mean total duration used for the percentage

        Returns:
            PhaseStatistics
        """
        mean = statistics.fmean(durations)
        threshold = mean * self.rules.slow_outlier_factor

        # Second pass: the threshold depends on the mean of the same population
        slow_count = sum(1 for d in durations if d > threshold)

        percentage = (mean / total_mean) * 100 if total_mean > 0 else 0.0

        return PhaseStatistics(
            phase=phase,
            avg_duration=mean,
            min_duration=min(durations),
            max_duration=max(durations),
            stddev=statistics.pstdev(durations, mu=mean),
            percentage_of_total=percentage,
            slow_count=slow_count,
            slow_threshold=threshold,
        )
