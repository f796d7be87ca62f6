# load_diagnostics/analyzer/frequency_analyzer.py - Import frequency analysis
"""
Import frequency analysis.

Reconstructs the inter-arrival intervals of a table's loads and classifies
how often and how regularly the table is loaded. Two classifications are
kept apart:

- an interval-based tier (mean gap between consecutive loads), used when
  comparing many tables with each other
- a rate-based level (loads per second/minute/hour over the observed time
  span), used by the single-table deep analysis
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple
import statistics
import logging

from load_diagnostics.collector.event_collector import EntityTimeline


class FrequencyTier(Enum):
    """Interval-based frequency tier, most frequent first."""
    EXTREME = 'extreme'
    VERY_HIGH = 'very_high'
    FREQUENT = 'frequent'
    MODERATE = 'moderate'
    HOURLY = 'hourly'
    DAILY = 'daily'
    LOW_FREQUENCY = 'low_frequency'


class RegularityTier(Enum):
    """Regularity tier derived from the coefficient of variation."""
    VERY_REGULAR = 'very_regular'
    REGULAR = 'regular'
    IRREGULAR = 'irregular'
    VERY_IRREGULAR = 'very_irregular'


# Upper bounds (exclusive) of the mean interval in seconds
INTERVAL_TIERS = (
    (1, FrequencyTier.EXTREME),
    (60, FrequencyTier.VERY_HIGH),
    (15 * 60, FrequencyTier.FREQUENT),
    (60 * 60, FrequencyTier.MODERATE),
    (4 * 60 * 60, FrequencyTier.HOURLY),
    (24 * 60 * 60, FrequencyTier.DAILY),
)

# Upper bounds (exclusive) of the coefficient of variation in percent
REGULARITY_TIERS = (
    (20, RegularityTier.VERY_REGULAR),
    (50, RegularityTier.REGULAR),
    (100, RegularityTier.IRREGULAR),
)

# Lower bounds (inclusive) of the regularity score
REGULARITY_SCORE_LEVELS = (
    (80, 'very-regular'),
    (60, 'regular'),
    (40, 'somewhat-regular'),
)

FREQUENCY_DESCRIPTIONS = {
    'extreme_frequency': 'Extreme (several loads per second)',
    'very_high_frequency': 'Very high (60+ loads per minute)',
    'high_frequency': 'High (4+ loads per minute)',
    'frequent': 'Frequent (1-4 loads per minute)',
    'moderate': 'Moderate (1+ loads per hour)',
    'low_frequency': 'Low (less than 1 load per hour)',
}


@dataclass(frozen=True)
class IntervalStatistics:
    """
    Dispersion statistics of the gaps between consecutive loads (seconds).
    """
    count: int
    mean: float
    stddev: float
    min: float
    max: float
    cv_percent: Optional[float]

    @property
    def loads_per_hour(self) -> float:
        """Load rate implied by the mean interval, one per second when all loads share a timestamp"""
        if self.mean <= 0:
            return 3600.0
        return 3600.0 / self.mean

    @property
    def loads_per_day(self) -> float:
        """Daily load rate implied by the mean interval"""
        return self.loads_per_hour * 24

    def to_dict(self) -> Dict:
        return {
            'interval_count': self.count,
            'avg_interval_seconds': round(self.mean, 2),
            'avg_interval_minutes': round(self.mean / 60, 2),
            'avg_interval_hours': round(self.mean / 3600, 2),
            'interval_stddev': round(self.stddev, 2),
            'min_interval_seconds': round(self.min, 2),
            'max_interval_seconds': round(self.max, 2),
            'cv_percent': round(self.cv_percent, 1) if self.cv_percent is not None else None,
            'loads_per_hour': round(self.loads_per_hour, 2),
            'loads_per_day': round(self.loads_per_day, 1),
        }


@dataclass(frozen=True)
class RegularityScore:
    """
    0-100 regularity score, 100 meaning perfectly even spacing.
    """
    score: float
    level: str

    def to_dict(self) -> Dict:
        return {'score': int(round(self.score)), 'level': self.level}


@dataclass(frozen=True)
class FrequencyClassification:
    """
    Frequency and regularity labels of one timeline.
    """
    frequency_tier: FrequencyTier
    regularity_tier: RegularityTier
    regularity: RegularityScore

    def to_dict(self) -> Dict:
        return {
            'frequency_tier': self.frequency_tier.value,
            'regularity_tier': self.regularity_tier.value,
            'regularity': self.regularity.to_dict(),
        }


@dataclass(frozen=True)
class FrequencyMetrics:
    """
    Rate-based frequency metrics of one table over its observed time span.
    """
    loads_per_second: float
    loads_per_minute: float
    loads_per_hour: float
    avg_interval_seconds: float
    frequency_level: str
    frequency_category: str

    @property
    def frequency_description(self) -> str:
        """Human-readable description of the frequency category"""
        return FREQUENCY_DESCRIPTIONS.get(self.frequency_category, 'Unknown frequency')

    def to_dict(self) -> Dict:
        return {
            'loads_per_second': round(self.loads_per_second, 2),
            'loads_per_minute': round(self.loads_per_minute, 1),
            'loads_per_hour': round(self.loads_per_hour),
            'avg_interval_seconds': round(self.avg_interval_seconds, 2),
            'frequency_level': self.frequency_level,
            'frequency_category': self.frequency_category,
            'frequency_description': self.frequency_description,
        }


class FrequencyAnalyzer:
    """
    Analyzes how often and how regularly a table is loaded.
    """

    def __init__(self):
        """
        Initialize the frequency analyzer.
        """
        self.logger = logging.getLogger(__name__)

    def analyze_frequency(self, timeline: EntityTimeline) -> Optional[Tuple[IntervalStatistics, FrequencyClassification]]:
        """
        Compute interval statistics and classify a timeline.

        Args:
            timeline: Load records of one table

        Returns:
            (IntervalStatistics, FrequencyClassification), or None when the
            timeline has fewer than two records
        """
        if len(timeline) < 2:
            return None

        intervals = self.compute_intervals(timeline)
        stats = self.interval_statistics(intervals)

        return stats, self.classify(stats)

    def compute_intervals(self, timeline: EntityTimeline) -> List[float]:
        """
        Compute the gaps between consecutive loads.

        Args:
            timeline: Load records of one table

        Returns:
            List of intervals in seconds
        """
        # Intervals depend on adjacency, so never trust the incoming order
        records = sorted(timeline.records, key=lambda r: r.sort_key)

        intervals = []
        for previous, current in zip(records, records[1:]):
            interval = (current.created_at - previous.created_at).total_seconds()
            assert interval >= 0, f"Timeline {timeline.entity_key} is not ordered by create time"
            intervals.append(interval)

        return intervals

    def interval_statistics(self, intervals: List[float]) -> IntervalStatistics:
        """
        Compute dispersion statistics over a list of intervals.

        The standard deviation is the population one (divides by N).

        Args:
            intervals: Non-empty list of intervals in seconds

        Returns:
            IntervalStatistics
        """
        mean = statistics.fmean(intervals)
        stddev = statistics.pstdev(intervals, mu=mean)
        cv_percent = (stddev / mean) * 100 if mean > 0 else None

        return IntervalStatistics(
            count=len(intervals),
            mean=mean,
            stddev=stddev,
            min=min(intervals),
            max=max(intervals),
            cv_percent=cv_percent,
        )

    def classify(self, stats: IntervalStatistics) -> FrequencyClassification:
        """
        Classify interval statistics into frequency and regularity tiers.

        Args:
            stats: Interval statistics of one timeline

        Returns:
            FrequencyClassification
        """
        return FrequencyClassification(
            frequency_tier=self.frequency_tier(stats.mean),
            regularity_tier=self.regularity_tier(stats.cv_percent),
            regularity=self.regularity_score(stats.cv_percent),
        )

    @staticmethod
    def frequency_tier(mean_interval_seconds: float) -> FrequencyTier:
        """
        Interval-based frequency tier.

        Args:
            mean_interval_seconds: Mean gap between loads

        Returns:
            FrequencyTier
        """
        for upper_bound, tier in INTERVAL_TIERS:
            if mean_interval_seconds < upper_bound:
                return tier
        return FrequencyTier.LOW_FREQUENCY

    @staticmethod
    def regularity_tier(cv_percent: Optional[float]) -> RegularityTier:
        """
        Regularity tier from the coefficient of variation.

        An undefined CV (zero mean interval) is treated as the most irregular.

        Args:
            cv_percent: Coefficient of variation in percent, or None

        Returns:
            RegularityTier
        """
        if cv_percent is None:
            return RegularityTier.VERY_IRREGULAR

        for upper_bound, tier in REGULARITY_TIERS:
            if cv_percent < upper_bound:
                return tier
        return RegularityTier.VERY_IRREGULAR

    @staticmethod
    def regularity_score(cv_percent: Optional[float]) -> RegularityScore:
        """
        0-100 regularity score, max(0, 100 - CV).

        Args:
            cv_percent: Coefficient of variation in percent, or None

        Returns:
            RegularityScore
        """
        score = 0.0 if cv_percent is None else max(0.0, 100.0 - cv_percent)

        for lower_bound, level in REGULARITY_SCORE_LEVELS:
            if score >= lower_bound:
                return RegularityScore(score=score, level=level)
        return RegularityScore(score=score, level='irregular')

    def calculate_frequency_metrics(self, total_loads: int, time_span_seconds: float) -> FrequencyMetrics:
        """
        Rate-based frequency metrics over the observed time span.

        The span is clamped to at least one second so a burst of loads
        created in the same second still yields a finite rate.

        Args:
            total_loads: Number of loads of the table
            time_span_seconds: Seconds between the first and last load

        Returns:
            FrequencyMetrics
        """
        span = max(time_span_seconds or 0.0, 1.0)
        loads_per_second = total_loads / span
        loads_per_minute = loads_per_second * 60
        loads_per_hour = loads_per_second * 3600
        avg_interval = span / max(total_loads - 1, 1)

        level, category = self.frequency_level(loads_per_second)

        return FrequencyMetrics(
            loads_per_second=loads_per_second,
            loads_per_minute=loads_per_minute,
            loads_per_hour=loads_per_hour,
            avg_interval_seconds=avg_interval,
            frequency_level=level,
            frequency_category=category,
        )

    @staticmethod
    def frequency_level(loads_per_second: float) -> Tuple[str, str]:
        """
        Rate-based frequency level and category.

        Args:
            loads_per_second: Observed load rate

        Returns:
            (level, category) tuple
        """
        loads_per_minute = loads_per_second * 60
        loads_per_hour = loads_per_second * 3600

        if loads_per_second > 1:
            return 'extreme', 'extreme_frequency'
        elif loads_per_minute > 60:
            return 'very_high', 'very_high_frequency'
        elif loads_per_minute > 4:
            return 'high', 'high_frequency'
        elif loads_per_minute > 1:
            return 'frequent', 'frequent'
        elif loads_per_hour > 1:
            return 'moderate', 'moderate'
        else:
            return 'low', 'low_frequency'
