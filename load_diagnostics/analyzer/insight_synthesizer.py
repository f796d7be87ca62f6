# load_diagnostics/analyzer/insight_synthesizer.py - Insight generation
"""
Turns frequency, phase and reliability statistics into insights.

Every rule is evaluated on its own, so one call can produce any number of
insights. Insights come out in rule order: phase insights, then frequency,
then reliability.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from load_diagnostics.analyzer.frequency_analyzer import FrequencyMetrics, FrequencyTier
from load_diagnostics.analyzer.phase_analyzer import PhaseDurationStatistics
from load_diagnostics.utils.config import RuleSet, DEFAULT_RULES


class Priority(Enum):
    """Insight priority, most urgent first."""
    HIGH = 'high'
    MEDIUM = 'medium'
    INFO = 'info'

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.INFO: 2}


@dataclass(frozen=True)
class Insight:
    """
    A single finding with its recommendations.
    """
    type: str
    priority: Priority
    message: str
    recommendations: Tuple[str, ...]
    implications: Tuple[str, ...] = ()
    phase: Optional[str] = None
    details: Dict = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict:
        data = {
            'type': self.type,
            'priority': self.priority.value,
            'message': self.message,
            'implications': list(self.implications),
            'recommendations': list(self.recommendations),
        }
        if self.phase:
            data['phase'] = self.phase
        if self.details:
            data['details'] = self.details
        return data


PHASE_LABELS = {
    'write': 'Write',
    'publish': 'Publish',
    'total': 'Total',
}

SLOW_TASK_RECOMMENDATIONS = {
    'write': (
        'Analyze the data characteristics and system state of the slow write tasks',
        'Check disk I/O and memory pressure on the backends during slow writes',
    ),
    'publish': (
        'Check metadata service and version management performance',
        'Look for tablets with many versions waiting to be published',
    ),
    'total': (
        'Compare slow loads with cluster load at the time they ran',
        'Review load batch sizes for the slowest loads',
    ),
}


def top_insights(insights: Sequence[Insight], n: int) -> List[Insight]:
    """
    Pick the N most urgent insights.

    The sort is stable, so insights of equal priority keep generation order.

    Args:
        insights: Insights in generation order
        n: Maximum number of insights to return

    Returns:
        List of at most n insights
    """
    if n <= 0:
        return []
    return sorted(insights, key=lambda i: i.priority.rank)[:n]


class InsightSynthesizer:
    """
    Generates insights from load statistics.
    """

    def __init__(self, rules: RuleSet = DEFAULT_RULES):
        """
        Initialize the insight synthesizer.

        Args:
            rules: Thresholds used by the rules
        """
        self.rules = rules
        self.logger = logging.getLogger(__name__)

    def synthesize(self, basic_stats: Dict, frequency_metrics: Optional[FrequencyMetrics],
                   phase_stats: Optional[PhaseDurationStatistics]) -> List[Insight]:
        """
        Generate insights for one table.

        Args:
            basic_stats: Basic statistics (success_rate is used)
            frequency_metrics: Rate-based frequency metrics, if available
            phase_stats: Phase duration statistics, if available

        Returns:
            List of insights in rule order
        """
        insights: List[Insight] = []

        if phase_stats is not None:
            insights.extend(self.phase_insights(phase_stats))

        if frequency_metrics is not None:
            insights.extend(self.frequency_insights(frequency_metrics))

        insights.extend(self.reliability_insights(basic_stats.get('success_rate')))

        self.logger.debug(f"Generated {len(insights)} insights")
        return insights

    def phase_insights(self, phase_stats: PhaseDurationStatistics) -> List[Insight]:
        """
        Phase bottleneck, slow task and balance insights.

        Args:
            phase_stats: Phase duration statistics

        Returns:
            List of insights
        """
        insights = []
        write_pct = phase_stats.write.percentage_of_total
        publish_pct = phase_stats.publish.percentage_of_total

        if write_pct > self.rules.write_bottleneck_percent:
            insights.append(Insight(
                type='phase_bottleneck',
                priority=Priority.HIGH,
                phase='write',
                message=f"Write phase takes too large a share of load time ({write_pct:.1f}%)",
                implications=('Loads spend most of their time writing data to the backends',),
                recommendations=(
                    'Optimize data write performance; check disk I/O and memory configuration',
                ),
            ))

        if publish_pct > self.rules.publish_bottleneck_percent:
            insights.append(Insight(
                type='phase_bottleneck',
                priority=Priority.HIGH,
                phase='publish',
                message=f"Publish phase takes a high share of load time ({publish_pct:.1f}%)",
                implications=('Version publishing or metadata updates are slowing loads down',),
                recommendations=(
                    'Check transaction commit performance for version publish or metadata update bottlenecks',
                ),
            ))

        for phase in phase_stats.phases:
            if phase.slow_count > 0:
                label = PHASE_LABELS[phase.phase]
                insights.append(Insight(
                    type='phase_slow_tasks',
                    priority=Priority.HIGH,
                    phase=phase.phase,
                    message=(
                        f"Found {phase.slow_count} slow {label.lower()} tasks "
                        f"(over {phase.slow_threshold:.2f}s, {self.rules.slow_outlier_factor:g}x the mean)"
                    ),
                    implications=(f"{label} phase durations have outliers well above the mean",),
                    recommendations=SLOW_TASK_RECOMMENDATIONS[phase.phase],
                ))

        write_low, write_high = self.rules.balanced_write_range
        publish_low, publish_high = self.rules.balanced_publish_range
        if write_low < write_pct < write_high and publish_low < publish_pct < publish_high:
            insights.append(Insight(
                type='phase_balanced',
                priority=Priority.INFO,
                phase='overall',
                message='Load phase durations are evenly distributed',
                implications=('No single phase dominates load time',),
                recommendations=('Current configuration is reasonable; keep it',),
            ))

        return insights

    def frequency_insights(self, metrics: FrequencyMetrics) -> List[Insight]:
        """
        Insights on the load rate.

        Args:
            metrics: Rate-based frequency metrics

        Returns:
            List of insights
        """
        if metrics.frequency_level != 'extreme':
            return []

        return [Insight(
            type='extreme_frequency',
            priority=Priority.HIGH,
            message=f"Extremely frequent loads detected ({metrics.loads_per_second:.2f} loads/s)",
            implications=(
                'Possibly a bulk data migration or a performance test',
                'System resources must keep up with the load rate',
                'I/O and network performance are under pressure',
            ),
            recommendations=(
                'Monitor system resource usage',
                'Evaluate whether load concurrency needs adjusting',
                'Consider larger load batches',
            ),
        )]

    def reliability_insights(self, success_rate: Optional[float]) -> List[Insight]:
        """
        Insights on the load success rate.

        Args:
            success_rate: Success rate in percent, rounded to one decimal

        Returns:
            List of insights
        """
        if success_rate is None:
            return []

        if success_rate == 100:
            return [Insight(
                type='reliability_perfect',
                priority=Priority.INFO,
                message='Load reliability is perfect (100% success rate)',
                implications=(
                    'The load pipeline is very stable',
                    'Data quality and format are good',
                ),
                recommendations=(
                    'Keep the current data processing flow',
                    'Set up success rate monitoring and alerting',
                ),
            )]

        if success_rate < self.rules.reliability_concern_below:
            return [Insight(
                type='reliability_concern',
                priority=Priority.MEDIUM,
                message=f"Load success rate is low ({success_rate:.1f}%)",
                implications=(
                    'Data quality or system problems are causing failures',
                    'Data completeness may be affected',
                ),
                recommendations=(
                    'Review the error logs of failed loads',
                    'Improve data validation and cleansing',
                    'Improve error handling and retry logic',
                ),
            )]

        return []

    def overview_insights(self, profiles: Sequence) -> List[Insight]:
        """
        Insights across many tables.

        Args:
            profiles: TableFrequencyProfile objects sorted by loads per hour

        Returns:
            List of insights
        """
        limit = self.rules.insight_table_limit

        if not profiles:
            return [Insight(
                type='no_data',
                priority=Priority.INFO,
                message='Not enough load history to analyze import frequency',
                recommendations=('Check a longer time range or confirm that loads are running',),
            )]

        insights = []

        frequent = [
            p for p in profiles
            if p.classification.frequency_tier in (FrequencyTier.EXTREME, FrequencyTier.VERY_HIGH)
        ]
        if frequent:
            insights.append(Insight(
                type='high_frequency_import',
                priority=Priority.MEDIUM,
                message=f"Found {len(frequent)} tables loaded at intervals under 1 minute",
                recommendations=('Merge small load batches to improve efficiency and reduce system load',),
                details={'tables': [
                    {
                        'table': p.entity_key,
                        'interval_seconds': round(p.interval_stats.mean, 2),
                        'loads_per_hour': round(p.interval_stats.loads_per_hour, 2),
                    }
                    for p in frequent[:limit]
                ]},
            ))

        irregular = [p for p in profiles if p.classification.regularity.score < self.rules.irregular_score_below]
        if irregular:
            insights.append(Insight(
                type='irregular_import_pattern',
                priority=Priority.MEDIUM,
                message=f"Found {len(irregular)} tables with irregular load patterns",
                recommendations=('Schedule loads at a steadier cadence',),
                details={'tables': [
                    {
                        'table': p.entity_key,
                        'regularity_score': int(round(p.classification.regularity.score)),
                        'cv_percent': p.interval_stats.to_dict()['cv_percent'],
                    }
                    for p in irregular[:limit]
                ]},
            ))

        unreliable = [p for p in profiles if p.success_rate < self.rules.reliability_concern_below]
        if unreliable:
            insights.append(Insight(
                type='low_success_rate',
                priority=Priority.MEDIUM,
                message=f"Found {len(unreliable)} tables with a low load success rate",
                recommendations=('Check data format, network connectivity and system resources',),
                details={'tables': [
                    {
                        'table': p.entity_key,
                        'success_rate': p.success_rate,
                        'total_loads': p.total_loads,
                        'failed_loads': p.failed_loads,
                    }
                    for p in unreliable[:limit]
                ]},
            ))

        total_per_hour = sum(p.interval_stats.loads_per_hour for p in profiles)
        if total_per_hour > self.rules.high_system_load_per_hour:
            insights.append(Insight(
                type='high_system_load',
                priority=Priority.HIGH,
                message=f"Total import load is high: {total_per_hour:.0f} loads per hour",
                recommendations=('Monitor system resources; consider rescheduling loads or scaling out',),
                details={
                    'total_loads_per_hour': int(round(total_per_hour)),
                    'active_tables': len(profiles),
                    'avg_loads_per_table': round(total_per_hour / len(profiles), 1),
                },
            ))

        top = list(profiles[:self.rules.top_active_tables])
        if top:
            insights.append(Insight(
                type='most_active_tables',
                priority=Priority.INFO,
                message='Most actively loaded tables',
                recommendations=('Watch performance and resource usage of these tables closely',),
                details={'tables': [
                    {
                        'table': p.entity_key,
                        'loads_per_hour': round(p.interval_stats.loads_per_hour, 2),
                        'frequency_tier': p.classification.frequency_tier.value,
                        'regularity': p.classification.regularity.level,
                    }
                    for p in top
                ]},
            ))

        return insights
