# load_diagnostics/analyzer/profile_analyzer.py - Load concurrency and pattern detection
"""
Detects completion bursts and recognisable import patterns.
"""

from collections import Counter
from typing import Dict, List, Optional, Sequence
import statistics
import logging

from load_diagnostics.analyzer.frequency_analyzer import FrequencyMetrics
from load_diagnostics.collector.records import LoadState, OperationRecord


PATTERN_RECOMMENDATIONS = {
    'bulk_parallel_import': (
        'Monitor peak system resource usage',
        'Run large bulk imports during off-peak hours',
        'Tune parallelism to avoid resource contention',
    ),
    'streaming_import': (
        'Set up real-time monitoring and alerting',
        'Tune batch size to balance latency and throughput',
        'Consider Routine Load for more stable streaming ingestion',
    ),
    'uniform_sharding': (
        'Keep the even sharding strategy',
        'Parallelism can be raised moderately',
        'Monitor the processing time of individual shards',
    ),
}


class ProfileAnalyzer:
    """
    Analyzes how loads complete over time and which import pattern they follow.
    """

    def __init__(self):
        """
        Initialize the profile analyzer.
        """
        self.logger = logging.getLogger(__name__)

    def time_distribution(self, records: Sequence[OperationRecord]) -> List[Dict]:
        """
        Count finished loads per second of completion.

        Args:
            records: Load records of one table

        Returns:
            List of {finish_time, job_count, percentage} sorted by finish time
        """
        finished = [
            r.finished_at.replace(microsecond=0)
            for r in records
            if r.state is LoadState.FINISHED and r.finished_at is not None
        ]

        if not finished:
            return []

        counts = Counter(finished)
        total = len(records)

        return [
            {
                'finish_time': second.isoformat(),
                'job_count': count,
                'percentage': round(count * 100.0 / total, 1),
            }
            for second, count in sorted(counts.items())
        ]

    def analyze_concurrency(self, distribution: List[Dict], total_loads: int) -> Optional[Dict]:
        """
        Analyze completion concurrency from a time distribution.

        Args:
            distribution: Output of time_distribution
            total_loads: Number of loads of the table

        Returns:
            Dictionary with concurrency figures or None without completions
        """
        if not distribution:
            return None

        peak = max(distribution, key=lambda item: item['job_count'])
        avg_jobs = total_loads / len(distribution)
        counts = [item['job_count'] for item in distribution]
        std_dev = statistics.pstdev(counts, mu=avg_jobs)

        return {
            'peak_time': peak['finish_time'],
            'peak_concurrent_jobs': peak['job_count'],
            'time_span_seconds': len(distribution),
            'avg_jobs_per_second': round(avg_jobs, 1),
            'completion_std_dev': round(std_dev, 2),
            'concurrency_level': self._concurrency_level(peak['job_count'], avg_jobs),
        }

    def identify_patterns(self, basic_stats: Dict, metrics: FrequencyMetrics,
                          size_stats: Optional[Dict]) -> Dict:
        """
        Identify known import patterns.

        Args:
            basic_stats: Basic statistics of the table
            metrics: Rate-based frequency metrics
            size_stats: Size statistics, if available

        Returns:
            Dictionary with identified patterns and the primary one
        """
        patterns = []
        total_loads = basic_stats.get('total_loads', 0)

        if total_loads > 100 and metrics.loads_per_second > 10:
            patterns.append({
                'type': 'bulk_parallel_import',
                'confidence': 0.9,
                'description': 'Bulk parallel import',
                'characteristics': [
                    f"{total_loads} loads imported in parallel",
                    f"{metrics.loads_per_second:.2f} loads per second",
                ],
                'recommendations': list(PATTERN_RECOMMENDATIONS['bulk_parallel_import']),
            })

        if metrics.frequency_level == 'high' and total_loads > 10:
            patterns.append({
                'type': 'streaming_import',
                'confidence': 0.8,
                'description': 'Streaming import',
                'characteristics': [
                    f"High frequency ({metrics.loads_per_minute:.1f} loads per minute)",
                    'Suited to real-time data processing',
                ],
                'recommendations': list(PATTERN_RECOMMENDATIONS['streaming_import']),
            })

        if size_stats and size_stats['variation_coefficient'] < 10:
            patterns.append({
                'type': 'uniform_sharding',
                'confidence': 0.85,
                'description': 'Uniformly sharded import',
                'characteristics': [
                    f"Load size variation coefficient {size_stats['variation_coefficient']}%",
                    'Data is evenly sharded',
                ],
                'recommendations': list(PATTERN_RECOMMENDATIONS['uniform_sharding']),
            })

        return {
            'identified_patterns': patterns,
            'primary_pattern': patterns[0] if patterns else None,
        }

    @staticmethod
    def _concurrency_level(peak_jobs: int, avg_jobs: float) -> str:
        """
        Classify completion burstiness.

        Args:
            peak_jobs: Loads completed in the busiest second
            avg_jobs: Average loads completed per occupied second

        Returns:
            Concurrency level string
        """
        if peak_jobs > avg_jobs * 3:
            return 'high_burst'
        elif peak_jobs > avg_jobs * 2:
            return 'moderate_burst'
        else:
            return 'steady'
