# load_diagnostics/collector/aggregator.py - Load aggregation and statistics
"""
Aggregates load records and computes descriptive statistics.
Provides the basic counts, data volume, size consistency and throughput
figures that accompany the frequency and phase analysis.
"""

from typing import Dict, List, Optional, Sequence
import statistics
import logging

from load_diagnostics.collector.records import LoadState, OperationRecord


BYTES_PER_MB = 1024.0 * 1024.0
BYTES_PER_GB = 1024.0 * 1024.0 * 1024.0


def success_rate(success_count: int, total_count: int) -> float:
    """
    Percentage of finished loads, rounded to one decimal.

    Cancelled, pending and unknown loads all count towards the total.

    Args:
        success_count: Number of finished loads
        total_count: Number of loads

    Returns:
        Success rate in percent (0.0 when there are no loads)
    """
    if total_count <= 0:
        return 0.0
    return round(success_count / total_count * 100, 1)


class LoadAggregator:
    """
    Aggregates load records and computes statistics.

    Summaries are pure functions of the records handed in; the aggregator
    holds no state between calls.
    """

    def __init__(self):
        """
        Initialize the load aggregator.
        """
        self.logger = logging.getLogger(__name__)

    def get_summary(self, records: Sequence[OperationRecord]) -> Dict:
        """
        Get basic statistics for a set of loads.

        Args:
            records: Load records of one table

        Returns:
            Dictionary with basic statistics
        """
        total = len(records)
        counts = {state: 0 for state in LoadState}
        for record in records:
            counts[record.state] += 1

        summary = {
            'total_loads': total,
            'success_count': counts[LoadState.FINISHED],
            'failed_count': counts[LoadState.CANCELLED],
            'pending_count': counts[LoadState.PENDING],
            'running_count': counts[LoadState.RUNNING],
            'unknown_count': counts[LoadState.UNKNOWN],
            'success_rate': success_rate(counts[LoadState.FINISHED], total),
            'first_load': None,
            'last_load': None,
            'time_span_seconds': 0.0,
            'total_bytes_processed': 0,
            'avg_bytes_per_load': None,
            'import_types': 'N/A',
        }

        if not records:
            return summary

        created = [r.created_at for r in records]
        summary['first_load'] = min(created).isoformat()
        summary['last_load'] = max(created).isoformat()
        summary['time_span_seconds'] = (max(created) - min(created)).total_seconds()

        sizes = [r.size_bytes for r in records if r.size_bytes is not None]
        if sizes:
            summary['total_bytes_processed'] = sum(sizes)
            summary['avg_bytes_per_load'] = statistics.mean(sizes)

        types = sorted({r.load_type for r in records if r.load_type})
        if types:
            summary['import_types'] = ', '.join(types)

        return summary

    def get_size_stats(self, records: Sequence[OperationRecord]) -> Optional[Dict]:
        """
        Get load size statistics.

        Args:
            records: Load records of one table

        Returns:
            Dictionary with size statistics or None if no record has a size
        """
        sizes = [r.size_bytes for r in records if r.size_bytes is not None]

        if not sizes:
            return None

        avg_size = statistics.mean(sizes)
        size_stddev = statistics.pstdev(sizes)
        variation = (size_stddev / avg_size) * 100 if avg_size else 0.0

        return {
            'sample_count': len(sizes),
            'min_size': min(sizes),
            'max_size': max(sizes),
            'avg_size': avg_size,
            'size_stddev': size_stddev,
            'variation_coefficient': round(variation, 1),
            'consistency_level': self._consistency_level(variation),
        }

    def get_performance(self, records: Sequence[OperationRecord], summary: Dict) -> Dict:
        """
        Evaluate load throughput.

        Throughput is averaged per load over records that have a size and a
        positive start-to-finish duration.

        Args:
            records: Load records of one table
            summary: Output of get_summary for the same records

        Returns:
            Dictionary with throughput figures
        """
        throughputs = self._throughputs(records)

        return {
            'total_data_gb': round(summary.get('total_bytes_processed', 0) / BYTES_PER_GB, 2),
            'throughput_mbps': round(statistics.mean(throughputs), 1) if throughputs else 0.0,
            'min_throughput_mbps': round(min(throughputs), 1) if throughputs else 0.0,
            'max_throughput_mbps': round(max(throughputs), 1) if throughputs else 0.0,
            'measured_loads': len(throughputs),
            'success_rate': summary.get('success_rate', 0.0),
        }

    def _throughputs(self, records: Sequence[OperationRecord]) -> List[float]:
        values = []
        for record in records:
            duration = record.total_duration
            if record.size_bytes is None or duration is None or duration <= 0:
                continue
            values.append(record.size_bytes / BYTES_PER_MB / duration)
        return values

    @staticmethod
    def _consistency_level(variation: float) -> str:
        """
        Classify size consistency from the coefficient of variation.

        Args:
            variation: Coefficient of variation in percent

        Returns:
            Consistency level string
        """
        if variation < 5:
            return 'excellent'
        elif variation < 15:
            return 'good'
        elif variation < 30:
            return 'fair'
        else:
            return 'poor'
