# load_diagnostics/analyzer/results.py - Analysis result types
"""
Result types returned by the analyzers.

Each result carries a ``kind`` tag that the report generator dispatches on:

- table_frequency: completed single-table analysis
- frequency_overview: completed multi-table frequency overview
- no_data: nothing usable to analyze
- error: rows could not be fetched
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from load_diagnostics.analyzer.frequency_analyzer import (
    FrequencyClassification,
    FrequencyMetrics,
    IntervalStatistics,
)
from load_diagnostics.analyzer.insight_synthesizer import Insight
from load_diagnostics.analyzer.phase_analyzer import PhaseDurationStatistics


STATUS_COMPLETED = 'completed'
STATUS_NO_DATA = 'no_data'
STATUS_ERROR = 'error'


@dataclass
class TableAnalysis:
    """
    Completed import frequency analysis of one table.
    """
    target: str
    generated_at: str
    basic_statistics: Dict
    frequency_metrics: FrequencyMetrics
    interval_statistics: Optional[IntervalStatistics] = None
    classification: Optional[FrequencyClassification] = None
    phase_statistics: Optional[PhaseDurationStatistics] = None
    size_statistics: Optional[Dict] = None
    performance: Dict = field(default_factory=dict)
    time_distribution: List[Dict] = field(default_factory=list)
    concurrency: Optional[Dict] = None
    patterns: Dict = field(default_factory=dict)
    backlog: Optional[Dict] = None
    insights: List[Insight] = field(default_factory=list)
    analysis_duration_ms: float = 0.0
    report: str = ''
    kind: str = field(default='table_frequency', init=False)
    status: str = field(default=STATUS_COMPLETED, init=False)

    def to_dict(self, include_details: bool = True) -> Dict:
        """
        Convert the analysis to a JSON-friendly dictionary.

        Args:
            include_details: Include the full time distribution (first 10 entries otherwise)

        Returns:
            Dictionary representation
        """
        distribution = self.time_distribution if include_details else self.time_distribution[:10]

        return {
            'table': self.target,
            'analysis_type': self.kind,
            'status': self.status,
            'generated_at': self.generated_at,
            'analysis_duration_ms': round(self.analysis_duration_ms, 2),
            'basic_statistics': self.basic_statistics,
            'frequency_metrics': self.frequency_metrics.to_dict(),
            'interval_statistics': self.interval_statistics.to_dict() if self.interval_statistics else None,
            'frequency_classification': self.classification.to_dict() if self.classification else None,
            'phase_statistics': self.phase_statistics.to_dict() if self.phase_statistics else None,
            'size_statistics': self.size_statistics,
            'performance_analysis': self.performance,
            'time_distribution': distribution,
            'concurrency_analysis': self.concurrency,
            'import_patterns': self.patterns,
            'backlog': self.backlog,
            'insights': [insight.to_dict() for insight in self.insights],
            'report': self.report,
        }


@dataclass
class TableFrequencyProfile:
    """
    Frequency profile of one table inside a multi-table overview.
    """
    entity_key: str
    total_loads: int
    success_loads: int
    failed_loads: int
    success_rate: float
    interval_stats: IntervalStatistics
    classification: FrequencyClassification
    first_load: str
    last_load: str
    span_hours: float

    def to_dict(self) -> Dict:
        data = {
            'table': self.entity_key,
            'total_loads': self.total_loads,
            'success_loads': self.success_loads,
            'failed_loads': self.failed_loads,
            'success_rate': self.success_rate,
            'time_span': {
                'start': self.first_load,
                'end': self.last_load,
                'duration_hours': round(self.span_hours, 1),
            },
        }
        data.update(self.interval_stats.to_dict())
        data.update(self.classification.to_dict())
        return data


@dataclass
class FrequencyOverview:
    """
    Completed import frequency overview across tables.
    """
    target: str
    generated_at: str
    tables: List[TableFrequencyProfile]
    frequency_distribution: Dict[str, Dict]
    regularity_distribution: Dict[str, int]
    insights: List[Insight] = field(default_factory=list)
    skipped_tables: int = 0
    source_table: Optional[str] = None
    analysis_duration_ms: float = 0.0
    report: str = ''
    kind: str = field(default='frequency_overview', init=False)
    status: str = field(default=STATUS_COMPLETED, init=False)

    def to_dict(self) -> Dict:
        return {
            'target': self.target,
            'analysis_type': self.kind,
            'status': self.status,
            'generated_at': self.generated_at,
            'analysis_duration_ms': round(self.analysis_duration_ms, 2),
            'source_table': self.source_table,
            'tables': [profile.to_dict() for profile in self.tables],
            'patterns': {
                'frequency_distribution': self.frequency_distribution,
                'regularity_distribution': self.regularity_distribution,
                'total_tables': len(self.tables),
                'skipped_tables': self.skipped_tables,
            },
            'insights': [insight.to_dict() for insight in self.insights],
            'report': self.report,
        }


@dataclass
class NoDataResult:
    """
    Nothing usable to analyze. Not an error.
    """
    target: str
    analysis_type: str
    message: str
    total_rows: int = 0
    dropped_rows: int = 0
    analysis_duration_ms: float = 0.0
    report: str = ''
    kind: str = field(default='no_data', init=False)
    status: str = field(default=STATUS_NO_DATA, init=False)

    @property
    def insights(self) -> List[Insight]:
        return []

    def to_dict(self) -> Dict:
        return {
            'target': self.target,
            'analysis_type': self.analysis_type,
            'status': self.status,
            'message': self.message,
            'total_rows': self.total_rows,
            'dropped_rows': self.dropped_rows,
            'analysis_duration_ms': round(self.analysis_duration_ms, 2),
            'insights': [],
            'report': self.report,
        }


@dataclass
class ErrorResult:
    """
    The rows for the analysis could not be fetched.
    """
    target: str
    analysis_type: str
    error: str
    error_code: str = ''
    analysis_duration_ms: float = 0.0
    report: str = ''
    kind: str = field(default='error', init=False)
    status: str = field(default=STATUS_ERROR, init=False)

    @property
    def insights(self) -> List[Insight]:
        return []

    def to_dict(self) -> Dict:
        return {
            'target': self.target,
            'analysis_type': self.analysis_type,
            'status': self.status,
            'error': self.error,
            'error_code': self.error_code,
            'analysis_duration_ms': round(self.analysis_duration_ms, 2),
            'insights': [],
            'report': self.report,
        }
