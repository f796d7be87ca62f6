# load_diagnostics/analyzer/table_analysis.py - Single-table import analysis
"""
Runs the full import frequency and task timing analysis for one table.

Rows flow one way: raw rows -> records -> statistics -> insights -> report.
"""

from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Union
import time
import logging

from load_diagnostics.analyzer.frequency_analyzer import FrequencyAnalyzer
from load_diagnostics.analyzer.insight_synthesizer import InsightSynthesizer
from load_diagnostics.analyzer.phase_analyzer import PhaseAnalyzer
from load_diagnostics.analyzer.profile_analyzer import ProfileAnalyzer
from load_diagnostics.analyzer.report_generator import ReportGenerator
from load_diagnostics.analyzer.results import ErrorResult, NoDataResult, TableAnalysis
from load_diagnostics.collector.aggregator import LoadAggregator
from load_diagnostics.collector.event_collector import EntityTimeline, EventCollector
from load_diagnostics.collector.pending_tracker import PendingTracker
from load_diagnostics.collector.row_source import RowSource
from load_diagnostics.exceptions import UpstreamDataError
from load_diagnostics.utils.config import RuleSet, DEFAULT_RULES


ANALYSIS_TYPE = 'table_frequency_analysis'

TableResult = Union[TableAnalysis, NoDataResult, ErrorResult]


class TableLoadAnalyzer:
    """
    Analyzes the loads of one table end to end.

    Each call works on its own row batch; nothing is shared between calls.
    """

    def __init__(self, rules: RuleSet = DEFAULT_RULES, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the table analyzer.

        Args:
            rules: Thresholds used by the analyzers
            clock: Callable returning the current time (defaults to datetime.now)
        """
        self.rules = rules
        self.clock = clock or datetime.now

        self.collector = EventCollector()
        self.aggregator = LoadAggregator()
        self.frequency_analyzer = FrequencyAnalyzer()
        self.phase_analyzer = PhaseAnalyzer(rules)
        self.profile_analyzer = ProfileAnalyzer()
        self.pending_tracker = PendingTracker(self.clock, rules.long_running_threshold_seconds)
        self.synthesizer = InsightSynthesizer(rules)
        self.report_generator = ReportGenerator(max_insights=rules.report_max_insights)

        self.logger = logging.getLogger(__name__)

    def analyze(self, rows: Iterable[Mapping[str, Any]], target: Optional[str] = None) -> TableResult:
        """
        Analyze a batch of load rows.

        Args:
            rows: Raw load rows
            target: "database.table" to restrict the analysis to; when omitted
                every usable row is analyzed as one timeline

        Returns:
            TableAnalysis, or NoDataResult when no usable row remains
        """
        started = time.perf_counter()

        records = self.collector.normalize_rows(rows)
        if target:
            wanted = target.lower()
            records = [r for r in records if r.entity_key.lower() == wanted]
        else:
            keys = sorted({r.entity_key for r in records})
            target = keys[0] if len(keys) == 1 else 'all tables'

        if not records:
            result = NoDataResult(
                target=target,
                analysis_type=ANALYSIS_TYPE,
                message=f"No load records found for {target}",
                total_rows=self.collector.last_total,
                dropped_rows=self.collector.last_dropped,
                analysis_duration_ms=self._elapsed_ms(started),
            )
            result.report = self.report_generator.render(result)
            self.logger.info(f"No usable load records for {target}")
            return result

        self.logger.info(f"Analyzing {len(records)} loads of {target}")

        timeline = EntityTimeline(target, tuple(sorted(records, key=lambda r: r.sort_key)))

        basic_stats = self.aggregator.get_summary(timeline.records)
        frequency_metrics = self.frequency_analyzer.calculate_frequency_metrics(
            basic_stats['total_loads'],
            basic_stats['time_span_seconds'],
        )

        interval_stats = classification = None
        frequency = self.frequency_analyzer.analyze_frequency(timeline)
        if frequency is not None:
            interval_stats, classification = frequency

        phase_stats = self.phase_analyzer.analyze_phases(timeline.records)
        size_stats = self.aggregator.get_size_stats(timeline.records)
        distribution = self.profile_analyzer.time_distribution(timeline.records)

        result = TableAnalysis(
            target=target,
            generated_at=self.clock().isoformat(timespec='seconds'),
            basic_statistics=basic_stats,
            frequency_metrics=frequency_metrics,
            interval_statistics=interval_stats,
            classification=classification,
            phase_statistics=phase_stats,
            size_statistics=size_stats,
            performance=self.aggregator.get_performance(timeline.records, basic_stats),
            time_distribution=distribution,
            concurrency=self.profile_analyzer.analyze_concurrency(distribution, basic_stats['total_loads']),
            patterns=self.profile_analyzer.identify_patterns(basic_stats, frequency_metrics, size_stats),
            backlog=self.pending_tracker.get_backlog(timeline.records),
            insights=self.synthesizer.synthesize(basic_stats, frequency_metrics, phase_stats),
        )
        result.analysis_duration_ms = self._elapsed_ms(started)
        result.report = self.report_generator.render(result)

        self.logger.info(f"Analysis of {target} completed in {result.analysis_duration_ms:.0f}ms "
                         f"with {len(result.insights)} insights")
        return result

    def analyze_from_source(self, source: RowSource, database: str, table: str,
                            window_days: Optional[int] = None) -> TableResult:
        """
        Fetch the rows of one table and analyze them.

        A fetch failure is reported as an ErrorResult rather than as "no data".

        Args:
            source: Row source to fetch from
            database: Database name
            table: Table name
            window_days: Only analyze loads created in the last N days

        Returns:
            TableAnalysis, NoDataResult or ErrorResult
        """
        target = f"{database}.{table}"
        started = time.perf_counter()

        try:
            rows = source.fetch_table_loads(database, table, window_days)
        except UpstreamDataError as e:
            self.logger.error(f"Table frequency analysis of {target} failed: {e}")
            result = ErrorResult(
                target=target,
                analysis_type=ANALYSIS_TYPE,
                error=str(e),
                error_code=e.error_code,
                analysis_duration_ms=self._elapsed_ms(started),
            )
            result.report = self.report_generator.render(result)
            return result

        return self.analyze(rows, target=target)

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000
