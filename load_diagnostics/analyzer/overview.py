# load_diagnostics/analyzer/overview.py - Multi-table import frequency overview
"""
Compares the import frequency of every table that was loaded recently.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union
import time
import logging

from load_diagnostics.analyzer.frequency_analyzer import FrequencyAnalyzer, FrequencyTier, RegularityTier
from load_diagnostics.analyzer.insight_synthesizer import InsightSynthesizer
from load_diagnostics.analyzer.report_generator import ReportGenerator
from load_diagnostics.analyzer.results import (
    ErrorResult,
    FrequencyOverview,
    NoDataResult,
    TableFrequencyProfile,
)
from load_diagnostics.collector.aggregator import success_rate
from load_diagnostics.collector.event_collector import EntityTimeline, EventCollector
from load_diagnostics.collector.records import LoadState
from load_diagnostics.collector.row_source import RowSource
from load_diagnostics.exceptions import UpstreamDataError
from load_diagnostics.utils.config import RuleSet, DEFAULT_RULES


ANALYSIS_TYPE = 'import_frequency_overview'

OverviewResult = Union[FrequencyOverview, NoDataResult, ErrorResult]


class FrequencyOverviewAnalyzer:
    """
    Builds frequency profiles for many tables and summarizes them.
    """

    def __init__(self, rules: RuleSet = DEFAULT_RULES, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the overview analyzer.

        Args:
            rules: Thresholds used by the analyzers
            clock: Callable returning the current time (defaults to datetime.now)
        """
        self.rules = rules
        self.clock = clock or datetime.now

        self.collector = EventCollector()
        self.frequency_analyzer = FrequencyAnalyzer()
        self.synthesizer = InsightSynthesizer(rules)
        self.report_generator = ReportGenerator(max_insights=rules.report_max_insights)

        self.logger = logging.getLogger(__name__)

    def analyze(self, rows: Iterable[Mapping[str, Any]], target: str = 'all tables',
                source_table: Optional[str] = None) -> OverviewResult:
        """
        Analyze the import frequency of every table in a row batch.

        Args:
            rows: Raw load rows of many tables
            target: Label used in the report
            source_table: Name of the table the rows came from, for the report

        Returns:
            FrequencyOverview, or NoDataResult when no usable row remains
        """
        started = time.perf_counter()
        timelines = self.collector.collect(rows)

        if not timelines:
            result = NoDataResult(
                target=target,
                analysis_type=ANALYSIS_TYPE,
                message='No load records found',
                total_rows=self.collector.last_total,
                dropped_rows=self.collector.last_dropped,
                analysis_duration_ms=self._elapsed_ms(started),
            )
            result.report = self.report_generator.render(result)
            return result

        profiles = []
        for timeline in timelines:
            profile = self.build_profile(timeline)
            if profile is not None:
                profiles.append(profile)

        profiles.sort(key=lambda p: (-p.interval_stats.loads_per_hour, p.entity_key))

        result = FrequencyOverview(
            target=target,
            generated_at=self.clock().isoformat(timespec='seconds'),
            tables=profiles,
            frequency_distribution=self._frequency_distribution(profiles),
            regularity_distribution=self._regularity_distribution(profiles),
            insights=self.synthesizer.overview_insights(profiles),
            skipped_tables=len(timelines) - len(profiles),
            source_table=source_table,
        )
        result.analysis_duration_ms = self._elapsed_ms(started)
        result.report = self.report_generator.render(result)

        self.logger.info(f"Frequency overview: {len(profiles)} tables profiled, "
                         f"{result.skipped_tables} skipped")
        return result

    def analyze_from_source(self, source: RowSource, window_days: Optional[int] = None,
                            load_type: Optional[str] = None) -> OverviewResult:
        """
        Fetch recent load rows of all tables and analyze them.

        Args:
            source: Row source to fetch from
            window_days: Look-back window (defaults to the rule set's window)
            load_type: Restrict to one load type (e.g. 'STREAM LOAD')

        Returns:
            FrequencyOverview, NoDataResult or ErrorResult
        """
        started = time.perf_counter()
        window = window_days if window_days is not None else self.rules.window_days

        try:
            rows = source.fetch_loads(window, load_type)
        except UpstreamDataError as e:
            self.logger.error(f"Import frequency overview failed: {e}")
            result = ErrorResult(
                target='all tables',
                analysis_type=ANALYSIS_TYPE,
                error=str(e),
                error_code=e.error_code,
                analysis_duration_ms=self._elapsed_ms(started),
            )
            result.report = self.report_generator.render(result)
            return result

        return self.analyze(rows, source_table=getattr(source, 'last_source_table', None))

    def build_profile(self, timeline: EntityTimeline) -> Optional[TableFrequencyProfile]:
        """
        Build the frequency profile of one table.

        Args:
            timeline: Load records of one table

        Returns:
            TableFrequencyProfile or None when the table has fewer than two loads
        """
        frequency = self.frequency_analyzer.analyze_frequency(timeline)
        if frequency is None:
            return None

        interval_stats, classification = frequency
        success = sum(1 for r in timeline.records if r.state is LoadState.FINISHED)
        failed = sum(1 for r in timeline.records if r.state is LoadState.CANCELLED)

        return TableFrequencyProfile(
            entity_key=timeline.entity_key,
            total_loads=len(timeline),
            success_loads=success,
            failed_loads=failed,
            success_rate=success_rate(success, len(timeline)),
            interval_stats=interval_stats,
            classification=classification,
            first_load=timeline.first.created_at.isoformat(),
            last_load=timeline.last.created_at.isoformat(),
            span_hours=timeline.span_seconds / 3600,
        )

    @staticmethod
    def _frequency_distribution(profiles: List[TableFrequencyProfile]) -> Dict[str, Dict]:
        distribution = {tier.value: {'count': 0, 'tables': []} for tier in FrequencyTier}
        for profile in profiles:
            entry = distribution[profile.classification.frequency_tier.value]
            entry['count'] += 1
            entry['tables'].append(profile.entity_key)
        return distribution

    @staticmethod
    def _regularity_distribution(profiles: List[TableFrequencyProfile]) -> Dict[str, int]:
        distribution = {tier.value: 0 for tier in RegularityTier}
        for profile in profiles:
            distribution[profile.classification.regularity_tier.value] += 1
        return distribution

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000
