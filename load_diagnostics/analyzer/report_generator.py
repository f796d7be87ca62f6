# load_diagnostics/analyzer/report_generator.py - Report generation
"""
Generates human-readable reports from analysis results.

One renderer per result kind; render() dispatches on the result's kind tag.
"""

from typing import Callable, Dict, List
from datetime import datetime
import json
import logging

from load_diagnostics.analyzer.insight_synthesizer import Insight
from load_diagnostics.analyzer.phase_analyzer import PhaseStatistics
from load_diagnostics.analyzer.results import (
    ErrorResult,
    FrequencyOverview,
    NoDataResult,
    TableAnalysis,
)
from load_diagnostics.utils.helpers import format_bytes, format_duration, format_percent


WIDTH = 80

PRIORITY_MARKERS = {
    'high': '[HIGH]',
    'medium': '[MEDIUM]',
    'info': '[INFO]',
}


class ReportGenerator:
    """
    Generates reports from analysis results in various formats.
    """

    def __init__(self, max_insights: int = 3):
        """
        Initialize the report generator.

        Args:
            max_insights: Number of insights shown in a table report
        """
        self.max_insights = max_insights
        self.logger = logging.getLogger(__name__)

        self._text_renderers: Dict[str, Callable] = {
            'table_frequency': self._render_table_text,
            'frequency_overview': self._render_overview_text,
            'no_data': self._render_no_data_text,
            'error': self._render_error_text,
        }
        self._markdown_renderers: Dict[str, Callable] = {
            'table_frequency': self._render_table_markdown,
            'frequency_overview': self._render_overview_markdown,
            'no_data': self._render_status_markdown,
            'error': self._render_status_markdown,
        }

    def render(self, result) -> str:
        """
        Generate a plain-text report for any result kind.

        Args:
            result: TableAnalysis, FrequencyOverview, NoDataResult or ErrorResult

        Returns:
            Formatted text report
        """
        return self._dispatch(self._text_renderers, result)

    def generate_markdown_report(self, result) -> str:
        """
        Generate a Markdown report for any result kind.

        Args:
            result: Analysis result

        Returns:
            Markdown formatted report
        """
        return self._dispatch(self._markdown_renderers, result)

    def generate_json_report(self, result) -> str:
        """
        Generate a JSON report.

        Args:
            result: Analysis result

        Returns:
            JSON string
        """
        report = {
            'timestamp': datetime.now().isoformat(),
            'analysis': result.to_dict(),
        }

        return json.dumps(report, indent=2, default=str)

    def _dispatch(self, renderers: Dict[str, Callable], result) -> str:
        try:
            renderer = renderers[result.kind]
        except KeyError:
            raise ValueError(f"No renderer for result kind {result.kind!r}") from None
        return renderer(result)

    # Text renderers

    def _header(self, title: str, generated_at: str = None) -> List[str]:
        lines = ["=" * WIDTH, title, "=" * WIDTH]
        if generated_at:
            lines.append(f"Generated at: {generated_at}")
        lines.append("")
        return lines

    def _section(self, title: str) -> List[str]:
        return [title, "-" * WIDTH]

    def _render_table_text(self, analysis: TableAnalysis) -> str:
        lines = self._header(f"Import Frequency Analysis - {analysis.target}", analysis.generated_at)

        stats = analysis.basic_statistics
        lines.extend(self._section("BASIC STATISTICS"))
        lines.append(f"Total Loads: {stats['total_loads']:,}")
        lines.append(f"Success Rate: {format_percent(stats['success_rate'])}")
        lines.append(f"Failed Loads: {stats['failed_count']:,}")
        lines.append(f"Import Types: {stats['import_types']}")
        lines.append(f"Time Span: {stats['time_span_seconds']:.0f}s")
        lines.append(f"Data Processed: {format_bytes(stats['total_bytes_processed'])}")
        lines.append("")

        freq = analysis.frequency_metrics
        lines.extend(self._section("FREQUENCY METRICS"))
        lines.append(f"Loads per Second: {freq.loads_per_second:.2f}")
        lines.append(f"Loads per Minute: {freq.loads_per_minute:.1f}")
        lines.append(f"Frequency Level: {freq.frequency_description}")
        lines.append(f"Average Interval: {freq.avg_interval_seconds:.2f}s")
        if analysis.interval_statistics and analysis.classification:
            interval = analysis.interval_statistics
            classification = analysis.classification
            cv = interval.cv_percent
            lines.append(f"Interval Tier: {classification.frequency_tier.value}")
            lines.append(f"Regularity: {classification.regularity_tier.value} "
                         f"(score {classification.regularity.score:.0f}, {classification.regularity.level})")
            lines.append(f"Interval CV: {format_percent(cv) if cv is not None else 'N/A'}")
        lines.append("")

        perf = analysis.performance
        if perf:
            lines.extend(self._section("PERFORMANCE"))
            lines.append(f"Average Throughput: {perf['throughput_mbps']} MB/s")
            lines.append(f"Throughput Range: {perf['min_throughput_mbps']} - {perf['max_throughput_mbps']} MB/s")
            lines.append("")

        if analysis.phase_statistics is not None:
            phases = analysis.phase_statistics
            lines.extend(self._section("LOAD PHASE DURATIONS"))
            lines.append(f"Analyzed Loads: {phases.analyzed_loads} finished loads")
            lines.append("")
            lines.extend(self._phase_lines("Write Phase", phases.write, show_share=True))
            lines.extend(self._phase_lines("Publish Phase", phases.publish, show_share=True))
            lines.extend(self._phase_lines("Total", phases.total, show_share=False))

        if analysis.backlog is not None:
            backlog = analysis.backlog
            lines.extend(self._section("BACKLOG"))
            lines.append(f"Pending Loads: {backlog['pending']['count']} "
                         f"(max wait {format_duration(backlog['pending']['max_seconds'])})")
            lines.append(f"Running Loads: {backlog['running']['count']} "
                         f"(max running {format_duration(backlog['running']['max_seconds'])})")
            if backlog['long_running_count']:
                lines.append(f"Long-running Loads: {backlog['long_running_count']}")
            lines.append("")

        insights = analysis.insights[:self.max_insights]
        if insights:
            lines.extend(self._section("KEY INSIGHTS"))
            lines.extend(self._insight_lines(insights))

        lines.append("=" * WIDTH)

        return "\n".join(lines)

    def _phase_lines(self, title: str, phase: PhaseStatistics, show_share: bool) -> List[str]:
        lines = [f"  {title}:"]
        lines.append(f"    Average: {phase.avg_duration:.2f}s")
        lines.append(f"    Range: {phase.min_duration:.2f} - {phase.max_duration:.2f}s")
        if show_share:
            lines.append(f"    Share of Total: {format_percent(phase.percentage_of_total)}")
        if phase.slow_count > 0:
            lines.append(f"    Slow Tasks: {phase.slow_count}")
        lines.append("")
        return lines

    def _insight_lines(self, insights: List[Insight]) -> List[str]:
        lines = []
        for i, insight in enumerate(insights, 1):
            lines.append(f"{i}. {PRIORITY_MARKERS[insight.priority.value]} {insight.message}")
            if insight.recommendations:
                lines.append(f"   Recommendation: {insight.recommendations[0]}")
        lines.append("")
        return lines

    def _render_overview_text(self, overview: FrequencyOverview) -> str:
        lines = self._header(f"Import Frequency Overview - {overview.target}", overview.generated_at)

        lines.extend(self._section("SUMMARY"))
        lines.append(f"Tables Analyzed: {len(overview.tables)}")
        if overview.skipped_tables:
            lines.append(f"Tables Skipped (fewer than 2 loads): {overview.skipped_tables}")
        if overview.source_table:
            lines.append(f"Source: {overview.source_table}")
        lines.append("")

        lines.extend(self._section("FREQUENCY DISTRIBUTION"))
        for tier, entry in overview.frequency_distribution.items():
            if entry['count']:
                lines.append(f"{tier:<15} {entry['count']}")
        lines.append("")

        lines.extend(self._section("REGULARITY DISTRIBUTION"))
        for tier, count in overview.regularity_distribution.items():
            if count:
                lines.append(f"{tier:<15} {count}")
        lines.append("")

        if overview.tables:
            lines.extend(self._section("TABLES"))
            lines.append(f"{'Table':<40} {'Loads/h':>10} {'Tier':<14} {'Score':>5}")
            for profile in overview.tables[:20]:
                lines.append(
                    f"{profile.entity_key:<40} "
                    f"{profile.interval_stats.loads_per_hour:>10.2f} "
                    f"{profile.classification.frequency_tier.value:<14} "
                    f"{profile.classification.regularity.score:>5.0f}"
                )
            lines.append("")

        if overview.insights:
            lines.extend(self._section("INSIGHTS"))
            lines.extend(self._insight_lines(overview.insights))

        lines.append("=" * WIDTH)

        return "\n".join(lines)

    def _render_no_data_text(self, result: NoDataResult) -> str:
        lines = self._header(f"Import Frequency Analysis - {result.target}")
        lines.append("Status: no_data")
        lines.append(f"No data: {result.message}")
        if result.dropped_rows:
            lines.append(f"Rows dropped during validation: {result.dropped_rows} of {result.total_rows}")
        lines.append("=" * WIDTH)
        return "\n".join(lines)

    def _render_error_text(self, result: ErrorResult) -> str:
        lines = self._header(f"Import Frequency Analysis - {result.target}")
        lines.append("Status: error")
        lines.append(f"Reason: {result.error}")
        lines.append(f"Duration: {result.analysis_duration_ms:.0f}ms")
        lines.append("=" * WIDTH)
        return "\n".join(lines)

    # Markdown renderers

    def _render_table_markdown(self, analysis: TableAnalysis) -> str:
        lines = [f"# Import Frequency Analysis: {analysis.target}"]
        lines.append(f"\n**Generated:** {analysis.generated_at}\n")

        stats = analysis.basic_statistics
        freq = analysis.frequency_metrics
        lines.append("## Summary\n")
        lines.append(f"- **Total Loads:** {stats['total_loads']:,}")
        lines.append(f"- **Success Rate:** {format_percent(stats['success_rate'])}")
        lines.append(f"- **Data Processed:** {format_bytes(stats['total_bytes_processed'])}")
        lines.append(f"- **Frequency:** {freq.frequency_description}")
        if analysis.classification:
            lines.append(f"- **Regularity:** {analysis.classification.regularity_tier.value}")
        lines.append("")

        if analysis.phase_statistics is not None:
            lines.append("## Load Phases\n")
            lines.append("| Phase | Avg (s) | Min (s) | Max (s) | % of Total | Slow |")
            lines.append("|-------|---------|---------|---------|------------|------|")
            for phase in analysis.phase_statistics.phases:
                lines.append(
                    f"| {phase.phase} | {phase.avg_duration:.2f} | {phase.min_duration:.2f} | "
                    f"{phase.max_duration:.2f} | {phase.percentage_of_total:.1f}% | {phase.slow_count} |"
                )
            lines.append("")

        if analysis.insights:
            lines.append("## Insights\n")
            for i, insight in enumerate(analysis.insights, 1):
                lines.append(f"{i}. **{insight.priority.value}** {insight.message}")
                for recommendation in insight.recommendations:
                    lines.append(f"   - {recommendation}")
            lines.append("")

        return "\n".join(lines)

    def _render_overview_markdown(self, overview: FrequencyOverview) -> str:
        lines = [f"# Import Frequency Overview: {overview.target}"]
        lines.append(f"\n**Generated:** {overview.generated_at}\n")

        lines.append("| Table | Loads/h | Tier | Regularity | Success |")
        lines.append("|-------|---------|------|------------|---------|")
        for profile in overview.tables:
            lines.append(
                f"| {profile.entity_key} | {profile.interval_stats.loads_per_hour:.2f} | "
                f"{profile.classification.frequency_tier.value} | "
                f"{profile.classification.regularity.level} | {profile.success_rate:.1f}% |"
            )
        lines.append("")

        if overview.insights:
            lines.append("## Insights\n")
            for i, insight in enumerate(overview.insights, 1):
                lines.append(f"{i}. **{insight.priority.value}** {insight.message}")
            lines.append("")

        return "\n".join(lines)

    def _render_status_markdown(self, result) -> str:
        detail = result.error if result.kind == 'error' else result.message
        return f"# Import Frequency Analysis: {result.target}\n\n**Status:** {result.status}\n\n{detail}\n"

    def generate_summary(self, result) -> str:
        """
        Generate a quick one-line summary string.

        Args:
            result: Analysis result

        Returns:
            Summary string
        """
        if result.kind != 'table_frequency':
            return f"{result.target}: {result.status}"

        stats = result.basic_statistics
        summary = f"{result.target} | Loads: {stats['total_loads']} | "
        summary += f"Success: {format_percent(stats['success_rate'])} | "
        summary += f"Frequency: {result.frequency_metrics.frequency_level}"

        return summary
