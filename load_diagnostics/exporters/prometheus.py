# load_diagnostics/exporters/prometheus.py - Prometheus metrics exporter
"""
Exports load diagnostics metrics in Prometheus format.
Provides HTTP endpoint for Prometheus to scrape.
"""

from prometheus_client import CollectorRegistry, Gauge, generate_latest, start_http_server
from typing import Optional
import logging

from load_diagnostics.analyzer.insight_synthesizer import Priority


class PrometheusExporter:
    """
    Exports analysis metrics to Prometheus.

    Each exporter publishes into its own registry.
    """

    def __init__(self, port: int = 9090, registry: Optional[CollectorRegistry] = None):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
            registry: Registry to publish into (a fresh one by default)
        """
        self.port = port
        self.registry = registry or CollectorRegistry()
        self.logger = logging.getLogger(__name__)

        self.loads_per_hour = Gauge(
            'load_diag_loads_per_hour',
            'Loads per hour derived from the mean interval',
            ['table'],
            registry=self.registry
        )

        self.mean_interval = Gauge(
            'load_diag_mean_interval_seconds',
            'Mean interval between consecutive loads',
            ['table'],
            registry=self.registry
        )

        self.interval_cv = Gauge(
            'load_diag_interval_cv_percent',
            'Coefficient of variation of load intervals',
            ['table'],
            registry=self.registry
        )

        self.regularity_score = Gauge(
            'load_diag_regularity_score',
            'Regularity score of load intervals (0-100)',
            ['table'],
            registry=self.registry
        )

        self.success_rate = Gauge(
            'load_diag_success_rate_percent',
            'Share of finished loads',
            ['table'],
            registry=self.registry
        )

        self.phase_duration = Gauge(
            'load_diag_phase_mean_duration_seconds',
            'Mean duration of a load phase',
            ['table', 'phase'],
            registry=self.registry
        )

        self.phase_slow_count = Gauge(
            'load_diag_phase_slow_loads',
            'Loads slower than the outlier threshold per phase',
            ['table', 'phase'],
            registry=self.registry
        )

        self.insight_count = Gauge(
            'load_diag_insights',
            'Number of insights per priority',
            ['table', 'priority'],
            registry=self.registry
        )

        self.logger.info(f"Prometheus exporter initialized on port {port}")

    def start(self):
        """
        Start the Prometheus HTTP server.
        """
        try:
            start_http_server(self.port, registry=self.registry)
            self.logger.info(f"Prometheus metrics available at http://localhost:{self.port}/metrics")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")
            raise

    def record_analysis(self, result):
        """
        Record the metrics of an analysis result.

        No-data and error results carry no metrics and are skipped.

        Args:
            result: TableAnalysis or FrequencyOverview
        """
        if result.kind == 'table_frequency':
            self._record_table(result)
        elif result.kind == 'frequency_overview':
            for profile in result.tables:
                table = profile.entity_key
                self._record_intervals(table, profile.interval_stats, profile.classification)
                self.success_rate.labels(table=table).set(profile.success_rate)
        else:
            self.logger.debug(f"Nothing to record for {result.target} ({result.status})")
            return

        self._record_insights(result.target, result.insights)

    def _record_table(self, analysis):
        table = analysis.target

        self.success_rate.labels(table=table).set(analysis.basic_statistics['success_rate'])

        if analysis.interval_statistics is not None:
            self._record_intervals(table, analysis.interval_statistics, analysis.classification)

        if analysis.phase_statistics is not None:
            for phase in analysis.phase_statistics.phases:
                self.phase_duration.labels(table=table, phase=phase.phase).set(phase.avg_duration)
                self.phase_slow_count.labels(table=table, phase=phase.phase).set(phase.slow_count)

    def _record_intervals(self, table: str, stats, classification):
        self.loads_per_hour.labels(table=table).set(stats.loads_per_hour)
        self.mean_interval.labels(table=table).set(stats.mean)
        if stats.cv_percent is not None:
            self.interval_cv.labels(table=table).set(stats.cv_percent)
        if classification is not None:
            self.regularity_score.labels(table=table).set(classification.regularity.score)

    def _record_insights(self, table: str, insights):
        for priority in Priority:
            count = sum(1 for insight in insights if insight.priority is priority)
            self.insight_count.labels(table=table, priority=priority.value).set(count)

    def get_metrics_text(self) -> str:
        """
        Get current metrics in Prometheus text format.

        Returns:
            Metrics as text
        """
        return generate_latest(self.registry).decode('utf-8')
