# tests/test_exporters.py - Tests for exporters
"""
Unit tests for the JSON, Prometheus and stdout exporters.
"""

import json

import pytest
from load_diagnostics.analyzer.overview import FrequencyOverviewAnalyzer
from load_diagnostics.analyzer.table_analysis import TableLoadAnalyzer
from load_diagnostics.exporters.json_exporter import JSONExporter
from load_diagnostics.exporters.prometheus import PrometheusExporter
from load_diagnostics.exporters.stdout import StdoutExporter


@pytest.fixture
def table_result(make_row, fixed_clock):
    rows = [make_row(i * 60) for i in range(10)]
    return TableLoadAnalyzer(clock=fixed_clock).analyze(rows)


class TestJSONExporter:
    """Test cases for JSONExporter"""

    def test_export_analysis(self, table_result, tmp_path):
        """Test writing an analysis to a named file"""
        exporter = JSONExporter(str(tmp_path / 'out'))

        path = exporter.export_analysis(table_result, 'orders.json')

        with open(path) as f:
            data = json.load(f)
        assert data['status'] == 'completed'
        assert data['analysis']['table'] == 'sales.orders'
        assert 'timestamp' in data

    def test_generated_filename(self, fixed_clock, tmp_path):
        """Test the filename is generated from kind and target"""
        result = TableLoadAnalyzer(clock=fixed_clock).analyze([], target='sales.orders')

        path = JSONExporter(str(tmp_path)).export_analysis(result)

        assert 'no_data_sales_orders_' in path


class TestPrometheusExporter:
    """Test cases for PrometheusExporter"""

    def test_table_metrics(self, table_result):
        """Test gauges recorded from a table analysis"""
        exporter = PrometheusExporter()
        exporter.record_analysis(table_result)

        text = exporter.get_metrics_text()

        assert 'load_diag_loads_per_hour{table="sales.orders"} 60.0' in text
        assert 'load_diag_mean_interval_seconds{table="sales.orders"} 60.0' in text
        assert 'load_diag_success_rate_percent{table="sales.orders"} 100.0' in text
        assert 'load_diag_phase_mean_duration_seconds{table="sales.orders",phase="write"} 10.0' in text
        assert 'load_diag_insights{table="sales.orders",priority="info"} 2.0' in text

    def test_overview_metrics(self, make_row, fixed_clock):
        """Test gauges recorded per table from an overview"""
        rows = [make_row(i * 30, table='clicks') for i in range(3)]
        overview = FrequencyOverviewAnalyzer(clock=fixed_clock).analyze(rows)

        exporter = PrometheusExporter()
        exporter.record_analysis(overview)

        assert 'load_diag_loads_per_hour{table="sales.clicks"} 120.0' in exporter.get_metrics_text()

    def test_no_data_is_skipped(self, fixed_clock):
        """Test results without data record nothing"""
        exporter = PrometheusExporter()
        exporter.record_analysis(TableLoadAnalyzer(clock=fixed_clock).analyze([]))
        assert 'table=' not in exporter.get_metrics_text()

    def test_separate_registries(self):
        """Test two exporters can coexist"""
        assert PrometheusExporter().registry is not PrometheusExporter().registry


class TestStdoutExporter:
    """Test cases for StdoutExporter"""

    def test_print_report(self, table_result, capsys):
        """Test the report and top insights are printed"""
        StdoutExporter(use_colors=False).print_report(table_result)

        out = capsys.readouterr().out
        assert 'Import Frequency Analysis - sales.orders' in out
        assert 'Top insights' in out
        assert '1. [INFO]' in out

    def test_print_summary(self, capsys):
        """Test the status summary line"""
        StdoutExporter(use_colors=False).print_summary('sales.orders: error', 'error')
        assert capsys.readouterr().out.strip() == 'sales.orders: error'
