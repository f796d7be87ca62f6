# tests/test_cli.py - Tests for the command-line interface
"""
Tests for the load-diag click commands.
"""

import json
import logging

import pytest
import yaml
from click.testing import CliRunner
from load_diagnostics.cli import cli


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def rows_file(make_row, tmp_path):
    rows = [make_row(i * 60) for i in range(10)]
    rows += [make_row(i * 3600, table='users') for i in range(3)]
    path = tmp_path / 'loads.json'
    path.write_text(json.dumps(rows))
    return str(path)


class TestCli:
    """Test cases for the CLI"""

    def test_analyze_table_text(self, rows_file):
        """Test the default text report"""
        result = CliRunner().invoke(cli, ['analyze-table', rows_file, '--database', 'sales', '--table', 'orders'])

        assert result.exit_code == 0
        assert 'Import Frequency Analysis - sales.orders' in result.output
        assert 'KEY INSIGHTS' in result.output

    def test_analyze_table_json(self, rows_file):
        """Test the JSON report"""
        result = CliRunner().invoke(cli, ['analyze-table', rows_file, '--database', 'sales',
                                          '--table', 'orders', '--format', 'json'])

        assert result.exit_code == 0
        assert '"table": "sales.orders"' in result.output

    def test_analyze_table_to_file(self, rows_file, tmp_path):
        """Test writing a Markdown report to a file"""
        output = tmp_path / 'report.md'
        result = CliRunner().invoke(cli, ['analyze-table', rows_file, '--database', 'sales', '--table', 'orders',
                                          '--format', 'markdown', '--output', str(output)])

        assert result.exit_code == 0
        assert output.read_text().startswith('# Import Frequency Analysis: sales.orders')

    def test_analyze_table_no_data(self, rows_file):
        """Test a table without loads is not an error"""
        result = CliRunner().invoke(cli, ['analyze-table', rows_file, '--database', 'sales', '--table', 'nothing'])

        assert result.exit_code == 0
        assert 'Status: no_data' in result.output

    def test_analyze_table_missing_file(self, tmp_path):
        """Test an unreadable file exits with an error"""
        result = CliRunner().invoke(cli, ['analyze-table', str(tmp_path / 'absent.json'),
                                          '--database', 'sales', '--table', 'orders'])

        assert result.exit_code == 1
        assert 'Status: error' in result.output

    def test_invalid_config(self, rows_file, tmp_path):
        """Test invalid thresholds exit with a usage error"""
        config = tmp_path / 'bad.yaml'
        config.write_text(yaml.safe_dump({'analysis': {'slow_outlier_factor': -1}}))

        result = CliRunner().invoke(cli, ['analyze-table', rows_file, '--database', 'sales',
                                          '--table', 'orders', '--config', str(config)])

        assert result.exit_code == 2

    def test_overview(self, rows_file):
        """Test the overview command"""
        result = CliRunner().invoke(cli, ['overview', rows_file])

        assert result.exit_code == 0
        assert 'Import Frequency Overview' in result.output
        assert 'sales.orders' in result.output

    def test_export_json(self, rows_file, tmp_path):
        """Test exporting to a JSON file"""
        out_dir = tmp_path / 'reports'
        result = CliRunner().invoke(cli, ['export', rows_file, '--database', 'sales', '--table', 'orders',
                                          '--format', 'json', '--output-dir', str(out_dir)])

        assert result.exit_code == 0
        assert len(list(out_dir.glob('table_frequency_sales_orders_*.json'))) == 1

    def test_export_prometheus(self, rows_file):
        """Test printing Prometheus metrics"""
        result = CliRunner().invoke(cli, ['export', rows_file, '--database', 'sales', '--table', 'orders',
                                          '--format', 'prometheus'])

        assert result.exit_code == 0
        assert 'load_diag_loads_per_hour{table="sales.orders"}' in result.output

    def test_export_stdout_summary(self, rows_file):
        """Test the console export ends with the one-line summary"""
        result = CliRunner().invoke(cli, ['export', rows_file, '--database', 'sales', '--table', 'orders',
                                          '--format', 'stdout'])

        assert result.exit_code == 0
        assert 'Top insights' in result.output
        assert 'sales.orders | Loads: 10 | Success: 100.0% | Frequency: frequent' in result.output

    def test_check(self, rows_file, make_row):
        """Test checking a usable export"""
        result = CliRunner().invoke(cli, ['check', rows_file])

        assert result.exit_code == 0
        assert 'Usable rows: 13' in result.output
        assert 'Tables: 2' in result.output

    def test_check_unusable(self, tmp_path):
        """Test checking an export without usable rows"""
        path = tmp_path / 'loads.json'
        path.write_text(json.dumps([{'STATE': 'FINISHED'}]))

        result = CliRunner().invoke(cli, ['check', str(path)])

        assert result.exit_code == 1
        assert 'Dropped rows: 1' in result.output
