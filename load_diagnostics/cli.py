# load_diagnostics/cli.py - Command-line interface
"""
Command-line interface for StarRocks load diagnostics.
"""

import click
import sys
import time
import logging

from load_diagnostics.utils.logger import setup_logging
from load_diagnostics.utils.config import Config
from load_diagnostics.exceptions import ConfigurationError, UpstreamDataError


logger = logging.getLogger(__name__)


def _load_rules(config_file):
    """Load the rule set, exiting with an error message on invalid values."""
    try:
        return Config(config_file).rules()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)


def _write_output(text: str, output):
    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(text)
        click.echo(f"Report written to {output}")
    else:
        click.echo(text)


@click.group()
@click.option('--log-level', default='WARNING', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']))
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.pass_context
def cli(ctx, log_level, log_file):
    """
    StarRocks Load Diagnostics

    Analyzes import frequency and load phase timings from load history rows.
    """
    ctx.ensure_object(dict)

    setup_logging(level=log_level, log_file=log_file)

    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file


@cli.command('analyze-table')
@click.argument('rows_file', type=click.Path())
@click.option('--database', required=True, help='Database name')
@click.option('--table', required=True, help='Table name')
@click.option('--config', type=click.Path(), help='Configuration file')
@click.option('--format', 'output_format', type=click.Choice(['text', 'json', 'markdown']), default='text', help='Report format')
@click.option('--output', type=click.Path(), help='Write the report to a file')
@click.pass_context
def analyze_table(ctx, rows_file, database, table, config, output_format, output):
    """
    Analyze the import frequency and phase timings of one table.

    Example:
        load-diag analyze-table loads.json --database sales --table orders
        load-diag analyze-table loads.csv --database sales --table orders --format markdown
    """
    from load_diagnostics.analyzer.table_analysis import TableLoadAnalyzer
    from load_diagnostics.collector.row_source import FileRowSource

    rules = _load_rules(config)
    analyzer = TableLoadAnalyzer(rules)
    result = analyzer.analyze_from_source(FileRowSource(rows_file), database, table)

    if output_format == 'json':
        text = analyzer.report_generator.generate_json_report(result)
    elif output_format == 'markdown':
        text = analyzer.report_generator.generate_markdown_report(result)
    else:
        text = result.report

    _write_output(text, output)

    if result.status == 'error':
        sys.exit(1)


@cli.command()
@click.argument('rows_file', type=click.Path())
@click.option('--config', type=click.Path(), help='Configuration file')
@click.option('--load-type', help="Only include one load type (e.g. 'STREAM LOAD')")
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']), default='text', help='Report format')
@click.option('--output', type=click.Path(), help='Write the report to a file')
@click.pass_context
def overview(ctx, rows_file, config, load_type, output_format, output):
    """
    Compare the import frequency of every table in a load export.

    Example:
        load-diag overview loads.json
        load-diag overview loads.json --load-type "STREAM LOAD" --format json
    """
    from load_diagnostics.analyzer.overview import FrequencyOverviewAnalyzer
    from load_diagnostics.collector.row_source import FileRowSource

    rules = _load_rules(config)
    analyzer = FrequencyOverviewAnalyzer(rules)
    result = analyzer.analyze_from_source(FileRowSource(rows_file), load_type=load_type)

    if output_format == 'json':
        text = analyzer.report_generator.generate_json_report(result)
    else:
        text = result.report

    _write_output(text, output)

    if result.status == 'error':
        sys.exit(1)


@cli.command()
@click.argument('rows_file', type=click.Path())
@click.option('--database', required=True, help='Database name')
@click.option('--table', required=True, help='Table name')
@click.option('--config', type=click.Path(), help='Configuration file')
@click.option('--format', 'output_format', type=click.Choice(['json', 'prometheus', 'stdout']), default='json', help='Export format')
@click.option('--output-dir', type=click.Path(), help='Output directory (for JSON format)')
@click.option('--port', type=int, help='Port to serve metrics on (for Prometheus format)')
@click.option('--serve', is_flag=True, help='Keep serving Prometheus metrics until interrupted')
@click.pass_context
def export(ctx, rows_file, database, table, config, output_format, output_dir, port, serve):
    """
    Analyze one table and export the result.

    Example:
        load-diag export loads.json --database sales --table orders --format json --output-dir reports
        load-diag export loads.json --database sales --table orders --format prometheus --serve
    """
    from load_diagnostics.analyzer.table_analysis import TableLoadAnalyzer
    from load_diagnostics.collector.row_source import FileRowSource

    cfg = Config(config)
    try:
        rules = cfg.rules()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    analyzer = TableLoadAnalyzer(rules)
    result = analyzer.analyze_from_source(FileRowSource(rows_file), database, table)

    if output_format == 'json':
        from load_diagnostics.exporters.json_exporter import JSONExporter

        exporter = JSONExporter(output_dir or cfg.get('output.output_dir'))
        path = exporter.export_analysis(result)
        click.echo(f"Exported {result.status} result to {path}")

    elif output_format == 'prometheus':
        from load_diagnostics.exporters.prometheus import PrometheusExporter

        exporter = PrometheusExporter(port or cfg.get('output.prometheus_port'))
        exporter.record_analysis(result)

        if serve:
            exporter.start()
            try:
                while True:
                    time.sleep(1)
            except KeyboardInterrupt:
                logger.info("Stopping metrics server...")
        else:
            click.echo(exporter.get_metrics_text())

    else:
        from load_diagnostics.exporters.stdout import StdoutExporter

        exporter = StdoutExporter(max_insights=rules.report_max_insights)
        exporter.print_report(result)
        exporter.print_summary(analyzer.report_generator.generate_summary(result), result.status)

    if result.status == 'error':
        sys.exit(1)


@cli.command()
@click.argument('rows_file', type=click.Path())
def check(rows_file):
    """
    Check that a load export can be read and analyzed.

    Reports usable and dropped rows and the number of tables found.
    """
    from load_diagnostics.collector.event_collector import EventCollector
    from load_diagnostics.collector.row_source import FileRowSource

    try:
        rows = FileRowSource(rows_file).read_rows()
    except UpstreamDataError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    collector = EventCollector()
    timelines = collector.collect(rows)
    usable = collector.last_total - collector.last_dropped

    click.echo(f"Rows read: {collector.last_total}")
    click.echo(f"Usable rows: {usable}")
    click.echo(f"Dropped rows: {collector.last_dropped}")
    click.echo(f"Tables: {len(timelines)}")

    if usable == 0:
        click.echo("\n✗ No usable load rows found")
        sys.exit(1)

    click.echo("\n✓ Load export is usable")


if __name__ == '__main__':
    cli(obj={})
