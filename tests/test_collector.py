# tests/test_collector.py - Tests for collector module
"""
Unit tests for row normalization and timeline collection.
"""

import random
from datetime import datetime

import pytest
from load_diagnostics.collector.event_collector import EntityTimeline, EventCollector
from load_diagnostics.collector.records import LoadState, OperationRecord, RowNormalizer


class TestLoadState:
    """Test cases for LoadState"""

    @pytest.mark.parametrize('raw, expected', [
        ('FINISHED', LoadState.FINISHED),
        ('visible', LoadState.FINISHED),
        ('CANCELLED', LoadState.CANCELLED),
        ('LOADING', LoadState.RUNNING),
        ('QUEUEING', LoadState.PENDING),
        ('SOMETHING_NEW', LoadState.UNKNOWN),
        (None, LoadState.UNKNOWN),
    ])
    def test_parse(self, raw, expected):
        """Test raw state mapping"""
        assert LoadState.parse(raw) is expected


class TestRowNormalizer:
    """Test cases for RowNormalizer"""

    def test_normalize_history_row(self, make_row):
        """Test normalizing a loads_history row"""
        record = RowNormalizer().normalize(make_row(0))

        assert record.entity_key == 'sales.orders'
        assert record.state is LoadState.FINISHED
        assert record.created_at == datetime(2024, 1, 1, 12, 0, 0)
        assert record.write_duration == 10.0
        assert record.publish_duration == 5.0
        assert record.total_duration == 15.0
        assert record.size_bytes == 1048576
        assert record.has_complete_phases

    def test_lowercase_columns(self):
        """Test column lookup is case-insensitive"""
        row = {'db_name': 'db', 'table_name': 't', 'create_time': '2024-01-01 00:00:00', 'state': 'FINISHED'}
        record = RowNormalizer().normalize(row)
        assert record.entity_key == 'db.t'

    def test_drop_row_without_table(self, make_row):
        """Test rows without a table are dropped"""
        row = make_row(0)
        row['TABLE_NAME'] = None
        row['LABEL'] = 'plain_label'
        assert RowNormalizer().normalize(row) is None

    def test_drop_row_without_create_time(self, make_row):
        """Test rows without a valid create time are dropped"""
        row = make_row(0)
        row['CREATE_TIME'] = 'garbage'
        assert RowNormalizer().normalize(row) is None

    def test_names_from_job_details(self):
        """Test database and table are recovered from JOB_DETAILS"""
        row = {
            'JOB_DETAILS': 'load job, database=sales, table=orders, partitions=3',
            'CREATE_TIME': '2024-01-01 00:00:00',
            'STATE': 'LOADING',
        }
        record = RowNormalizer().normalize(row)

        assert record.entity_key == 'sales.orders'
        assert record.state is LoadState.RUNNING

    def test_entity_key_without_create_time(self):
        """Test the table key resolves even when the row is not usable"""
        normalizer = RowNormalizer()

        assert normalizer.entity_key({'JOB_DETAILS': 'database=sales, table=orders'}) == 'sales.orders'
        assert normalizer.entity_key({'entity_key': 'sales.users'}) == 'sales.users'
        assert normalizer.entity_key({'STATE': 'FINISHED'}) is None

    def test_out_of_order_phases_are_incomplete(self, make_row):
        """Test a commit time before the start time is not a complete phase set"""
        row = make_row(0, write_seconds=-5)
        record = RowNormalizer().normalize(row)
        assert not record.has_complete_phases

    def test_unfinished_record_has_no_complete_phases(self, make_row):
        """Test only finished loads count as complete"""
        record = RowNormalizer().normalize(make_row(0, state='CANCELLED'))
        assert not record.has_complete_phases


class TestEventCollector:
    """Test cases for EventCollector"""

    def test_collect_groups_and_sorts(self, make_row):
        """Test timelines are grouped per table and sorted"""
        rows = [
            make_row(120, table='orders'),
            make_row(0, table='users'),
            make_row(0, table='orders'),
            make_row(60, table='orders'),
        ]

        timelines = EventCollector().collect(rows)

        assert [t.entity_key for t in timelines] == ['sales.orders', 'sales.users']
        orders = timelines[0]
        assert len(orders) == 3
        assert [r.created_at.second + r.created_at.minute * 60 for r in orders.records] == [0, 60, 120]
        assert orders.span_seconds == 120.0

    def test_collect_is_order_independent(self, make_row):
        """Test shuffling the input does not change the output"""
        rows = [make_row(i * 30, table=name) for i in range(10) for name in ('a', 'b', 'c')]
        shuffled = list(rows)
        random.Random(7).shuffle(shuffled)

        assert EventCollector().collect(rows) == EventCollector().collect(shuffled)

    def test_dropped_rows_are_counted(self, make_row):
        """Test the collector reports dropped rows"""
        bad = make_row(0)
        bad['CREATE_TIME'] = None
        collector = EventCollector()

        timelines = collector.collect([make_row(0), bad, {}])

        assert len(timelines) == 1
        assert collector.last_total == 3
        assert collector.last_dropped == 2

    @pytest.mark.parametrize('size', ['inf', float('inf'), '-Infinity', 'nan'])
    def test_non_finite_size_is_unset(self, make_row, size):
        """Test a non-finite size keeps the row and leaves its size empty"""
        row = make_row(0)
        row['SCAN_BYTES'] = size
        collector = EventCollector()

        timelines = collector.collect([row])

        assert collector.last_dropped == 0
        assert timelines[0].records[0].size_bytes is None

    def test_empty_input(self):
        """Test empty input yields no timelines"""
        collector = EventCollector()
        assert collector.collect([]) == []
        assert collector.last_total == 0


class TestEntityTimeline:
    """Test cases for EntityTimeline"""

    def test_empty_timeline(self):
        """Test an empty timeline"""
        timeline = EntityTimeline('db.t', ())
        assert len(timeline) == 0
        assert timeline.first is None
        assert timeline.last is None
        assert timeline.span_seconds == 0.0

    def test_single_record(self):
        """Test a timeline with one record"""
        record = OperationRecord('db.t', datetime(2024, 1, 1), LoadState.FINISHED)
        timeline = EntityTimeline('db.t', (record,))
        assert timeline.first is record
        assert timeline.last is record
        assert timeline.span_seconds == 0.0
