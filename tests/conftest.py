# tests/conftest.py - Shared test fixtures
"""
Row and clock fixtures shared by the test modules.
"""

from datetime import datetime, timedelta

import pytest


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def _fmt(value):
    return value.isoformat(sep=' ') if value else None


def build_row(offset_seconds, state='FINISHED', database='sales', table='orders',
              write_seconds=10.0, publish_seconds=5.0, size_bytes=1048576,
              label=None, load_type='STREAM LOAD'):
    """Build a raw loads_history row created offset_seconds after BASE_TIME."""
    created = BASE_TIME + timedelta(seconds=offset_seconds)
    started = created + timedelta(seconds=1)
    committed = started + timedelta(seconds=write_seconds) if write_seconds is not None else None
    finished = None
    if committed is not None and publish_seconds is not None:
        finished = committed + timedelta(seconds=publish_seconds)

    return {
        'DB_NAME': database,
        'TABLE_NAME': table,
        'LABEL': label or f'{table}_{offset_seconds}',
        'STATE': state,
        'TYPE': load_type,
        'SCAN_BYTES': size_bytes,
        'CREATE_TIME': _fmt(created),
        'LOAD_START_TIME': _fmt(started),
        'LOAD_COMMIT_TIME': _fmt(committed),
        'LOAD_FINISH_TIME': _fmt(finished),
    }


@pytest.fixture
def make_row():
    """Factory for raw load rows"""
    return build_row


@pytest.fixture
def fixed_clock():
    """Clock pinned one hour after BASE_TIME"""
    return lambda: BASE_TIME + timedelta(hours=1)
