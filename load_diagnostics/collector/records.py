# load_diagnostics/collector/records.py - Load record normalization
"""
Normalizes raw metadata rows into structured load records.

This is the only place that reads loosely-typed rows; everything downstream
consumes OperationRecord.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple
import logging

from load_diagnostics.utils.helpers import parse_int, parse_timestamp


class LoadState(Enum):
    """Normalized load job state."""
    PENDING = 'PENDING'
    RUNNING = 'RUNNING'
    FINISHED = 'FINISHED'
    CANCELLED = 'CANCELLED'
    UNKNOWN = 'UNKNOWN'

    @classmethod
    def parse(cls, value: Any) -> 'LoadState':
        """
        Map a raw state string to a LoadState.

        Args:
            value: Raw STATE column value

        Returns:
            LoadState member, UNKNOWN for unrecognised values
        """
        if value is None:
            return cls.UNKNOWN
        return _STATE_ALIASES.get(str(value).strip().upper(), cls.UNKNOWN)


_STATE_ALIASES = {
    'PENDING': LoadState.PENDING,
    'QUEUEING': LoadState.PENDING,
    'RUNNING': LoadState.RUNNING,
    'PREPARING': LoadState.RUNNING,
    'LOADING': LoadState.RUNNING,
    'PREPARED': LoadState.RUNNING,
    'COMMITTED': LoadState.RUNNING,
    'FINISHED': LoadState.FINISHED,
    'VISIBLE': LoadState.FINISHED,
    'CANCELLED': LoadState.CANCELLED,
    'FAILED': LoadState.CANCELLED,
    'ABORTED': LoadState.CANCELLED,
}


def _seconds_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    if start is None or end is None:
        return None
    return (end - start).total_seconds()


@dataclass(frozen=True)
class OperationRecord:
    """
    Structured representation of one load job row.
    """
    entity_key: str
    created_at: datetime
    state: LoadState
    started_at: Optional[datetime] = None
    committed_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    size_bytes: Optional[int] = None
    label: Optional[str] = None
    load_type: Optional[str] = None

    @property
    def write_duration(self) -> Optional[float]:
        """Seconds between load start and commit"""
        return _seconds_between(self.started_at, self.committed_at)

    @property
    def publish_duration(self) -> Optional[float]:
        """Seconds between commit and finish"""
        return _seconds_between(self.committed_at, self.finished_at)

    @property
    def total_duration(self) -> Optional[float]:
        """Seconds between load start and finish"""
        return _seconds_between(self.started_at, self.finished_at)

    @property
    def has_complete_phases(self) -> bool:
        """True for finished loads with ordered start/commit/finish times"""
        if self.state is not LoadState.FINISHED:
            return False
        if self.started_at is None or self.committed_at is None or self.finished_at is None:
            return False
        return self.started_at <= self.committed_at <= self.finished_at

    @property
    def sort_key(self) -> Tuple:
        """Total ordering used to place records on a timeline"""
        return (
            self.created_at,
            self.label or '',
            self.started_at or datetime.min,
            self.state.value,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a JSON-friendly dictionary."""
        def iso(value):
            return value.isoformat() if value else None

        return {
            'entity_key': self.entity_key,
            'created_at': iso(self.created_at),
            'started_at': iso(self.started_at),
            'committed_at': iso(self.committed_at),
            'finished_at': iso(self.finished_at),
            'state': self.state.value,
            'size_bytes': self.size_bytes,
            'label': self.label,
            'load_type': self.load_type,
        }


class RowNormalizer:
    """
    Converts raw metadata rows into OperationRecord objects.

    Column lookup is case-insensitive and accepts the aliases used by the
    loads_history and loads tables.
    """

    FIELD_ALIASES = {
        'entity_key': ('entity_key',),
        'database': ('db_name', 'database_name'),
        'table': ('table_name',),
        'created_at': ('create_time', 'created_at'),
        'started_at': ('load_start_time', 'start_time', 'started_at'),
        'committed_at': ('load_commit_time', 'commit_time', 'committed_at'),
        'finished_at': ('load_finish_time', 'finish_time', 'finished_at'),
        'size_bytes': ('scan_bytes', 'size_bytes'),
        'state': ('state',),
        'load_type': ('type', 'load_type'),
        'label': ('label',),
        'job_details': ('job_details',),
    }

    _DETAIL_PATTERNS = {
        'database': re.compile(r'database=([^,\s]+)'),
        'table': re.compile(r'table=([^,\s]+)'),
    }

    def __init__(self):
        """
        Initialize the row normalizer.
        """
        self.logger = logging.getLogger(__name__)

    def normalize(self, row: Mapping[str, Any]) -> Optional[OperationRecord]:
        """
        Normalize a single raw row.

        Args:
            row: Mapping of column names to values

        Returns:
            OperationRecord or None if the row cannot be placed on a timeline
        """
        fields = self._lower_keys(row)

        entity_key = self._entity_key(fields)
        if not entity_key:
            self.logger.debug(f"Dropping row without database/table: {dict(row)!r}")
            return None

        created_at = parse_timestamp(self._lookup(fields, 'created_at'))
        if created_at is None:
            self.logger.debug(f"Dropping row for {entity_key} without a valid create time")
            return None

        label = self._lookup(fields, 'label')
        load_type = self._lookup(fields, 'load_type')

        return OperationRecord(
            entity_key=entity_key,
            created_at=created_at,
            state=LoadState.parse(self._lookup(fields, 'state')),
            started_at=parse_timestamp(self._lookup(fields, 'started_at')),
            committed_at=parse_timestamp(self._lookup(fields, 'committed_at')),
            finished_at=parse_timestamp(self._lookup(fields, 'finished_at')),
            size_bytes=parse_int(self._lookup(fields, 'size_bytes')),
            label=str(label) if label is not None else None,
            load_type=str(load_type).strip() if load_type is not None else None,
        )

    def entity_key(self, row: Mapping[str, Any]) -> Optional[str]:
        """
        Resolve the "database.table" key of a raw row without validating the rest of it.

        Args:
            row: Mapping of column names to values

        Returns:
            Entity key or None if no database/table can be found
        """
        return self._entity_key(self._lower_keys(row))

    @staticmethod
    def _lower_keys(row: Mapping[str, Any]) -> Dict[str, Any]:
        return {str(key).lower(): value for key, value in row.items()}

    def _lookup(self, fields: Dict[str, Any], name: str) -> Any:
        for alias in self.FIELD_ALIASES[name]:
            value = fields.get(alias)
            if value is not None:
                return value
        return None

    def _entity_key(self, fields: Dict[str, Any]) -> Optional[str]:
        explicit = self._lookup(fields, 'entity_key')
        if explicit:
            return str(explicit).strip() or None

        database = self._lookup(fields, 'database')
        table = self._lookup(fields, 'table')

        # The live loads table only carries names inside JOB_DETAILS/LABEL
        if database is None or table is None:
            details = self._lookup(fields, 'job_details') or self._lookup(fields, 'label')
            if details:
                details = str(details)
                if database is None:
                    database = self._search_detail(details, 'database')
                if table is None:
                    table = self._search_detail(details, 'table')

        if not database or not table:
            return None

        return f"{str(database).strip()}.{str(table).strip()}"

    def _search_detail(self, details: str, name: str) -> Optional[str]:
        match = self._DETAIL_PATTERNS[name].search(details)
        return match.group(1) if match else None
