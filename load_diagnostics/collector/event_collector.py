# load_diagnostics/collector/event_collector.py - Timeline construction
"""
Groups normalized load records into per-table timelines.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Any, Optional, Tuple
import logging

from load_diagnostics.collector.records import OperationRecord, RowNormalizer


@dataclass(frozen=True)
class EntityTimeline:
    """
    Load records of one table ordered by creation time.
    """
    entity_key: str
    records: Tuple[OperationRecord, ...]

    def __len__(self) -> int:
        return len(self.records)

    @property
    def first(self) -> Optional[OperationRecord]:
        """Earliest record"""
        return self.records[0] if self.records else None

    @property
    def last(self) -> Optional[OperationRecord]:
        """Latest record"""
        return self.records[-1] if self.records else None

    @property
    def span_seconds(self) -> float:
        """Seconds between the first and last creation time"""
        if len(self.records) < 2:
            return 0.0
        return (self.records[-1].created_at - self.records[0].created_at).total_seconds()


class EventCollector:
    """
    Builds sorted per-table timelines from raw metadata rows.

    The output is independent of input order: timelines are sorted by key
    and records inside each timeline by creation time.
    """

    def __init__(self, normalizer: Optional[RowNormalizer] = None):
        """
        Initialize the event collector.

        Args:
            normalizer: Row normalizer (a default one is created if omitted)
        """
        self.normalizer = normalizer or RowNormalizer()
        self.last_total = 0
        self.last_dropped = 0
        self.logger = logging.getLogger(__name__)

    def normalize_rows(self, rows: Iterable[Mapping[str, Any]]) -> List[OperationRecord]:
        """
        Normalize raw rows, dropping those that cannot be placed on a timeline.

        Args:
            rows: Raw metadata rows

        Returns:
            List of OperationRecord objects in input order
        """
        records = []
        total = 0

        for row in rows:
            total += 1
            record = self.normalizer.normalize(row)
            if record is not None:
                records.append(record)

        self.last_total = total
        self.last_dropped = total - len(records)

        if self.last_dropped:
            self.logger.info(f"Dropped {self.last_dropped} of {total} rows without a usable table or create time")

        return records

    def collect(self, rows: Iterable[Mapping[str, Any]]) -> List[EntityTimeline]:
        """
        Collect raw rows into sorted timelines.

        Args:
            rows: Raw metadata rows

        Returns:
            List of EntityTimeline objects sorted by entity key
        """
        return self.group(self.normalize_rows(rows))

    def group(self, records: Iterable[OperationRecord]) -> List[EntityTimeline]:
        """
        Group already-normalized records into sorted timelines.

        Args:
            records: OperationRecord objects

        Returns:
            List of EntityTimeline objects sorted by entity key
        """
        grouped: Dict[str, List[OperationRecord]] = defaultdict(list)

        for record in records:
            grouped[record.entity_key].append(record)

        timelines = [
            EntityTimeline(
                entity_key=key,
                records=tuple(sorted(group, key=lambda r: r.sort_key)),
            )
            for key, group in grouped.items()
        ]
        timelines.sort(key=lambda t: t.entity_key)

        self.logger.debug(f"Collected {len(timelines)} timelines")
        return timelines
