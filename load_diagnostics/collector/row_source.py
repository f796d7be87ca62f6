# load_diagnostics/collector/row_source.py - Load row sources
"""
Fetches raw load rows from the cluster's metadata tables or from exported files.

Sources always return a list of row dictionaries (possibly empty) and raise
UpstreamDataError when the rows cannot be obtained.
"""

import csv
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
import logging

from load_diagnostics.collector.records import RowNormalizer
from load_diagnostics.exceptions import UpstreamDataError


Row = Dict[str, Any]


class RowSource:
    """
    Interface for load row providers.
    """

    def fetch_table_loads(self, database: str, table: str, window_days: Optional[int] = None) -> List[Row]:
        """
        Fetch load rows of one table.

        Args:
            database: Database name
            table: Table name
            window_days: Only return loads created in the last N days

        Returns:
            List of row dictionaries
        """
        raise NotImplementedError

    def fetch_loads(self, window_days: Optional[int] = None, load_type: Optional[str] = None) -> List[Row]:
        """
        Fetch load rows of all tables.

        Args:
            window_days: Only return loads created in the last N days
            load_type: Only return loads of this type (e.g. 'STREAM LOAD')

        Returns:
            List of row dictionaries
        """
        raise NotImplementedError


class DbApiRowSource(RowSource):
    """
    Reads load rows through a caller-supplied DB-API connection.

    The history table is queried first; when that fails the live loads table
    is used instead.
    """

    COLUMNS = (
        'DB_NAME', 'TABLE_NAME', 'LABEL', 'STATE', 'TYPE', 'SCAN_BYTES',
        'CREATE_TIME', 'LOAD_START_TIME', 'LOAD_COMMIT_TIME', 'LOAD_FINISH_TIME',
    )

    # The live loads table may only name the table inside JOB_DETAILS
    FALLBACK_COLUMNS = COLUMNS + ('JOB_DETAILS',)

    def __init__(self, connection, history_table: str = '_statistics_.loads_history',
                 fallback_table: Optional[str] = 'information_schema.loads',
                 placeholder: str = '%s'):
        """
        Initialize the DB-API row source.

        Args:
            connection: Open DB-API 2.0 connection
            history_table: Table holding finished load history
            fallback_table: Table to query when the history table is unavailable
            placeholder: Parameter placeholder of the driver's paramstyle
        """
        self.connection = connection
        self.history_table = history_table
        self.fallback_table = fallback_table
        self.placeholder = placeholder
        self.last_source_table: Optional[str] = None
        self.logger = logging.getLogger(__name__)

    def fetch_table_loads(self, database: str, table: str, window_days: Optional[int] = None) -> List[Row]:
        conditions = [f"DB_NAME = {self.placeholder}", f"TABLE_NAME = {self.placeholder}"]
        params: List[Any] = [database, table]
        self._add_window(conditions, window_days)
        return self._fetch_with_fallback(conditions, params)

    def fetch_loads(self, window_days: Optional[int] = None, load_type: Optional[str] = None) -> List[Row]:
        conditions: List[str] = []
        params: List[Any] = []
        if load_type:
            conditions.append(f"TYPE = {self.placeholder}")
            params.append(load_type)
        self._add_window(conditions, window_days)
        return self._fetch_with_fallback(conditions, params)

    def _add_window(self, conditions: List[str], window_days: Optional[int]):
        if window_days:
            conditions.append(f"CREATE_TIME >= DATE_SUB(NOW(), INTERVAL {int(window_days)} DAY)")

    def _build_query(self, table_name: str, conditions: Sequence[str],
                     columns: Sequence[str] = COLUMNS) -> str:
        query = f"SELECT {', '.join(columns)} FROM {table_name}"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY DB_NAME, TABLE_NAME, CREATE_TIME"
        return query

    def _fetch_with_fallback(self, conditions: Sequence[str], params: Sequence[Any]) -> List[Row]:
        tables = [(self.history_table, self.COLUMNS)]
        if self.fallback_table:
            tables.append((self.fallback_table, self.FALLBACK_COLUMNS))

        last_error: Optional[Exception] = None

        for table_name, columns in tables:
            try:
                rows = self._execute(self._build_query(table_name, conditions, columns), params)
            except Exception as e:
                self.logger.warning(f"Query on {table_name} failed: {e}")
                last_error = e
                continue

            self.last_source_table = table_name
            self.logger.debug(f"Fetched {len(rows)} rows from {table_name}")
            return rows

        raise UpstreamDataError(f"Failed to fetch load rows: {last_error}") from last_error

    def _execute(self, query: str, params: Sequence[Any]) -> List[Row]:
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, tuple(params))
            columns = [description[0] for description in cursor.description or ()]
            return [dict(zip(columns, values)) for values in cursor.fetchall()]
        finally:
            cursor.close()


class FileRowSource(RowSource):
    """
    Reads load rows exported to a JSON or CSV file.

    JSON files may contain a list of rows or an object with a "rows" list.
    Exports are already cut to the window they were taken for, so window_days
    is accepted but not applied.
    """

    def __init__(self, path: str):
        """
        Initialize the file row source.

        Args:
            path: Path to a .json or .csv export
        """
        self.path = Path(path)
        self.normalizer = RowNormalizer()
        self.logger = logging.getLogger(__name__)

    def read_rows(self) -> List[Row]:
        """
        Read every row in the file.

        Returns:
            List of row dictionaries

        Raises:
            UpstreamDataError: If the file cannot be read or parsed
        """
        try:
            if self.path.suffix.lower() == '.csv':
                rows = self._read_csv()
            else:
                rows = self._read_json()
        except (OSError, ValueError, csv.Error) as e:
            raise UpstreamDataError(f"Failed to read load rows from {self.path}: {e}") from e

        self.logger.debug(f"Read {len(rows)} rows from {self.path}")
        return rows

    def fetch_table_loads(self, database: str, table: str, window_days: Optional[int] = None) -> List[Row]:
        wanted = f"{database}.{table}".lower()
        return [row for row in self.read_rows() if (self.normalizer.entity_key(row) or '').lower() == wanted]

    def fetch_loads(self, window_days: Optional[int] = None, load_type: Optional[str] = None) -> List[Row]:
        rows = self.read_rows()
        if load_type:
            rows = [row for row in rows if str(self._get(row, 'type') or self._get(row, 'load_type') or '').upper() == load_type.upper()]
        return rows

    def _read_json(self) -> List[Row]:
        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if isinstance(data, dict):
            data = data.get('rows', [])
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise ValueError("expected a list of row objects")
        return data

    def _read_csv(self) -> List[Row]:
        with open(self.path, 'r', encoding='utf-8', newline='') as f:
            return [
                {key: (value if value != '' else None) for key, value in row.items()}
                for row in csv.DictReader(f)
            ]

    @staticmethod
    def _get(row: Row, name: str) -> Any:
        for key, value in row.items():
            if str(key).lower() == name:
                return value
        return None

