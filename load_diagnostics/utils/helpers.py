# load_diagnostics/utils/helpers.py - Helper functions
"""
General utility and helper functions.
"""

import re
from datetime import datetime
from typing import Any, Optional
import logging


logger = logging.getLogger(__name__)

BYTE_UNITS = ['B', 'KB', 'MB', 'GB', 'TB']

_BYTES_PATTERN = re.compile(r'^\s*([0-9]*\.?[0-9]+)\s*([KMGT]?B)\s*$', re.IGNORECASE)

_TIMESTAMP_FORMATS = (
    '%Y-%m-%d %H:%M:%S.%f',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%dT%H:%M:%S.%f',
    '%Y-%m-%dT%H:%M:%S',
    '%Y/%m/%d %H:%M:%S',
)


def format_bytes(bytes_count: Optional[float]) -> str:
    """
    Format bytes into human-readable string.

    The value is rounded to two decimals with trailing zeros dropped, in the
    largest unit that keeps the rounded value below 1024. 1536 becomes
    "1.5 KB" and 1048575 becomes "1 MB".

    Args:
        bytes_count: Number of bytes

    Returns:
        Formatted string (e.g., "1.5 MB")
    """
    if not bytes_count or bytes_count < 0:
        return "0 B"

    value = float(bytes_count)
    unit_index = 0
    while value >= 1024.0 and unit_index < len(BYTE_UNITS) - 1:
        value /= 1024.0
        unit_index += 1

    # 1048575 bytes rounds up to 1024 KB, which is shown as 1 MB
    if round(value, 2) >= 1024.0 and unit_index < len(BYTE_UNITS) - 1:
        value /= 1024.0
        unit_index += 1

    text = f"{value:.2f}".rstrip('0').rstrip('.')
    return f"{text} {BYTE_UNITS[unit_index]}"


def parse_bytes(text: str) -> int:
    """
    Parse a string produced by format_bytes back into a byte count.

    Args:
        text: Formatted size (e.g., "1.5 KB")

    Returns:
        Number of bytes, rounded to the nearest integer

    Raises:
        ValueError: If the string is not a recognised size
    """
    match = _BYTES_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid byte size: {text!r}")

    value = float(match.group(1))
    exponent = BYTE_UNITS.index(match.group(2).upper())
    return int(round(value * (1024 ** exponent)))


def format_percent(value: Optional[float]) -> str:
    """Format a percentage with one decimal place."""
    return f"{(value or 0.0):.1f}%"


def format_duration(seconds: Optional[float]) -> str:
    """
    Format a duration in seconds to human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "1.5m")
    """
    if seconds is None:
        return "N/A"
    if seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}m"
    elif seconds < 86400:
        return f"{seconds / 3600:.1f}h"
    else:
        return f"{seconds / 86400:.1f}d"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp value from a metadata row.

    Accepts datetime objects, ISO-8601 and "YYYY-MM-DD HH:MM:SS" strings and
    epoch seconds. Timezone-aware values are converted to naive local time.

    Args:
        value: Raw column value

    Returns:
        Naive datetime or None if the value is missing or unparseable
    """
    if value is None or isinstance(value, bool):
        return None

    parsed = None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = _from_epoch(value)
        if parsed is None:
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text or text.upper() in ('NULL', 'NONE', 'N/A'):
            return None

        for fmt in _TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

        # CSV exports carry epoch seconds as text
        if parsed is None:
            try:
                epoch = float(text)
            except ValueError:
                pass
            else:
                return _from_epoch(epoch)

        if parsed is None:
            try:
                parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
            except ValueError:
                logger.debug(f"Unparseable timestamp: {text!r}")
                return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)

    return parsed


def _from_epoch(seconds: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(seconds)
    except (OverflowError, OSError, ValueError):
        logger.debug(f"Epoch value out of range: {seconds!r}")
        return None


def parse_int(value: Any) -> Optional[int]:
    """
    Parse an optional integer column.

    Args:
        value: Raw column value

    Returns:
        Integer value or None if missing or unparseable
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None

    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None

