"""Typed parsing of composite key values taken from a cursor.

Each supported column type is a member of :class:`KeyType` with a parser in
``_PARSERS``. Supporting a new column type means adding a member and its
parser; every parser takes the raw text and returns a value asyncpg can bind
as a query parameter, or raises :class:`InvalidArgumentError`.
"""

import re
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict
from uuid import UUID

from ..errors.problem_details import InvalidArgumentError


class KeyType(str, Enum):
    """Column types usable in a composite pagination key."""

    STRING = "string"
    TIMESTAMP = "timestamp"
    INTEGER = "integer"
    UUID = "uuid"


_TIMESTAMP_PATTERN = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})[Tt ]"
    r"([0-9]{2}):([0-9]{2}):([0-9]{2})(?:\.([0-9]+))?"
    r"(?:([Zz])|([+-])([01][0-9]|2[0-3]):([0-5][0-9]))"
)
_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]{1,19}")
_UUID_PATTERN = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)

# PostgreSQL bigint bounds
_INT_MIN = -(2 ** 63)
_INT_MAX = 2 ** 63 - 1


def _parse_string(text: str) -> str:
    return text


def _parse_timestamp(text: str) -> datetime:
    match = _TIMESTAMP_PATTERN.fullmatch(text)
    if not match:
        raise InvalidArgumentError("failed to parse date time from string")

    year, month, day, hour, minute, second, fraction, zulu, sign, off_h, off_m = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))

    try:
        if zulu:
            tz = timezone.utc
        else:
            offset = timedelta(hours=int(off_h), minutes=int(off_m))
            tz = timezone(-offset if sign == "-" else offset)
        value = datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), microsecond,
            tzinfo=tz
        ).astimezone(timezone.utc)
    except (ValueError, OverflowError):
        raise InvalidArgumentError("failed to parse date time from string")

    return value


def _parse_integer(text: str) -> int:
    if not _INTEGER_PATTERN.fullmatch(text):
        raise InvalidArgumentError("failed to parse integer from string")
    value = int(text)
    if not _INT_MIN <= value <= _INT_MAX:
        raise InvalidArgumentError("integer key out of range")
    return value


def _parse_uuid(text: str) -> UUID:
    if not _UUID_PATTERN.fullmatch(text):
        raise InvalidArgumentError("failed to parse uuid from string")
    return UUID(text)


_PARSERS: Dict[KeyType, Callable[[str], Any]] = {
    KeyType.STRING: _parse_string,
    KeyType.TIMESTAMP: _parse_timestamp,
    KeyType.INTEGER: _parse_integer,
    KeyType.UUID: _parse_uuid,
}


def parse_key(key_type: KeyType, text: str) -> Any:
    """Parse a cursor key value into the type of its column.

    Args:
        key_type: Column type of the key
        text: Raw value decoded from the cursor

    Returns:
        Typed value suitable as a query parameter

    Raises:
        InvalidArgumentError: If the text does not conform to the key type
    """
    return _PARSERS[KeyType(key_type)](text)


def format_key(value: Any) -> str:
    """Render a column value as cursor text that ``parse_key`` accepts."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        return value.isoformat(timespec="microseconds").replace("+00:00", "Z")
    return str(value)
