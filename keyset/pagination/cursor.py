"""Opaque cursor encoding and decoding.

A cursor is the URL-safe base64 form (padding stripped) of a compact JSON
array holding the two composite key values of the last row on a page::

    ["2024-01-01T00:00:00Z","42"]  ->  WyIyMDI0LTAxLTAxVDAwOjAwOjAwWiIsIjQyIl0

Cursors are positional pointers, not a security boundary: they are neither
signed nor encrypted.
"""

import base64
import binascii
import json
import logging
import re
from typing import Tuple

from pydantic import StrictStr, TypeAdapter, ValidationError

from ..errors.problem_details import InvalidArgumentError


logger = logging.getLogger(__name__)

INVALID_CURSOR = "invalid cursor"

_CURSOR_PATTERN = re.compile(r"[A-Za-z0-9_-]*={0,2}")
_CURSOR_VALUES = TypeAdapter(Tuple[StrictStr, StrictStr])


def encode_cursor(first: str, second: str) -> str:
    """Encode the two composite key values of a row into a cursor.

    Args:
        first: Value of the leading sort column
        second: Value of the tie-break column

    Returns:
        URL-safe base64 cursor string without padding

    Raises:
        TypeError: If either value is not a string
    """
    if not isinstance(first, str) or not isinstance(second, str):
        raise TypeError("Cursor key values must be strings")
    payload = json.dumps([first, second], separators=(",", ":"), ensure_ascii=False)
    encoded = base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def decode_cursor(cursor: str) -> Tuple[str, str]:
    """Decode a cursor produced by :func:`encode_cursor`.

    Args:
        cursor: Cursor string, with or without base64 padding

    Returns:
        The two key values in sort-key order

    Raises:
        InvalidArgumentError: If the cursor is not a base64 encoded JSON array
            of exactly two strings
    """
    if not cursor or not _CURSOR_PATTERN.fullmatch(cursor):
        raise InvalidArgumentError(INVALID_CURSOR)

    unpadded = cursor.rstrip("=")
    padded = unpadded + "=" * (-len(unpadded) % 4)

    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, ValueError) as e:
        logger.info(f"Rejected cursor with bad base64: {e}")
        raise InvalidArgumentError(INVALID_CURSOR)

    try:
        first, second = _CURSOR_VALUES.validate_json(raw)
    except ValidationError as e:
        logger.info(f"Rejected cursor with bad payload: {e.error_count()} errors")
        raise InvalidArgumentError(INVALID_CURSOR)

    return first, second
