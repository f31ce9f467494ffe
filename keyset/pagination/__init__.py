"""Keyset (cursor-based) pagination over two-column composite keys."""

from .models import SortOrder, PaginationRequest, PaginationResponse
from .cursor import encode_cursor, decode_cursor
from .keys import KeyType, parse_key, format_key
from .query import QueryBuilder, keyset_condition, quote_identifier
from .engine import Paginator, paginate, effective_limit, column_key_extractor
from .params import get_pagination_request, PaginationQuery, create_link_header

__all__ = [
    "SortOrder",
    "PaginationRequest",
    "PaginationResponse",
    "encode_cursor",
    "decode_cursor",
    "KeyType",
    "parse_key",
    "format_key",
    "QueryBuilder",
    "keyset_condition",
    "quote_identifier",
    "Paginator",
    "paginate",
    "effective_limit",
    "column_key_extractor",
    "get_pagination_request",
    "PaginationQuery",
    "create_link_header"
]
