"""Keyset pagination for asyncpg-backed FastAPI services."""

from .pagination import (
    SortOrder,
    PaginationRequest,
    PaginationResponse,
    KeyType,
    QueryBuilder,
    Paginator,
    paginate,
    PaginationQuery,
)
from .errors import InvalidArgumentError, InternalError, register_exception_handlers

__version__ = "1.0.0"

__all__ = [
    "SortOrder",
    "PaginationRequest",
    "PaginationResponse",
    "KeyType",
    "QueryBuilder",
    "Paginator",
    "paginate",
    "PaginationQuery",
    "InvalidArgumentError",
    "InternalError",
    "register_exception_handlers"
]
