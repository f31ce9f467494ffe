"""Keyset pagination over a two-column composite key.

One call runs a single pass: decode the cursor, parse its values into the
key column types, add the range predicate, order and limit the query, fetch
``limit + 1`` rows and, when the extra row shows up, drop it and encode the
new last row as the next cursor.

The composite key must be unique per row. Rows sharing both key values can
be skipped or repeated at a page boundary; this is not checked at runtime.
"""

import logging
from typing import Any, Callable, Generic, Mapping, Optional, Tuple, TypeVar

import asyncpg

from ..config import get_settings
from ..db.connection import get_db_pool
from ..errors.problem_details import InternalError, InvalidArgumentError
from .cursor import decode_cursor, encode_cursor
from .keys import KeyType, format_key, parse_key
from .models import PaginationRequest, PaginationResponse
from .query import QueryBuilder, keyset_condition, quote_identifier


logger = logging.getLogger(__name__)

T = TypeVar("T")

KeyExtractor = Callable[[Any], Tuple[str, str]]
RowFactory = Callable[[Mapping[str, Any]], Any]


def effective_limit(
    limit: Optional[int],
    default: Optional[int] = None,
    maximum: Optional[int] = None
) -> int:
    """Resolve the page size for a request.

    A missing limit, zero, or anything above ``maximum`` falls back to
    ``default``; out-of-range values are never rejected.
    """
    settings = get_settings()
    default = settings.default_page_size if default is None else default
    maximum = settings.max_page_size if maximum is None else maximum

    if limit is None or limit <= 0 or limit > maximum:
        return default
    return limit


def column_key_extractor(keys: Tuple[str, str]) -> KeyExtractor:
    """Build a key extractor reading the key columns off a row.

    Works for mappings (asyncpg records, dicts) and for objects exposing the
    columns as attributes. Table qualifiers are dropped from the names.
    """
    names = tuple(key.rsplit(".", 1)[-1] for key in keys)

    def extract(row: Any) -> Tuple[str, str]:
        if isinstance(row, Mapping):
            values = (row[names[0]], row[names[1]])
        else:
            values = (getattr(row, names[0]), getattr(row, names[1]))
        return format_key(values[0]), format_key(values[1])

    return extract


class Paginator(Generic[T]):
    """Paginates one entity over its composite key.

    Args:
        keys: Column names of the composite key, sort column first
        key_types: Column types used to parse cursor values
        key_extractor: Maps a materialized row to its two key strings;
            defaults to reading the key columns off the row
        row_factory: Materializes an asyncpg record, ``dict`` by default
    """

    def __init__(
        self,
        keys: Tuple[str, str],
        key_types: Tuple[KeyType, KeyType] = (KeyType.STRING, KeyType.STRING),
        key_extractor: Optional[Callable[[T], Tuple[str, str]]] = None,
        row_factory: Callable[[Mapping[str, Any]], T] = dict
    ):
        if len(keys) != 2 or len(key_types) != 2:
            raise ValueError("A composite key has exactly two columns")
        for key in keys:
            quote_identifier(key)

        self.keys = (keys[0], keys[1])
        self.key_types = (KeyType(key_types[0]), KeyType(key_types[1]))
        self.key_extractor = key_extractor or column_key_extractor(self.keys)
        self.row_factory = row_factory

    def build_query(self, request: PaginationRequest, query: QueryBuilder, limit: int) -> QueryBuilder:
        """Add the cursor predicate, ordering and ``limit + 1`` row limit.

        Raises:
            InvalidArgumentError: If the cursor or one of its values is malformed
        """
        smaller = request.descending
        query = query.copy()

        if request.cursor is not None:
            raw_first, raw_second = decode_cursor(request.cursor)
            try:
                values = (
                    parse_key(self.key_types[0], raw_first),
                    parse_key(self.key_types[1], raw_second),
                )
            except InvalidArgumentError as e:
                logger.info(f"Rejected cursor values for {self.keys}: {e.detail}")
                raise
            query.where(keyset_condition(query, self.keys, values, smaller))

        query.order_by(self.keys, descending=smaller)
        # one extra row tells us whether a next page exists
        query.limit(limit + 1)
        return query

    async def paginate(
        self,
        request: PaginationRequest,
        query: QueryBuilder,
        executor: Any = None
    ) -> PaginationResponse[T]:
        """Fetch one page.

        Args:
            request: Pagination parameters
            query: Base query, already filtered, not ordered or limited
            executor: asyncpg pool or connection; the package pool when omitted

        Returns:
            The page and the cursor of the next one, if any

        Raises:
            InvalidArgumentError: If the cursor is malformed
            InternalError: If the query or the next cursor cannot be produced
        """
        limit = effective_limit(request.limit)
        sql, params = self.build_query(request, query, limit).build()

        try:
            if executor is None:
                executor = await get_db_pool()
            rows = await executor.fetch(sql, *params)
            data = [self.row_factory(row) for row in rows]
        except asyncpg.PostgresError as e:
            logger.error(f"Database error running pagination query: {e}", exc_info=True)
            raise InternalError()
        except Exception as e:
            logger.error(f"Unexpected error running pagination query: {e}", exc_info=True)
            raise InternalError()

        next_cursor = None
        if len(data) > limit:
            data = data[:limit]
            try:
                first, second = self.key_extractor(data[-1])
                next_cursor = encode_cursor(first, second)
            except Exception as e:
                logger.error(f"Failed to serialize next cursor: {e}", exc_info=True)
                raise InternalError()

        logger.debug(
            f"Fetched {len(data)} rows ordered by {self.keys}, "
            f"has_more={next_cursor is not None}"
        )
        return PaginationResponse(data=data, next_cursor=next_cursor)


async def paginate(
    request: PaginationRequest,
    composite_key: Tuple[str, str],
    key_extractor: Optional[KeyExtractor],
    base_query: QueryBuilder,
    key_types: Tuple[KeyType, KeyType] = (KeyType.STRING, KeyType.STRING),
    row_factory: RowFactory = dict,
    executor: Any = None
) -> PaginationResponse:
    """Fetch one page of ``base_query`` ordered by ``composite_key``.

    Shorthand for building a :class:`Paginator` and calling its
    :meth:`Paginator.paginate`.
    """
    paginator = Paginator(
        composite_key,
        key_types=key_types,
        key_extractor=key_extractor,
        row_factory=row_factory
    )
    return await paginator.paginate(request, base_query, executor=executor)
