"""Parameterized SQL building for keyset queries against PostgreSQL."""

import re
from typing import Any, List, Optional, Sequence, Tuple


_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?")


def quote_identifier(name: str) -> str:
    """Quote a column name, optionally table-qualified.

    Raises:
        ValueError: If the name is not a plain SQL identifier
    """
    if not isinstance(name, str) or not _IDENTIFIER_PATTERN.fullmatch(name):
        raise ValueError(f"Invalid column name: {name!r}")
    return ".".join(f'"{part}"' for part in name.split("."))


class QueryBuilder:
    """Accumulates a SELECT statement and its asyncpg ``$n`` parameters.

    ``select_sql`` is the bare ``SELECT ... FROM ...``; business filters go
    through :meth:`where`. The paginator adds the keyset predicate, ordering
    and row limit on a copy.

    Key columns are emitted double-quoted, which makes them case-sensitive
    in PostgreSQL: a mixed-case name must be spelled exactly as the column
    was created, not as an unquoted reference in ``select_sql`` would fold.

    Example:
        query = QueryBuilder("SELECT id, created_at, body FROM objects")
        query.where(f"collection = {query.bind('notes')}")
    """

    def __init__(self, select_sql: str, *params: Any):
        self.select_sql = select_sql.strip()
        self.params: List[Any] = list(params)
        self.conditions: List[str] = []
        self.order_clause: Optional[str] = None
        self.limit_clause: Optional[str] = None

    def bind(self, value: Any) -> str:
        """Add a parameter and return its placeholder."""
        self.params.append(value)
        return f"${len(self.params)}"

    def where(self, condition: str) -> "QueryBuilder":
        """AND a condition into the WHERE clause."""
        self.conditions.append(condition)
        return self

    def order_by(self, columns: Sequence[str], descending: bool = False) -> "QueryBuilder":
        direction = "DESC" if descending else "ASC"
        self.order_clause = "ORDER BY " + ", ".join(
            f"{quote_identifier(column)} {direction}" for column in columns
        )
        return self

    def limit(self, count: int) -> "QueryBuilder":
        self.limit_clause = f"LIMIT {self.bind(count)}"
        return self

    def copy(self) -> "QueryBuilder":
        clone = QueryBuilder(self.select_sql, *self.params)
        clone.conditions = list(self.conditions)
        clone.order_clause = self.order_clause
        clone.limit_clause = self.limit_clause
        return clone

    def build(self) -> Tuple[str, List[Any]]:
        """Render the statement.

        Returns:
            Tuple of (sql, parameters)
        """
        parts = [self.select_sql]
        if self.conditions:
            parts.append("WHERE " + " AND ".join(f"({c})" for c in self.conditions))
        if self.order_clause:
            parts.append(self.order_clause)
        if self.limit_clause:
            parts.append(self.limit_clause)
        return "\n".join(parts), list(self.params)


def keyset_condition(
    query: QueryBuilder,
    keys: Tuple[str, str],
    values: Tuple[Any, Any],
    smaller: bool
) -> str:
    """Build the range predicate selecting rows strictly past a cursor.

    For ``smaller`` the predicate is
    ``k1 < $a OR (k1 = $a AND k2 < $b)``; otherwise ``>`` is used.

    Args:
        query: Builder the cursor values are bound into
        keys: Composite key column names
        values: Typed cursor values, in key order
        smaller: Whether rows must sort before the cursor

    Returns:
        SQL condition text
    """
    first, second = (quote_identifier(key) for key in keys)
    op = "<" if smaller else ">"
    first_param = query.bind(values[0])
    second_param = query.bind(values[1])
    return (
        f"{first} {op} {first_param} OR "
        f"({first} = {first_param} AND {second} {op} {second_param})"
    )
