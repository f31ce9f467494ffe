"""FastAPI bindings for pagination query parameters."""

from enum import Enum
from typing import Annotated, Any, Dict, Optional
from urllib.parse import urlencode

from fastapi import Depends, Query

from .models import PaginationRequest, SortOrder


def get_pagination_request(
    cursor: Annotated[Optional[str], Query(description="Cursor returned as next_cursor by the previous page")] = None,
    limit: Annotated[Optional[int], Query(ge=0, description="Page size, 1-100; other values fall back to 10")] = None,
    sort_by: Annotated[Optional[str], Query(description="Sort field")] = None,
    sort_order: Annotated[Optional[SortOrder], Query(description="asc (default) or desc")] = None
) -> PaginationRequest:
    """Read pagination parameters from the query string."""
    return PaginationRequest(
        cursor=cursor,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order
    )


PaginationQuery = Annotated[PaginationRequest, Depends(get_pagination_request)]


def create_link_header(
    base_url: str,
    params: Dict[str, Any],
    next_cursor: Optional[str] = None
) -> Optional[str]:
    """Create a Link header (RFC 8288) pointing at the next page.

    Args:
        base_url: URL of the listed resource
        params: Current query parameters
        next_cursor: Cursor for the next page

    Returns:
        Link header value, or None on the last page
    """
    if not next_cursor:
        return None

    next_params = {
        k: v.value if isinstance(v, Enum) else v
        for k, v in params.items() if v is not None
    }
    next_params["cursor"] = next_cursor
    next_url = f"{base_url}?{urlencode(next_params)}"
    return f'<{next_url}>; rel="next"'
