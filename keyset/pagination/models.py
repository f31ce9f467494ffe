"""Pydantic models for pagination requests and responses."""

from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")


class SortOrder(str, Enum):
    """Direction of the composite key ordering."""

    ASC = "asc"
    DESC = "desc"


class PaginationRequest(BaseModel):
    """Pagination parameters as received from the API layer."""

    cursor: Optional[str] = Field(default=None, description="Opaque cursor returned by a previous page")
    limit: Optional[int] = Field(default=None, ge=0, description="Requested page size")
    sort_by: Optional[str] = Field(default=None, description="Passed through untouched")
    sort_order: Optional[SortOrder] = Field(default=None, description="Sort order, ascending when omitted")

    model_config = ConfigDict(frozen=True)

    @property
    def descending(self) -> bool:
        return self.sort_order == SortOrder.DESC


class PaginationResponse(BaseModel, Generic[T]):
    """One page of results."""

    data: List[T] = Field(default_factory=list, description="Page contents, at most the effective limit")
    next_cursor: Optional[str] = Field(default=None, description="Cursor for the next page, absent on the last page")
