"""Common Pydantic v2 schemas shared across the API.

Provides pagination, message and error response schemas.
"""

import math

from pydantic import BaseModel, ConfigDict, Field


class PaginationMeta(BaseModel):
    """Pagination metadata included in paginated responses."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(description="Total number of items")
    per_page: int = Field(description="Items per page")
    current_page: int = Field(description="Current page number")
    last_page: int = Field(description="Last page number (at least 1)")
    from_: int | None = Field(default=None, alias="from", description="1-based index of the first item on this page")
    to: int | None = Field(default=None, description="1-based index of the last item on this page")

    @classmethod
    def build(cls, *, total: int, page: int, per_page: int, count: int) -> "PaginationMeta":
        """Compute page bounds for a page holding ``count`` items."""
        first = (page - 1) * per_page + 1 if count else None
        return cls(
            total=total,
            per_page=per_page,
            current_page=page,
            last_page=max(1, math.ceil(total / per_page)),
            from_=first,
            to=first + count - 1 if first is not None else None,
        )


class MessageResponse(BaseModel):
    """Plain acknowledgement body."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response body."""

    message: str = Field(description="Human-readable error message")
    errors: dict[str, list[str]] | None = Field(default=None, description="Per-field validation messages")
