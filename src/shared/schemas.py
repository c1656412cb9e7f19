"""Common Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class SuccessResponse(BaseModel):
    """Base for list-style responses that carry a success flag."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True


class CursorPagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_more: bool = Field(False, serialization_alias="hasMore")
    next_cursor: str | None = Field(None, serialization_alias="nextCursor")
