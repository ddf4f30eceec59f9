"""Comment-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .post import AuthorView


class CommentCreate(BaseModel):
    """Schema for creating a new comment."""

    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=10000)


class CommentView(BaseModel):
    """Comment joined with its author's display data."""

    id: int
    post_id: int
    content: str
    author: AuthorView
    created_at: datetime
