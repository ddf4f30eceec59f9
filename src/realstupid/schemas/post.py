"""Post-related Pydantic schemas."""

from datetime import datetime
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .common import COMMUNITY_NAME_PATTERN, Mode, VoteType, blank_to_none


class PostCreate(BaseModel):
    """Schema for creating a new post.

    ``image_name`` stands in for an uploaded file; the stored ``image_url`` is
    a placeholder until real uploads exist.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=3, max_length=256)
    community: str = Field(..., pattern=COMMUNITY_NAME_PATTERN, description="Community name")
    mode: Mode = "real"
    content: str | None = Field(None, max_length=40000)
    link: str | None = Field(None, max_length=2048)
    image_name: str | None = Field(None, max_length=255)

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_optionals(cls, data: object) -> object:
        return blank_to_none(data, ("content", "link", "image_name"))

    @field_validator("link")
    @classmethod
    def _check_link(cls, value: str | None) -> str | None:
        if value is None:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Please enter a valid URL.")
        return value


class AuthorView(BaseModel):
    """Display data for a post or comment author."""

    name: str
    avatar_url: str | None = None


class PostView(BaseModel):
    """Denormalized post as shown in feeds and on the post page."""

    id: int
    title: str
    content: str | None
    link: str | None
    image_url: str | None
    community: str
    mode: Mode
    author: AuthorView
    created_at: datetime
    upvotes: int
    downvotes: int
    score: int
    comments_count: int = 0
    user_vote: VoteType | None = None


class PostCreated(BaseModel):
    """Identifier of a freshly created post."""

    id: int
