"""Community-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import COMMUNITY_NAME_PATTERN, Mode


class CommunityCreate(BaseModel):
    """Schema for creating a new community."""

    name: str = Field(
        ...,
        min_length=3,
        max_length=21,
        pattern=COMMUNITY_NAME_PATTERN,
        description="Letters, digits and underscores only",
    )
    mode: Mode = "real"


class CommunityResponse(BaseModel):
    """Schema for community information returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    mode: Mode
    creator_id: str
    created_at: datetime
