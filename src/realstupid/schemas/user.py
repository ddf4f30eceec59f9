"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import blank_to_none


class IdentityProfile(BaseModel):
    """Profile supplied by the identity provider on sign-in."""

    user_id: str = Field(..., min_length=1, max_length=191, description="Provider-issued user id")
    display_name: str | None = Field(None, max_length=128)
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    avatar_url: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_blank_optionals(cls, data: object) -> object:
        return blank_to_none(data, ("display_name", "avatar_url"))


class UserResponse(BaseModel):
    """Schema for user information returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str | None
    email: str
    avatar_url: str | None
    created_at: datetime


class SessionResponse(BaseModel):
    """Access token issued once the provider profile has been mirrored."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse
