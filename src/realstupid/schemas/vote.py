"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, Field

from .common import VoteType


class VoteCreate(BaseModel):
    """Schema for casting a vote on a post."""

    vote_type: VoteType = Field(..., description="'up' or 'down'; repeating a vote removes it")


class VoteOutcome(BaseModel):
    """Authoritative state after a vote, for reconciling optimistic clients."""

    post_id: int
    user_vote: VoteType | None
    upvotes: int
    downvotes: int


class MyVoteResponse(BaseModel):
    """The requesting user's vote on a post, if any."""

    post_id: int
    user_vote: VoteType | None
