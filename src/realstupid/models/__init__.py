"""SQLAlchemy models for the RealStupid application."""

from .comment import Comment
from .community import Community
from .post import MODE_REAL, MODE_STUPID, MODES, POST_ID_MAX, Post, is_storable_post_id
from .user import User
from .vote import VOTE_DOWN, VOTE_TYPES, VOTE_UP, PostVote

__all__ = [
    "Comment",
    "Community",
    "Post", "MODE_REAL", "MODE_STUPID", "MODES", "POST_ID_MAX", "is_storable_post_id",
    "User",
    "PostVote", "VOTE_UP", "VOTE_DOWN", "VOTE_TYPES",
]
