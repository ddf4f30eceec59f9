"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .communities import router as communities_router
from .posts import router as posts_router

__all__ = [
    "auth_router",
    "communities_router",
    "posts_router",
]
