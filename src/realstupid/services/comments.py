"""Comment creation."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from realstupid.core.errors import NotFound, Unauthenticated
from realstupid.db.session import Store
from realstupid.models import Comment, Post, is_storable_post_id
from realstupid.schemas.comment import CommentCreate
from realstupid.schemas.common import coerce_model

from .invalidation import InvalidationHook, StaleViews, notify

__all__ = ["create_comment"]

logger = logging.getLogger(__name__)


def create_comment(
    store: Store,
    post_id: int,
    data: CommentCreate | Mapping[str, Any],
    author_id: str | None,
    *,
    on_stale: InvalidationHook | None = None,
) -> Comment:
    """Add a top-level comment to a post.

    Raises:
        Unauthenticated: If ``author_id`` is empty.
        ValidationFailed: If the content is empty or too long.
        NotFound: If the post does not exist.
    """
    if not author_id:
        raise Unauthenticated("You must be signed in to comment")
    data = coerce_model(CommentCreate, data)

    if not is_storable_post_id(post_id):
        raise NotFound(f"Post {post_id} not found")
    with store.transaction() as db:
        post = db.get(Post, post_id)
        if post is None:
            raise NotFound(f"Post {post_id} not found")
        comment = Comment(post_id=post_id, user_id=author_id, content=data.content)
        db.add(comment)
        stale = StaleViews.of(modes=[post.mode], communities=[post.community], post_ids=[post_id])

    logger.debug("User %s commented on post %s", author_id, post_id)
    notify(on_stale, stale)
    return comment
