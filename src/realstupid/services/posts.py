"""Service-level helpers for creating posts."""
from __future__ import annotations

import logging
import random
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select

from realstupid.core.errors import Unauthenticated, ValidationFailed
from realstupid.core.settings import settings
from realstupid.db.session import Store
from realstupid.models import Community, Post
from realstupid.schemas.common import coerce_model
from realstupid.schemas.post import PostCreate

from .invalidation import InvalidationHook, StaleViews, notify

__all__ = ["create_post", "placeholder_image_url"]

logger = logging.getLogger(__name__)


def placeholder_image_url(seed: int) -> str:
    """Return the stand-in URL stored for an attached image."""
    base = settings.placeholder_image_base_url.rstrip("/")
    return f"{base}/seed/{seed}/800/600"


def create_post(
    store: Store,
    data: PostCreate | Mapping[str, Any],
    author_id: str | None,
    *,
    on_stale: InvalidationHook | None = None,
) -> Post:
    """Create a post in an existing community of the same mode.

    Args:
        store: Store handle.
        data: Post fields; a mapping is validated against ``PostCreate``.
        author_id: Identity of the author; required.
        on_stale: Receives the views made stale once the post is committed.

    Returns:
        The persisted post.

    Raises:
        Unauthenticated: If ``author_id`` is empty.
        ValidationFailed: If a field is malformed, both a link and an image are
            given, or the community does not exist in the post's mode.
    """
    if not author_id:
        raise Unauthenticated("You must be signed in to post")
    data = coerce_model(PostCreate, data)
    if data.link and data.image_name:
        raise ValidationFailed({"link": "Provide either a link or an image, not both."})

    image_url: str | None = None
    if data.image_name:
        # Uploads are not stored yet; keep a placeholder in their place.
        image_url = placeholder_image_url(random.randint(0, 999))
        logger.info("Image %r received, storing placeholder %s", data.image_name, image_url)

    with store.transaction() as db:
        community = db.scalars(
            select(Community).where(
                Community.name == data.community,
                Community.mode == data.mode,
            )
        ).first()
        if community is None:
            raise ValidationFailed(
                {"community": f"There is no {data.mode} community named {data.community!r}."}
            )
        post = Post(
            title=data.title,
            content=data.content,
            link=data.link,
            image_url=image_url,
            community=community.name,
            mode=data.mode,
            user_id=author_id,
            upvotes=0,
            downvotes=0,
        )
        db.add(post)

    logger.info("User %s posted %s in %s/%s", author_id, post.id, post.mode, post.community)
    notify(on_stale, StaleViews.of(modes=[post.mode], communities=[post.community]))
    return post
