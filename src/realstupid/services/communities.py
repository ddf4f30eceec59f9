"""Community creation and lookup."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import func, select

from realstupid.core.errors import ConflictFailed, Unauthenticated
from realstupid.db.session import Store
from realstupid.models import Community
from realstupid.schemas.common import coerce_model
from realstupid.schemas.community import CommunityCreate

from .invalidation import InvalidationHook, StaleViews, notify

__all__ = ["create_community", "get_community", "list_communities"]

logger = logging.getLogger(__name__)


def create_community(
    store: Store,
    data: CommunityCreate | Mapping[str, Any],
    creator_id: str | None,
    *,
    on_stale: InvalidationHook | None = None,
) -> Community:
    """Create a community in the requested mode.

    Names are unique across both modes and compared case-insensitively.

    Raises:
        Unauthenticated: If no creator id is given.
        ValidationFailed: If the name or mode is malformed.
        ConflictFailed: If the name is already taken.
    """
    if not creator_id:
        raise Unauthenticated("You must be signed in to create a community")
    data = coerce_model(CommunityCreate, data)

    with store.transaction() as db:
        taken = db.scalars(
            select(Community.id).where(func.lower(Community.name) == data.name.lower())
        ).first()
        if taken is not None:
            raise ConflictFailed(f"Community {data.name!r} already exists")
        community = Community(name=data.name, mode=data.mode, creator_id=creator_id)
        db.add(community)

    logger.info("Created %s community %s", community.mode, community.name)
    notify(on_stale, StaleViews.of(modes=[community.mode], communities=[community.name]))
    return community


def get_community(store: Store, name: str) -> Community | None:
    """Return a community by exact name."""
    with store.session() as db:
        return db.scalars(select(Community).where(Community.name == name)).first()


def list_communities(store: Store, mode: str | None = None) -> list[Community]:
    """List communities, optionally restricted to one mode, ordered by name."""
    stmt = select(Community)
    if mode is not None:
        stmt = stmt.where(Community.mode == mode)
    with store.session() as db:
        return list(db.scalars(stmt.order_by(Community.name, Community.id)))
