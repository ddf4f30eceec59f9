"""Mirror identity-provider users into the local store."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from realstupid.core.errors import ConflictFailed
from realstupid.db.session import Store
from realstupid.models import User
from realstupid.schemas.common import coerce_model
from realstupid.schemas.user import IdentityProfile

__all__ = ["get_or_create_user", "get_user"]

logger = logging.getLogger(__name__)


def get_user(store: Store, user_id: str) -> User | None:
    """Return a user by provider id."""
    if not user_id:
        return None
    with store.session() as db:
        return db.get(User, user_id)


def get_or_create_user(store: Store, profile: IdentityProfile | Mapping[str, Any]) -> User:
    """Return the local user for ``profile``, creating it on first sight.

    Safe to call repeatedly with the same id: an existing row is returned
    unchanged. When two sign-ins race, the loser re-reads the winner's row.

    Raises:
        ValidationFailed: If the id or email is missing or malformed.
        ConflictFailed: If the email already belongs to a different user id.
    """
    profile = coerce_model(IdentityProfile, profile)

    existing = get_user(store, profile.user_id)
    if existing is not None:
        return existing

    try:
        with store.transaction() as db:
            user = User(
                id=profile.user_id,
                display_name=profile.display_name,
                email=profile.email,
                avatar_url=profile.avatar_url,
            )
            db.add(user)
        logger.info("Mirrored new user %s", profile.user_id)
        return user
    except ConflictFailed:
        # Possibly created by a concurrent request.
        existing = get_user(store, profile.user_id)
        if existing is None:
            logger.warning("Email for user %s is already registered", profile.user_id)
            raise
        return existing

