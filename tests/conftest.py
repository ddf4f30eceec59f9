# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from datetime import datetime
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from realstupid.core.security import create_access_token
from realstupid.db.session import Store
from realstupid.main import create_app
from realstupid.models import Community, Post, PostVote, User
from realstupid.services.communities import create_community
from realstupid.services.feed import FeedComposer
from realstupid.services.invalidation import StaleViews
from realstupid.services.users import get_or_create_user
from realstupid.services.votes import VoteEngine

TEST_DB_URL = "sqlite://"


@pytest.fixture()
def store() -> Iterator[Store]:
    """Provide a fresh in-memory store per test."""
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    store = Store(engine)
    store.create_tables()
    try:
        yield store
    finally:
        store.drop_tables()
        store.dispose()


@pytest.fixture()
def stale_events() -> list[StaleViews]:
    """Collect stale-view signals emitted by services."""
    return []


@pytest.fixture()
def vote_engine(store: Store, stale_events: list[StaleViews]) -> VoteEngine:
    return VoteEngine(store, on_stale=stale_events.append)


@pytest.fixture()
def feed(store: Store) -> FeedComposer:
    return FeedComposer(store)


def _make_user(store: Store, user_id: str, name: str | None) -> User:
    return get_or_create_user(
        store,
        {
            "user_id": user_id,
            "display_name": name,
            "email": f"{user_id}@example.com",
            "avatar_url": f"https://img.example.com/{user_id}.png",
        },
    )


@pytest.fixture()
def user_a(store: Store) -> User:
    """Create the primary test user."""
    return _make_user(store, "user-a", "Alice")


@pytest.fixture()
def user_b(store: Store) -> User:
    """Create a second test user."""
    return _make_user(store, "user-b", "Bob")


@pytest.fixture()
def community(store: Store, user_a: User) -> Community:
    """Create a default real-mode community."""
    return create_community(store, {"name": "webdev", "mode": "real"}, user_a.id)


@pytest.fixture()
def stupid_community(store: Store, user_a: User) -> Community:
    """Create a default stupid-mode community."""
    return create_community(store, {"name": "shower_thoughts", "mode": "stupid"}, user_a.id)


@pytest.fixture()
def make_post(store: Store, user_a: User, community: Community) -> Callable[..., Post]:
    """Return a factory inserting posts directly, with optional timestamps."""

    def _make_post(
        title: str = "A test post",
        *,
        mode: str = "real",
        community_name: str | None = None,
        user_id: str | None = None,
        created_at: datetime | None = None,
        **fields: Any,
    ) -> Post:
        values: dict[str, Any] = {
            "title": title,
            "community": community_name or community.name,
            "mode": mode,
            "user_id": user_id or user_a.id,
            "upvotes": 0,
            "downvotes": 0,
            **fields,
        }
        if created_at is not None:
            values["created_at"] = created_at
        with store.transaction() as db:
            post = Post(**values)
            db.add(post)
        return post

    return _make_post


@pytest.fixture()
def post(make_post: Callable[..., Post]) -> Post:
    """Create a baseline post with no votes."""
    return make_post("I built a spaceship with CSS gradients")


def vote_rows(store: Store, post_id: int) -> dict[str, str]:
    """Return ``{user_id: vote_type}`` for a post."""
    with store.session() as db:
        rows = db.execute(
            select(PostVote.user_id, PostVote.vote_type).where(PostVote.post_id == post_id)
        ).all()
    return dict(rows)


def counters(store: Store, post_id: int) -> tuple[int, int]:
    """Return the stored ``(upvotes, downvotes)`` of a post."""
    with store.session() as db:
        return tuple(
            db.execute(select(Post.upvotes, Post.downvotes).where(Post.id == post_id)).one()
        )


def assert_counters_match_votes(store: Store, post_id: int) -> None:
    """Check that the denormalized counters equal the vote table tallies."""
    with store.session() as db:
        tallies = dict(
            db.execute(
                select(PostVote.vote_type, func.count())
                .where(PostVote.post_id == post_id)
                .group_by(PostVote.vote_type)
            ).all()
        )
    assert counters(store, post_id) == (tallies.get("up", 0), tallies.get("down", 0))


@pytest.fixture()
def app(store: Store, stale_events: list[StaleViews]) -> FastAPI:
    return create_app(store, invalidation_hook=stale_events.append)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a factory producing bearer headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
