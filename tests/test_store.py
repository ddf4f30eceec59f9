"""Tests for the store handle's transaction semantics."""

import pytest
from sqlalchemy import select

from realstupid.core.errors import ConflictFailed, NotFound
from realstupid.models import User


def test_transaction_commits(store) -> None:
    with store.transaction() as db:
        db.add(User(id="u1", email="u1@example.com"))

    with store.session() as db:
        assert db.get(User, "u1") is not None


def test_domain_error_rolls_back(store) -> None:
    with pytest.raises(NotFound):
        with store.transaction() as db:
            db.add(User(id="u2", email="u2@example.com"))
            db.flush()
            raise NotFound("abort")

    with store.session() as db:
        assert db.get(User, "u2") is None


def test_integrity_error_becomes_conflict(store) -> None:
    with store.transaction() as db:
        db.add(User(id="u3", email="same@example.com"))

    with pytest.raises(ConflictFailed):
        with store.transaction() as db:
            db.add(User(id="u4", email="same@example.com"))

    with store.session() as db:
        assert db.scalars(select(User.id).order_by(User.id)).all() == ["u3"]
