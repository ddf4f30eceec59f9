"""Tests for the vote engine state machine and counter maintenance."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine, update

from realstupid.core.errors import NotFound, Unauthenticated, ValidationFailed, VoteFailed
from realstupid.db.session import Store
from realstupid.models import POST_ID_MAX, Post
from realstupid.services.users import get_or_create_user
from realstupid.services.votes import VoteEngine, VoteTransition, plan_vote

from tests.conftest import assert_counters_match_votes, counters, vote_rows


def test_plan_vote_transitions() -> None:
    """New, repeated and switched votes produce the expected deltas."""
    assert plan_vote(None, "up") == VoteTransition("up", 1, 0)
    assert plan_vote(None, "down") == VoteTransition("down", 0, 1)
    assert plan_vote("up", "up") == VoteTransition(None, -1, 0)
    assert plan_vote("down", "down") == VoteTransition(None, 0, -1)
    assert plan_vote("up", "down") == VoteTransition("down", -1, 1)
    assert plan_vote("down", "up") == VoteTransition("up", 1, -1)


def test_plan_vote_rejects_unknown_type() -> None:
    with pytest.raises(ValueError):
        plan_vote(None, "sideways")
    with pytest.raises(ValueError):
        plan_vote("sideways", "up")


def test_transition_apply_floors_at_zero() -> None:
    """Optimistic prediction never shows negative counts."""
    assert plan_vote("up", "down").apply(5, 2) == (4, 3)
    assert plan_vote("up", "up").apply(0, 0) == (0, 0)


def test_first_upvote_creates_vote(store, vote_engine, post, user_a) -> None:
    """A first vote inserts a row and bumps the matching counter."""
    outcome = vote_engine.cast_vote(post.id, "up", user_a.id)

    assert outcome.user_vote == "up"
    assert (outcome.upvotes, outcome.downvotes) == (1, 0)
    assert counters(store, post.id) == (1, 0)
    assert vote_rows(store, post.id) == {user_a.id: "up"}


def test_repeating_vote_withdraws_it(store, vote_engine, post, user_a) -> None:
    """Casting the same vote twice removes it."""
    vote_engine.cast_vote(post.id, "up", user_a.id)
    outcome = vote_engine.cast_vote(post.id, "up", user_a.id)

    assert outcome.user_vote is None
    assert counters(store, post.id) == (0, 0)
    assert vote_rows(store, post.id) == {}


def test_switching_vote_moves_counters(store, vote_engine, post, user_a) -> None:
    """Switching from up to down updates the row in place."""
    vote_engine.cast_vote(post.id, "up", user_a.id)
    outcome = vote_engine.cast_vote(post.id, "down", user_a.id)

    assert outcome.user_vote == "down"
    assert counters(store, post.id) == (0, 1)
    assert vote_rows(store, post.id) == {user_a.id: "down"}


def test_votes_from_two_users_accumulate(store, vote_engine, post, user_a, user_b) -> None:
    vote_engine.cast_vote(post.id, "up", user_a.id)
    vote_engine.cast_vote(post.id, "up", user_b.id)

    assert counters(store, post.id) == (2, 0)
    assert vote_rows(store, post.id) == {user_a.id: "up", user_b.id: "up"}


def test_down_then_up_sequence(store, vote_engine, post, user_a) -> None:
    """up -> down -> up ends with a single upvote."""
    vote_engine.cast_vote(post.id, "up", user_a.id)
    vote_engine.cast_vote(post.id, "down", user_a.id)
    outcome = vote_engine.cast_vote(post.id, "up", user_a.id)

    assert outcome.user_vote == "up"
    assert counters(store, post.id) == (1, 0)


def test_counters_track_vote_table(store, vote_engine, post, user_a, user_b) -> None:
    """Counters equal vote tallies after every step of a mixed sequence."""
    sequence = [
        (user_a, "up"),
        (user_b, "down"),
        (user_a, "down"),
        (user_b, "down"),
        (user_a, "up"),
        (user_b, "up"),
        (user_a, "up"),
    ]
    for user, vote_type in sequence:
        vote_engine.cast_vote(post.id, vote_type, user.id)
        assert_counters_match_votes(store, post.id)
        assert len(vote_rows(store, post.id)) <= 2

    assert counters(store, post.id) == (1, 0)
    assert vote_rows(store, post.id) == {user_b.id: "up"}


@pytest.mark.parametrize("user_id", ["", None])
def test_vote_requires_identity(vote_engine, post, user_id) -> None:
    with pytest.raises(Unauthenticated):
        vote_engine.cast_vote(post.id, "up", user_id)


def test_vote_rejects_unknown_type(vote_engine, post, user_a) -> None:
    with pytest.raises(ValidationFailed) as excinfo:
        vote_engine.cast_vote(post.id, "sideways", user_a.id)
    assert "vote_type" in excinfo.value.errors


def test_vote_on_missing_post_fails(store, vote_engine, user_a, stale_events) -> None:
    with pytest.raises(VoteFailed) as excinfo:
        vote_engine.cast_vote(99999, "up", user_a.id)

    assert excinfo.value.missing_post is True
    assert excinfo.value.post_id == 99999
    assert vote_rows(store, 99999) == {}
    assert stale_events == []


def test_failed_vote_leaves_no_partial_state(store, vote_engine, post, stale_events) -> None:
    """A voter unknown to the store is rejected and nothing is written."""
    with pytest.raises(VoteFailed) as excinfo:
        vote_engine.cast_vote(post.id, "up", "ghost-user")

    assert excinfo.value.missing_post is False
    assert counters(store, post.id) == (0, 0)
    assert vote_rows(store, post.id) == {}
    assert stale_events == []


def test_vote_signals_stale_views(vote_engine, post, user_a, stale_events) -> None:
    vote_engine.cast_vote(post.id, "up", user_a.id)

    assert len(stale_events) == 1
    stale = stale_events[0]
    assert stale.modes == {"real"}
    assert stale.communities == {post.community}
    assert stale.post_ids == {post.id}


def test_withdraw_never_goes_negative(store, vote_engine, post, user_a) -> None:
    """A drifted counter is floored at zero on withdrawal."""
    vote_engine.cast_vote(post.id, "up", user_a.id)
    with store.transaction() as db:
        db.execute(update(Post).where(Post.id == post.id).values(upvotes=0))

    outcome = vote_engine.cast_vote(post.id, "up", user_a.id)

    assert outcome.upvotes == 0
    assert counters(store, post.id) == (0, 0)


def test_reconcile_counts_repairs_drift(store, vote_engine, post, user_a, user_b) -> None:
    vote_engine.cast_vote(post.id, "up", user_a.id)
    vote_engine.cast_vote(post.id, "down", user_b.id)
    with store.transaction() as db:
        db.execute(update(Post).where(Post.id == post.id).values(upvotes=7, downvotes=0))

    assert vote_engine.reconcile_counts(post.id) == (1, 1)
    assert_counters_match_votes(store, post.id)


def test_reconcile_counts_missing_post(vote_engine) -> None:
    with pytest.raises(NotFound):
        vote_engine.reconcile_counts(424242)


def test_get_user_vote(vote_engine, post, user_a, user_b) -> None:
    vote_engine.cast_vote(post.id, "down", user_a.id)

    assert vote_engine.get_user_vote(post.id, user_a.id) == "down"
    assert vote_engine.get_user_vote(post.id, user_b.id) is None
    assert vote_engine.get_user_vote(post.id, None) is None


@pytest.mark.parametrize("post_id", [0, -1, POST_ID_MAX + 1, 2**70])
def test_out_of_range_post_id_is_missing_post(vote_engine, user_a, stale_events, post_id) -> None:
    with pytest.raises(VoteFailed) as excinfo:
        vote_engine.cast_vote(post_id, "up", user_a.id)

    assert excinfo.value.missing_post is True
    assert stale_events == []
    assert vote_engine.get_user_vote(post_id, user_a.id) is None
    with pytest.raises(NotFound):
        vote_engine.reconcile_counts(post_id)


@pytest.fixture()
def file_store(tmp_path):
    """A file-backed store that several threads can write to."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'votes.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    store = Store(engine)
    store.create_tables()
    try:
        yield store
    finally:
        store.dispose()


def test_concurrent_votes_keep_counters_consistent(file_store) -> None:
    voters = [f"voter-{n}" for n in range(12)]
    for voter in voters:
        get_or_create_user(file_store, {"user_id": voter, "email": f"{voter}@example.com"})
    with file_store.transaction() as db:
        post = Post(title="Race me", community="webdev", mode="real", user_id=voters[0])
        db.add(post)

    engine = VoteEngine(file_store)

    # Odd voters switch from down to up; multiples of three end by withdrawing.
    def vote_as(index: int) -> None:
        voter = voters[index]
        first = "up" if index % 2 == 0 else "down"
        engine.cast_vote(post.id, first, voter)
        if index % 2:
            engine.cast_vote(post.id, "up", voter)
        if index % 3 == 0:
            engine.cast_vote(post.id, "up", voter)

    with ThreadPoolExecutor(max_workers=6) as pool:
        list(pool.map(vote_as, range(len(voters))))

    assert_counters_match_votes(file_store, post.id)
    expected_up = sum(1 for index in range(len(voters)) if index % 3)
    assert counters(file_store, post.id) == (expected_up, 0)
