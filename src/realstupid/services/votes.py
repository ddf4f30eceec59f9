"""Vote engine: per-user votes on posts and the post counters derived from them.

Every vote change runs in one store transaction that touches both the
``post_votes`` row and the matching ``posts`` counters, so the counters never
drift from the vote table:

    no vote      + up/down  -> insert row, counter + 1
    same vote    + same     -> delete row, counter - 1 (floored at 0)
    other vote   + switch   -> update row, old counter - 1, new counter + 1

Retrying a committed toggle flips it again, so callers must not retry
``cast_vote`` blindly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import InstrumentedAttribute, Session
from sqlalchemy.sql.elements import ColumnElement

from realstupid.core.errors import (
    ConflictFailed,
    NotFound,
    StorageFailed,
    Unauthenticated,
    ValidationFailed,
    VoteFailed,
)
from realstupid.db.session import Store
from realstupid.models import VOTE_DOWN, VOTE_TYPES, VOTE_UP, Post, PostVote, is_storable_post_id
from realstupid.schemas.vote import VoteOutcome

from .invalidation import InvalidationHook, StaleViews, notify

__all__ = ["VoteEngine", "VoteTransition", "plan_vote"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteTransition:
    """Result of applying a requested vote to the user's current vote."""

    new_vote: str | None
    upvote_delta: int
    downvote_delta: int

    def apply(self, upvotes: int, downvotes: int) -> tuple[int, int]:
        """Predict counters after this transition; used for optimistic display."""
        return (
            max(0, upvotes + self.upvote_delta),
            max(0, downvotes + self.downvote_delta),
        )


def _delta(vote_type: str, sign: int) -> tuple[int, int]:
    return (sign, 0) if vote_type == VOTE_UP else (0, sign)


def plan_vote(existing: str | None, requested: str) -> VoteTransition:
    """Compute the vote transition for ``requested`` given ``existing``.

    Raises:
        ValueError: If either vote type is not ``up`` or ``down``.
    """
    if requested not in VOTE_TYPES:
        raise ValueError(f"Unknown vote type: {requested!r}")
    if existing is not None and existing not in VOTE_TYPES:
        raise ValueError(f"Unknown vote type: {existing!r}")

    if existing is None:
        up, down = _delta(requested, 1)
        return VoteTransition(requested, up, down)
    if existing == requested:
        up, down = _delta(requested, -1)
        return VoteTransition(None, up, down)

    old_up, old_down = _delta(existing, -1)
    new_up, new_down = _delta(requested, 1)
    return VoteTransition(requested, old_up + new_up, old_down + new_down)


def _counter_expr(column: InstrumentedAttribute[int], delta: int) -> ColumnElement[int]:
    if delta >= 0:
        return column + delta
    return case((column + delta > 0, column + delta), else_=0)


class VoteEngine:
    """Apply votes atomically and report the authoritative result."""

    def __init__(self, store: Store, *, on_stale: InvalidationHook | None = None) -> None:
        self.store = store
        self.on_stale = on_stale

    def cast_vote(self, post_id: int, vote_type: str, user_id: str | None) -> VoteOutcome:
        """Create, remove or switch ``user_id``'s vote on a post.

        Args:
            post_id: Post being voted on.
            vote_type: ``up`` or ``down``; repeating the current vote removes it.
            user_id: Voter identity; required.

        Returns:
            The user's vote and both counters as committed.

        Raises:
            Unauthenticated: If ``user_id`` is empty.
            ValidationFailed: If ``vote_type`` is unknown.
            VoteFailed: If the post does not exist or the transaction failed.
        """
        if not user_id:
            raise Unauthenticated("User must be logged in to vote")
        if vote_type not in VOTE_TYPES:
            raise ValidationFailed({"vote_type": "Vote type must be 'up' or 'down'"})
        if not is_storable_post_id(post_id):
            raise VoteFailed(post_id, "Post not found", missing_post=True)

        try:
            with self.store.transaction() as db:
                outcome, stale = self._apply(db, post_id, vote_type, user_id)
        except (ConflictFailed, StorageFailed) as exc:
            logger.warning("Vote by %s on post %s rolled back: %s", user_id, post_id, exc)
            raise VoteFailed(post_id, "Could not update vote count") from exc

        notify(self.on_stale, stale)
        return outcome

    def _apply(
        self,
        db: Session,
        post_id: int,
        vote_type: str,
        user_id: str,
    ) -> tuple[VoteOutcome, StaleViews]:
        post = db.execute(
            select(Post.mode, Post.community).where(Post.id == post_id).with_for_update()
        ).first()
        if post is None:
            raise VoteFailed(post_id, "Post not found", missing_post=True)

        existing = db.scalars(
            select(PostVote).where(
                PostVote.post_id == post_id,
                PostVote.user_id == user_id,
            )
        ).first()
        transition = plan_vote(existing.vote_type if existing else None, vote_type)

        if existing is None:
            db.add(PostVote(user_id=user_id, post_id=post_id, vote_type=vote_type))
        elif transition.new_vote is None:
            db.delete(existing)
        else:
            existing.vote_type = transition.new_vote
        db.flush()

        db.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(
                upvotes=_counter_expr(Post.upvotes, transition.upvote_delta),
                downvotes=_counter_expr(Post.downvotes, transition.downvote_delta),
            )
            .execution_options(synchronize_session=False)
        )
        upvotes, downvotes = db.execute(
            select(Post.upvotes, Post.downvotes).where(Post.id == post_id)
        ).one()

        outcome = VoteOutcome(
            post_id=post_id,
            user_vote=transition.new_vote,
            upvotes=upvotes,
            downvotes=downvotes,
        )
        stale = StaleViews.of(modes=[post.mode], communities=[post.community], post_ids=[post_id])
        return outcome, stale

    def get_user_vote(self, post_id: int, user_id: str | None) -> str | None:
        """Return ``user_id``'s current vote on a post, or None."""
        if not user_id or not is_storable_post_id(post_id):
            return None
        with self.store.session() as db:
            return db.scalars(
                select(PostVote.vote_type).where(
                    PostVote.post_id == post_id,
                    PostVote.user_id == user_id,
                )
            ).first()

    def reconcile_counts(self, post_id: int) -> tuple[int, int]:
        """Recompute a post's counters from its vote rows.

        Raises:
            NotFound: If the post does not exist.
        """
        with self.store.transaction() as db:
            if not is_storable_post_id(post_id) or db.get(Post, post_id) is None:
                raise NotFound(f"Post {post_id} not found")
            tallies = dict(
                db.execute(
                    select(PostVote.vote_type, func.count())
                    .where(PostVote.post_id == post_id)
                    .group_by(PostVote.vote_type)
                ).all()
            )
            upvotes = tallies.get(VOTE_UP, 0)
            downvotes = tallies.get(VOTE_DOWN, 0)
            db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(upvotes=upvotes, downvotes=downvotes)
                .execution_options(synchronize_session=False)
            )
        logger.info("Reconciled post %s counters to +%d/-%d", post_id, upvotes, downvotes)
        return upvotes, downvotes
