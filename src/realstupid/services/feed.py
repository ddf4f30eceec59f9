"""Read-models for feeds, single posts and comment lists.

Each call composes its view from the normalized tables; nothing is cached
between requests.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, and_, func, null, select

from realstupid.core.errors import ValidationFailed
from realstupid.db.session import Store
from realstupid.models import MODES, Comment, Post, PostVote, User, is_storable_post_id
from realstupid.schemas.comment import CommentView
from realstupid.schemas.post import AuthorView, PostView

__all__ = ["FeedComposer", "UNKNOWN_AUTHOR"]

UNKNOWN_AUTHOR = "Unknown User"


def _author(display_name: str | None, avatar_url: str | None) -> AuthorView:
    return AuthorView(name=display_name or UNKNOWN_AUTHOR, avatar_url=avatar_url)


class FeedComposer:
    """Join posts with authors, the requester's vote and comment counts."""

    def __init__(self, store: Store) -> None:
        self.store = store

    def _post_query(self, requesting_user_id: str | None) -> Select[Any]:
        comment_counts = (
            select(Comment.post_id, func.count(Comment.id).label("comments_count"))
            .group_by(Comment.post_id)
            .subquery()
        )
        user_vote = PostVote.vote_type if requesting_user_id else null()

        stmt = (
            select(
                Post,
                User.display_name,
                User.avatar_url,
                func.coalesce(comment_counts.c.comments_count, 0).label("comments_count"),
                user_vote.label("user_vote"),
            )
            .select_from(Post)
            .outerjoin(User, User.id == Post.user_id)
            .outerjoin(comment_counts, comment_counts.c.post_id == Post.id)
        )
        if requesting_user_id:
            stmt = stmt.outerjoin(
                PostVote,
                and_(
                    PostVote.post_id == Post.id,
                    PostVote.user_id == requesting_user_id,
                ),
            )
        return stmt

    @staticmethod
    def _to_view(row: Any) -> PostView:
        post: Post = row[0]
        return PostView(
            id=post.id,
            title=post.title,
            content=post.content,
            link=post.link,
            image_url=post.image_url,
            community=post.community,
            mode=post.mode,
            author=_author(row.display_name, row.avatar_url),
            created_at=post.created_at,
            upvotes=post.upvotes,
            downvotes=post.downvotes,
            score=post.upvotes - post.downvotes,
            comments_count=int(row.comments_count or 0),
            user_vote=row.user_vote,
        )

    def list_posts(
        self,
        mode: str,
        community: str | None = None,
        requesting_user_id: str | None = None,
        *,
        limit: int | None = None,
    ) -> list[PostView]:
        """Return the feed for ``mode``, newest first.

        Posts created in the same instant are ordered by ascending id.

        Raises:
            ValidationFailed: If ``mode`` is not ``real`` or ``stupid``.
        """
        if mode not in MODES:
            raise ValidationFailed({"mode": "Mode must be 'real' or 'stupid'"})

        stmt = self._post_query(requesting_user_id).where(Post.mode == mode)
        if community:
            stmt = stmt.where(Post.community == community)
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        with self.store.session() as db:
            return [self._to_view(row) for row in db.execute(stmt)]

    def get_post(self, post_id: int, requesting_user_id: str | None = None) -> PostView | None:
        """Return one post view, or None when no post has that id."""
        if not is_storable_post_id(post_id):
            return None
        stmt = self._post_query(requesting_user_id).where(Post.id == post_id)
        with self.store.session() as db:
            row = db.execute(stmt).first()
        if row is None:
            return None
        return self._to_view(row)

    def list_comments(self, post_id: int) -> list[CommentView]:
        """Return a post's comments as a flat list, oldest first."""
        if not is_storable_post_id(post_id):
            return []
        stmt = (
            select(Comment, User.display_name, User.avatar_url)
            .select_from(Comment)
            .outerjoin(User, User.id == Comment.user_id)
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        with self.store.session() as db:
            rows = db.execute(stmt).all()
        return [
            CommentView(
                id=comment.id,
                post_id=comment.post_id,
                content=comment.content,
                author=_author(display_name, avatar_url),
                created_at=comment.created_at,
            )
            for comment, display_name, avatar_url in rows
        ]
