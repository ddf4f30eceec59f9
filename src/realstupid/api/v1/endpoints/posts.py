"""Post, vote and comment endpoints for the RealStupid API."""

from fastapi import APIRouter, HTTPException, Query, status

from realstupid.core.settings import settings
from realstupid.schemas.comment import CommentCreate, CommentView
from realstupid.schemas.common import Mode
from realstupid.schemas.post import AuthorView, PostCreate, PostCreated, PostView
from realstupid.schemas.vote import MyVoteResponse, VoteCreate, VoteOutcome
from realstupid.services.comments import create_comment
from realstupid.services.feed import UNKNOWN_AUTHOR, FeedComposer
from realstupid.services.posts import create_post

from ..dependencies import (
    CurrentUserDep,
    FeedComposerDep,
    InvalidationHookDep,
    OptionalUserDep,
    StoreDep,
    VoteEngineDep,
)

router = APIRouter(prefix="/posts", tags=["posts"])


def _get_post_or_404(feed: FeedComposer, post_id: int, user_id: str | None) -> PostView:
    post = feed.get_post(post_id, user_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.get("/", response_model=list[PostView])
async def list_posts(
    feed: FeedComposerDep,
    user: OptionalUserDep,
    mode: Mode = Query("real", description="Feed to read"),
    community: str | None = Query(None, description="Filter by community name"),
    limit: int | None = Query(None, ge=1, description="Maximum number of posts to return"),
) -> list[PostView]:
    """List posts newest first, with the caller's vote when signed in."""
    if limit is not None:
        limit = min(limit, settings.feed_page_size_max)
    return feed.list_posts(mode, community, user.id if user else None, limit=limit)


@router.get("/{post_id}", response_model=PostView)
async def get_post(post_id: int, feed: FeedComposerDep, user: OptionalUserDep) -> PostView:
    """Get a single post."""
    return _get_post_or_404(feed, post_id, user.id if user else None)


@router.post("/", response_model=PostCreated, status_code=status.HTTP_201_CREATED)
async def submit_post(
    post_data: PostCreate,
    current_user: CurrentUserDep,
    store: StoreDep,
    hook: InvalidationHookDep,
) -> PostCreated:
    """Create a new post."""
    post = create_post(store, post_data, current_user.id, on_stale=hook)
    return PostCreated(id=post.id)


@router.post("/{post_id}/vote", response_model=VoteOutcome)
async def cast_vote(
    post_id: int,
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    engine: VoteEngineDep,
) -> VoteOutcome:
    """Cast, switch or withdraw a vote; repeating the current vote withdraws it."""
    return engine.cast_vote(post_id, vote_data.vote_type, current_user.id)


@router.get("/{post_id}/my-vote", response_model=MyVoteResponse)
async def get_my_vote(
    post_id: int,
    current_user: CurrentUserDep,
    engine: VoteEngineDep,
) -> MyVoteResponse:
    """Get the current user's vote on a post."""
    return MyVoteResponse(post_id=post_id, user_vote=engine.get_user_vote(post_id, current_user.id))


@router.get("/{post_id}/comments", response_model=list[CommentView])
async def list_comments(post_id: int, feed: FeedComposerDep) -> list[CommentView]:
    """List a post's comments, oldest first."""
    _get_post_or_404(feed, post_id, None)
    return feed.list_comments(post_id)


@router.post(
    "/{post_id}/comments",
    response_model=CommentView,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: int,
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    store: StoreDep,
    hook: InvalidationHookDep,
) -> CommentView:
    """Comment on a post."""
    comment = create_comment(store, post_id, comment_data, current_user.id, on_stale=hook)
    return CommentView(
        id=comment.id,
        post_id=comment.post_id,
        content=comment.content,
        author=AuthorView(
            name=current_user.display_name or UNKNOWN_AUTHOR,
            avatar_url=current_user.avatar_url,
        ),
        created_at=comment.created_at,
    )
