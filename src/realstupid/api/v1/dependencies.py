"""Shared API dependencies for the store, services and authentication."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from realstupid.core.security import decode_access_token
from realstupid.db.session import Store
from realstupid.models import User
from realstupid.services.feed import FeedComposer
from realstupid.services.invalidation import InvalidationHook
from realstupid.services.users import get_user
from realstupid.services.votes import VoteEngine

# Reads work anonymously, so a missing token is not an error here.
bearer_scheme = HTTPBearer(auto_error=False)


def get_store(request: Request) -> Store:
    """Return the store owned by the running application."""
    store: Store | None = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Store is not initialised",
        )
    return store


def get_invalidation_hook(request: Request) -> InvalidationHook | None:
    """Return the hook that receives stale-view signals."""
    return getattr(request.app.state, "invalidation_hook", None)


StoreDep = Annotated[Store, Depends(get_store)]
InvalidationHookDep = Annotated[InvalidationHook | None, Depends(get_invalidation_hook)]


def get_vote_engine(store: StoreDep, hook: InvalidationHookDep) -> VoteEngine:
    return VoteEngine(store, on_stale=hook)


def get_feed_composer(store: StoreDep) -> FeedComposer:
    return FeedComposer(store)


VoteEngineDep = Annotated[VoteEngine, Depends(get_vote_engine)]
FeedComposerDep = Annotated[FeedComposer, Depends(get_feed_composer)]


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    store: StoreDep,
) -> User | None:
    """Return the signed-in user, or None for anonymous requests.

    Raises:
        HTTPException: If a token was sent but is invalid or names no user.
    """
    if credentials is None:
        return None
    subject = decode_access_token(credentials.credentials)
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = get_user(store, subject)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]


def get_current_user(user: OptionalUserDep) -> User:
    """Return the signed-in user or reject the request."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]
