"""Session endpoints.

Sign-in happens at the external identity provider; the client forwards the
resulting profile here to have it mirrored and to receive a session token.
"""

from fastapi import APIRouter, status

from realstupid.core.security import create_access_token
from realstupid.models import User
from realstupid.schemas.user import IdentityProfile, SessionResponse, UserResponse
from realstupid.services.users import get_or_create_user

from ..dependencies import CurrentUserDep, StoreDep

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/session",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Mirror an identity-provider profile and issue a session token",
)
async def open_session(profile: IdentityProfile, store: StoreDep) -> SessionResponse:
    """Create the local user on first sight and return an access token."""
    user = get_or_create_user(store, profile)
    return SessionResponse(
        access_token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def read_me(current_user: CurrentUserDep) -> User:
    """Return the signed-in user."""
    return current_user
