"""Community-related endpoints for the RealStupid API."""

from fastapi import APIRouter, HTTPException, Query, status

from realstupid.models import Community
from realstupid.schemas.common import Mode
from realstupid.schemas.community import CommunityCreate, CommunityResponse
from realstupid.services import communities as community_service

from ..dependencies import CurrentUserDep, InvalidationHookDep, StoreDep

router = APIRouter(prefix="/communities", tags=["communities"])


@router.get("/", response_model=list[CommunityResponse])
async def list_communities(
    store: StoreDep,
    mode: Mode | None = Query(None, description="Only communities of this mode"),
) -> list[Community]:
    """List communities ordered by name."""
    return community_service.list_communities(store, mode)


@router.get("/{name}", response_model=CommunityResponse)
async def get_community(name: str, store: StoreDep) -> Community:
    """Get a community by name."""
    community = community_service.get_community(store, name)
    if community is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Community not found",
        )
    return community


@router.post("/", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
async def create_community(
    community_data: CommunityCreate,
    current_user: CurrentUserDep,
    store: StoreDep,
    hook: InvalidationHookDep,
) -> Community:
    """Create a new community. Names cannot be changed afterwards."""
    return community_service.create_community(
        store,
        community_data,
        current_user.id,
        on_stale=hook,
    )
