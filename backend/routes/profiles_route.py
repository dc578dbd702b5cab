import uuid

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from models.common import get_session
from models.views import ProfileDetail, ProfileSearchResult
from routes.deps import current_user_id
from services.profiles import (
    SEARCH_DEFAULT_LIMIT,
    SEARCH_MAX_LIMIT,
    get_profile as svc_get_profile,
    search_profiles as svc_search_profiles,
)
from utils.logs import time_it

router = APIRouter(prefix="/profiles")


# declared before /{user_id} so "search" is not taken for an id
@router.get("/search", response_model=list[ProfileSearchResult])
@time_it
async def search(
    query: str = Query(min_length=1),
    limit: int = Query(SEARCH_DEFAULT_LIMIT, ge=1, le=SEARCH_MAX_LIMIT),
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    return svc_search_profiles(session, viewer_id=user_id, query=query, limit=limit)


@router.get("/{profile_id}", response_model=ProfileDetail)
async def get_profile(
    profile_id: uuid.UUID,
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    """The profile with the relationship between the current user and its owner"""
    return svc_get_profile(session, viewer_id=user_id, profile_id=str(profile_id))
