import logging

from sqlmodel import Session, select

from models.connections import Relationship
from models.profile import Profile
from models.views import ProfileDetail, ProfileSearchResult
from services.connections import (
    find_between,
    relationship_for,
    relationships_for_candidates,
)
from services.errors import BadRequest, NotFound, store_errors

logger = logging.getLogger("tapin.profiles")

SEARCH_DEFAULT_LIMIT = 8
SEARCH_MAX_LIMIT = 20


def escape_like(text: str) -> str:
    """Match the user text literally inside a LIKE pattern
    >>> escape_like("50%_off")
    '50\\\\%\\\\_off'
    """
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@store_errors
def get_profile(session: Session, *, viewer_id: str, profile_id: str) -> ProfileDetail:
    profile = session.get(Profile, profile_id)
    if not profile:
        raise NotFound("Profile not found")

    connection = find_between(session, viewer_id, profile_id)
    return ProfileDetail(
        id=profile.id,
        name=profile.name,
        avatar=profile.avatar_url,
        major=profile.major,
        year=profile.year,
        bio=profile.bio,
        interests=profile.interests or [],
        created_at=profile.created_at,
        relationship=relationship_for(viewer_id, connection),
        connection_id=connection.id if connection else None,
    )


@store_errors
def search_profiles(
    session: Session, *, viewer_id: str, query: str, limit: int = SEARCH_DEFAULT_LIMIT
) -> list[ProfileSearchResult]:
    """Name search, each result labelled with the viewer's relationship"""
    query = (query or "").strip()
    if not query:
        raise BadRequest("Empty search query")
    if not 1 <= limit <= SEARCH_MAX_LIMIT:
        raise BadRequest(f"limit must be between 1 and {SEARCH_MAX_LIMIT}")

    profiles = session.exec(
        select(Profile)
        .where(
            Profile.name.ilike(f"%{escape_like(query)}%", escape="\\"),
            Profile.id != viewer_id,
        )
        .order_by(Profile.name)
        .limit(limit)
    ).all()
    if not profiles:
        return []

    relationships = relationships_for_candidates(
        session, viewer_id=viewer_id, candidate_ids=[p.id for p in profiles]
    )
    results = []
    for profile in profiles:
        relationship, connection_id = relationships.get(
            profile.id, (Relationship.none, None)
        )
        results.append(
            ProfileSearchResult(
                id=profile.id,
                name=profile.name,
                avatar=profile.avatar_url,
                major=profile.major,
                year=profile.year,
                relationship=relationship,
                connection_id=connection_id,
            )
        )
    return results
