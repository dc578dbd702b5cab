# batched profile lookups used to render the "other user" of rows
from typing import Iterable

from sqlmodel import Session, select

from models.profile import Profile
from models.views import ProfileCard


def profile_cards(session: Session, user_ids: Iterable[str]) -> dict[str, ProfileCard]:
    """One query for all the ids, missing profiles are simply absent"""
    ids = {uid for uid in user_ids if uid}
    if not ids:
        return {}
    profiles = session.exec(select(Profile).where(Profile.id.in_(ids))).all()
    return {p.id: ProfileCard.from_row(p) for p in profiles}
