"""Tokens behind the tap-in QR codes.

A user gets one stable random token; scanning it resolves to the user id so
the scanner can open the profile and send a connection request.
"""

import logging
import secrets

from sqlmodel import Session, select

from models.profile_qr import ProfileQrToken
from models.views import QrToken, ResolvedQrToken
from services.conflicts import conflict_retry, insert_unique
from services.errors import BadRequest, NotFound, store_errors

logger = logging.getLogger("tapin.profile_qr")

TOKEN_MIN_LENGTH = 4


def make_token() -> str:
    return secrets.token_urlsafe(16)


@store_errors
@conflict_retry()
def get_or_create_token(session: Session, *, user_id: str) -> QrToken:
    existing = session.get(ProfileQrToken, user_id)
    if existing:
        return QrToken(token=existing.token)

    qr_token = insert_unique(session, ProfileQrToken(user_id=user_id, token=make_token()))
    logger.debug(f"New QR token for {user_id}")
    return QrToken(token=qr_token.token)


@store_errors
def resolve_token(session: Session, *, token: str) -> ResolvedQrToken:
    if not token or len(token) < TOKEN_MIN_LENGTH:
        raise BadRequest("Invalid token")
    qr_token = session.exec(
        select(ProfileQrToken).where(ProfileQrToken.token == token)
    ).first()
    if not qr_token:
        raise NotFound("Token not found")
    return ResolvedQrToken(user_id=qr_token.user_id)
