from fastapi import APIRouter, Depends
from sqlmodel import Session

from models.common import get_session
from models.views import QrToken, ResolvedQrToken
from routes.deps import current_user_id
from services.profile_qr import (
    get_or_create_token as svc_get_or_create_token,
    resolve_token as svc_resolve_token,
)

router = APIRouter(prefix="/profile-qr")


@router.post("", response_model=QrToken)
async def get_or_create(
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    return svc_get_or_create_token(session, user_id=user_id)


# Public: the scanner may not be signed in yet
@router.get("/{token}", response_model=ResolvedQrToken)
async def resolve(token: str, session: Session = Depends(get_session)):
    return svc_resolve_token(session, token=token)
