import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from models.common import CamelModel, get_session
from models.connections import ConnectionStatus, RespondAction
from models.views import ConnectionView, RemoveResult, RequestResult, RespondResult
from routes.deps import current_user_id
from services.connections import (
    list_connections as svc_list_connections,
    remove as svc_remove,
    respond as svc_respond,
    send_request as svc_send_request,
)

router = APIRouter(prefix="/connections")


class ConnectionRequestBody(CamelModel):
    target_user_id: uuid.UUID


class RespondBody(CamelModel):
    action: RespondAction


@router.get("", response_model=list[ConnectionView])
async def list_connections(
    status: ConnectionStatus | None = None,
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    """Every connection of the current user, most recently updated first"""
    return svc_list_connections(session, user_id=user_id, status=status)


@router.post("/request", response_model=RequestResult)
async def send_request(
    payload: ConnectionRequestBody,
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    return svc_send_request(
        session, user_id=user_id, target_id=str(payload.target_user_id)
    )


@router.post("/{connection_id}/respond", response_model=RespondResult)
async def respond(
    connection_id: uuid.UUID,
    payload: RespondBody,
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    return svc_respond(
        session,
        user_id=user_id,
        connection_id=str(connection_id),
        action=payload.action,
    )


@router.delete("/{target_user_id}", response_model=RemoveResult)
async def remove(
    target_user_id: uuid.UUID,
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    return svc_remove(session, user_id=user_id, target_id=str(target_user_id))
