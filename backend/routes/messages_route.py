import uuid

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlmodel import Session

from models.common import CamelModel, get_session
from models.messaging import MESSAGE_MAX_LENGTH
from models.views import (
    ConversationSummary,
    ConversationView,
    DeletedMessage,
    MessagePage,
    SentMessage,
    SuccessResult,
)
from routes.deps import current_user_id
from services.conversations import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    delete_message as svc_delete_message,
    get_conversation as svc_get_conversation,
    get_messages as svc_get_messages,
    list_conversations as svc_list_conversations,
    mark_read as svc_mark_read,
    send_message as svc_send_message,
    upsert_conversation as svc_upsert_conversation,
)
from utils.logs import time_it

router = APIRouter()


class ConversationBody(CamelModel):
    other_user_id: uuid.UUID


class MessageBody(CamelModel):
    other_user_id: uuid.UUID
    content: str = Field(min_length=1, max_length=MESSAGE_MAX_LENGTH)


@router.post("/conversations", response_model=ConversationView)
async def upsert_conversation(
    payload: ConversationBody,
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    """The conversation with the other user, created if missing"""
    return svc_upsert_conversation(
        session, user_id=user_id, other_id=str(payload.other_user_id)
    )


@router.get("/conversations", response_model=list[ConversationSummary])
@time_it
async def list_conversations(
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    return svc_list_conversations(session, user_id=user_id)


@router.get("/conversations/{conversation_id}", response_model=ConversationView)
async def get_conversation(
    conversation_id: uuid.UUID,
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    return svc_get_conversation(
        session, user_id=user_id, conversation_id=str(conversation_id)
    )


@router.get("/conversations/{conversation_id}/messages", response_model=MessagePage)
async def get_messages(
    conversation_id: uuid.UUID,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    cursor: str | None = None,
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    """Messages in chronological order, follow nextCursor for older ones"""
    return svc_get_messages(
        session,
        user_id=user_id,
        conversation_id=str(conversation_id),
        limit=limit,
        cursor=cursor,
    )


@router.post("/conversations/{conversation_id}/read", response_model=SuccessResult)
async def mark_read(
    conversation_id: uuid.UUID,
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    return svc_mark_read(session, user_id=user_id, conversation_id=str(conversation_id))


@router.post("/messages", response_model=SentMessage)
async def send_message(
    payload: MessageBody,
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    return svc_send_message(
        session,
        user_id=user_id,
        other_id=str(payload.other_user_id),
        content=payload.content,
    )


@router.delete("/messages/{message_id}", response_model=DeletedMessage)
async def delete_message(
    message_id: uuid.UUID,
    session: Session = Depends(get_session),
    user_id: str = Depends(current_user_id),
):
    return svc_delete_message(session, user_id=user_id, message_id=str(message_id))
