"""Typed records returned by the services.

Rows are mapped into these in one place (the ``from_row`` constructors), the
routes serialize them with camelCase keys.
"""

import datetime

from models.common import CamelModel
from models.connections import (
    Connection,
    ConnectionStatus,
    Direction,
    Relationship,
)
from models.messaging import Conversation, Message
from models.profile import Profile


class ProfileCard(CamelModel):
    id: str
    name: str
    avatar: str | None = None

    @classmethod
    def from_row(cls, profile: Profile | None) -> "ProfileCard | None":
        if profile is None:
            return None
        return cls(id=profile.id, name=profile.name, avatar=profile.avatar_url)


class ConnectionView(CamelModel):
    id: str
    status: ConnectionStatus
    direction: Direction
    relationship: Relationship
    other_user_id: str
    other_user: ProfileCard | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class RequestResult(CamelModel):
    status: ConnectionStatus
    connection_id: str


class RespondResult(CamelModel):
    # "declined" has no stored counterpart: the row is gone
    status: str


class RemoveResult(CamelModel):
    removed: bool


class MessageView(CamelModel):
    id: str
    conversation_id: str
    sender_id: str
    receiver_id: str
    content: str
    read: bool
    deleted_at: datetime.datetime | None = None
    created_at: datetime.datetime

    @classmethod
    def from_row(cls, message: Message) -> "MessageView":
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            receiver_id=message.receiver_id,
            content=message.content,
            read=bool(message.read),
            deleted_at=message.deleted_at,
            created_at=message.created_at,
        )


class SentMessage(MessageView):
    participants: list[str]


class MessagePage(CamelModel):
    items: list[MessageView]
    next_cursor: str | None = None


class ConversationView(CamelModel):
    id: str
    participants: list[str]
    other_user: ProfileCard | None = None
    last_message_at: datetime.datetime | None = None
    updated_at: datetime.datetime

    @classmethod
    def from_row(
        cls, conversation: Conversation, other_user: ProfileCard | None = None
    ) -> "ConversationView":
        return cls(
            id=conversation.id,
            participants=conversation.participants,
            other_user=other_user,
            last_message_at=conversation.last_message_at,
            updated_at=conversation.updated_at,
        )


class ConversationSummary(ConversationView):
    last_message: MessageView | None = None
    unread_count: int = 0


class SuccessResult(CamelModel):
    success: bool = True


class DeletedMessage(SuccessResult):
    conversation_id: str


class ProfileDetail(CamelModel):
    id: str
    name: str
    avatar: str | None = None
    major: str | None = None
    year: str | None = None
    bio: str | None = None
    interests: list[str] = []
    created_at: datetime.datetime
    relationship: Relationship = Relationship.none
    connection_id: str | None = None


class ProfileSearchResult(CamelModel):
    id: str
    name: str
    avatar: str | None = None
    major: str | None = None
    year: str | None = None
    relationship: Relationship = Relationship.none
    connection_id: str | None = None


class QrToken(CamelModel):
    token: str


class ResolvedQrToken(CamelModel):
    user_id: str


def connection_view(
    viewer_id: str,
    connection: Connection,
    relationship: Relationship,
    other_user: ProfileCard | None,
) -> ConnectionView:
    return ConnectionView(
        id=connection.id,
        status=connection.status,
        direction=(
            Direction.outgoing
            if connection.initiator_id == viewer_id
            else Direction.incoming
        ),
        relationship=relationship,
        other_user_id=connection.other_party(viewer_id),
        other_user=other_user,
        created_at=connection.created_at,
        updated_at=connection.updated_at,
    )
