import datetime
import hashlib

from sqlalchemy import CheckConstraint, Column, Index, String, UniqueConstraint
from sqlmodel import SQLModel, Field

from models.common import canonical_pair, new_id
from models.types import UtcAwareDateTime, utcnow

MESSAGE_MAX_LENGTH = 1000


def participant_key(a: str, b: str) -> str:
    low, high = canonical_pair(a, b)
    return hashlib.sha256(f"{low}:{high}".encode()).hexdigest()


class Conversation(SQLModel, table=True):
    __tablename__ = "conversations"
    __table_args__ = (
        UniqueConstraint("participant_key", name="uq_conversation_participants"),
        CheckConstraint(
            "participant_low_id < participant_high_id", name="ck_conversation_order"
        ),
        Index("idx_conversations_low", "participant_low_id"),
        Index("idx_conversations_high", "participant_high_id"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)

    # Canonical pair (always low < high)
    participant_low_id: str = Field(nullable=False)
    participant_high_id: str = Field(nullable=False)
    participant_key: str = Field(nullable=False)

    last_message_at: datetime.datetime | None = Field(
        default=None,
        sa_column=Column(UtcAwareDateTime(), nullable=True),
    )
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )
    updated_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False, index=True),
    )

    @classmethod
    def for_pair(cls, a: str, b: str) -> "Conversation":
        low, high = canonical_pair(a, b)
        return cls(
            participant_low_id=low,
            participant_high_id=high,
            participant_key=participant_key(low, high),
        )

    @property
    def participants(self) -> list[str]:
        return [self.participant_low_id, self.participant_high_id]

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.participant_low_id, self.participant_high_id)

    def other_participant(self, user_id: str) -> str:
        if user_id == self.participant_low_id:
            return self.participant_high_id
        return self.participant_low_id


class Message(SQLModel, table=True):
    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint("sender_id <> receiver_id", name="ck_message_not_self"),
        Index("idx_messages_conversation_created", "conversation_id", "created_at"),
        Index("idx_messages_receiver_unread", "receiver_id", "read"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    conversation_id: str = Field(foreign_key="conversations.id", nullable=False)
    sender_id: str = Field(nullable=False)
    receiver_id: str = Field(nullable=False)
    content: str = Field(
        sa_column=Column(String(MESSAGE_MAX_LENGTH), nullable=False)
    )
    read: bool = Field(default=False)

    # Soft delete, the row is kept
    deleted_at: datetime.datetime | None = Field(
        default=None,
        sa_column=Column(UtcAwareDateTime(), nullable=True),
    )
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )
