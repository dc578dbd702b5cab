import datetime
from enum import Enum

from sqlalchemy import UniqueConstraint, CheckConstraint, Column, Index
from sqlmodel import SQLModel, Field

from models.common import canonical_pair, new_id
from models.types import UtcAwareDateTime, utcnow


class ConnectionStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    blocked = "blocked"


class Connection(SQLModel, table=True):
    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint("pair_key", name="uq_connection_pair"),
        CheckConstraint("initiator_id <> target_id", name="ck_connection_not_self"),
        Index("idx_connections_initiator_target", "initiator_id", "target_id"),
        Index("idx_connections_target_initiator", "target_id", "initiator_id"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)

    # Direction matters: the target is the one who has to respond
    initiator_id: str = Field(nullable=False)
    target_id: str = Field(nullable=False)

    # Canonical "low:high" pair, one row per unordered pair
    pair_key: str = Field(nullable=False)

    status: ConnectionStatus = Field(default=ConnectionStatus.pending, index=True)

    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )
    updated_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False, index=True),
    )

    # Helpers
    @staticmethod
    def make_pair_key(a: str, b: str) -> str:
        low, high = canonical_pair(a, b)
        return f"{low}:{high}"

    def other_party(self, user_id: str) -> str:
        return self.target_id if self.initiator_id == user_id else self.initiator_id

    def involves(self, user_id: str) -> bool:
        return user_id in (self.initiator_id, self.target_id)


class Direction(str, Enum):
    outgoing = "outgoing"
    incoming = "incoming"


class Relationship(str, Enum):
    """The relationship as seen by one of the two parties"""

    none = "none"
    pending = "pending"  # sent by the viewer, waiting for the other side
    incoming = "incoming"  # waiting for the viewer to respond
    accepted = "accepted"
    blocked = "blocked"


class RespondAction(str, Enum):
    accept = "accept"
    decline = "decline"
    block = "block"
