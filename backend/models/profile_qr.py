import datetime

from sqlmodel import SQLModel, Field, Column

from .types import UtcAwareDateTime, utcnow


class ProfileQrToken(SQLModel, table=True):
    """The token encoded in a user's tap-in QR code"""

    __tablename__ = "profile_qr_tokens"

    user_id: str = Field(primary_key=True)
    token: str = Field(index=True, unique=True)
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )
