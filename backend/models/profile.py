"""Profile directory models

Identities are owned by the auth provider, the profiles table mirrors the
public part of each account.
"""

import datetime

from sqlmodel import SQLModel, Field, Column, JSON
from .common import CamelModel
from .types import UtcAwareDateTime, utcnow


class Profile(SQLModel, CamelModel, table=True):
    __tablename__ = "profiles"

    id: str = Field(primary_key=True)
    name: str = Field(index=True)
    avatar_url: str | None = None
    major: str | None = None
    year: str | None = None
    bio: str | None = None
    interests: list[str] | None = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime.datetime = Field(
        default_factory=utcnow,
        sa_column=Column(UtcAwareDateTime(), nullable=False),
    )

    def __str__(self):
        return self.name
