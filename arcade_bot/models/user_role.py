from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class UserRole(SQLModel, table=True):
    """A role a user redeemed in a specific guild."""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("guild_id", "user_id", "role_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)

    guild_id: str = Field(index=True)
    user_id: str = Field(foreign_key="users.user_id", index=True)
    role_id: str

    redeemed_at: datetime = Field(default_factory=datetime.utcnow)
