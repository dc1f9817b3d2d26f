from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import SQLModel, Field


class RedeemableRole(SQLModel, table=True):
    """
    A Discord role members can redeem, scoped to one guild.

    (guild_id, role_id) is unique: the same Discord role can only be offered
    once per guild.
    """

    __tablename__ = "redeemable_roles"
    __table_args__ = (
        UniqueConstraint("guild_id", "role_id"),
        CheckConstraint("role_type IN ('band', 'team')"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    guild_id: str = Field(index=True)
    role_id: str
    role_name: str

    # band | team
    role_type: str
    description: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
