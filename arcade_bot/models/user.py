from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    A Discord user known to the bot.

    user_id is the Discord snowflake stored as a string (exceeds 32-bit ints).
    """

    __tablename__ = "users"

    user_id: str = Field(primary_key=True)
    username: str

    xp: int = Field(default=0)
    level: int = Field(default=1)
    balance: int = Field(default=100)
    daily_streak: int = Field(default=0)
    last_daily: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
