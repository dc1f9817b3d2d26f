from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def split_csv(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    parts = [p.strip() for p in raw.split(",")]
    return [p for p in parts if p]


def _is_snowflake(value: str) -> bool:
    # Discord ids are unsigned 64-bit integers rendered as decimal strings.
    return value.isdigit() and 0 < len(value) <= 20


class Settings(BaseSettings):
    """
    Process settings (bot runtime + maintenance scripts).

    Rules:
    - Built once at the entry point via load_settings() and passed explicitly
    - Immutable once loaded
    - validate_required() is strict for the two secrets; optional values stay optional
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    # -------------------------
    # Discord application
    # -------------------------
    discord_token: str = Field(default="", alias="DISCORD_TOKEN")
    client_id: str = Field(default="", alias="CLIENT_ID")

    # Legacy single guild + comma-separated guild list; see guild_ids
    guild_id: str = Field(default="", alias="GUILD_ID")
    guild_ids_raw: str = Field(default="", alias="GUILD_IDS")

    # Sync discipline: only push the catalog on startup when asked to
    auto_register: bool = Field(default=False, alias="AUTO_REGISTER")

    discord_api_base: str = Field(default="https://discord.com/api/v10", alias="DISCORD_API_BASE")
    http_timeout_s: float = Field(default=15.0, alias="HTTP_TIMEOUT")

    # -------------------------
    # Persistence
    # -------------------------
    database_url: str = Field(default="", alias="DATABASE_URL")
    database_path: str = Field(default="./data/bot.db", alias="DATABASE_PATH")

    # Value written into guild_id for rows that predate guild scoping
    default_guild_id: str = Field(default="", alias="DEFAULT_GUILD_ID")

    # -------------------------
    # Health server / logging
    # -------------------------
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8736, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # -------------------------
    # Normalizers
    # -------------------------

    @field_validator("discord_token", "client_id", "guild_id", "guild_ids_raw", "database_url", "default_guild_id", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> str:
        return ("" if v is None else str(v)).strip()

    @field_validator("log_level", mode="before")
    @classmethod
    def _norm_log_level(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip().upper()
        return s or "INFO"

    @field_validator("discord_api_base", mode="before")
    @classmethod
    def _norm_api_base(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip().rstrip("/")
        return s or "https://discord.com/api/v10"

    @field_validator("database_path", mode="before")
    @classmethod
    def _norm_db_path(cls, v: Any) -> str:
        s = ("" if v is None else str(v)).strip()
        return s or "./data/bot.db"

    # -------------------------
    # Derived helpers
    # -------------------------

    @property
    def guild_ids(self) -> List[str]:
        """GUILD_IDS first, then GUILD_ID, de-duplicated, order preserved."""
        out: List[str] = []
        for gid in split_csv(self.guild_ids_raw) + split_csv(self.guild_id):
            if gid not in out:
                out.append(gid)
        return out

    @property
    def resolved_database_url(self) -> str:
        """
        Priority:
        1) DATABASE_URL if provided
        2) sqlite:/// URL built from DATABASE_PATH
        """
        if self.database_url:
            return self.database_url

        path = self.database_path
        if path.startswith("sqlite:"):
            return path

        p = Path(path)
        if not p.is_absolute():
            if str(p).startswith("./"):
                return f"sqlite:///{p.as_posix()}"
            return f"sqlite:///./{p.as_posix()}"
        return f"sqlite:////{p.as_posix().lstrip('/')}"

    def validate_required(self) -> None:
        """
        Strict validation for boot safety.
        Called by every entry point before discovery, sync or DB work.
        """
        if not self.discord_token:
            raise ConfigError("DISCORD_TOKEN is required in environment variables.")
        if not self.client_id:
            raise ConfigError("CLIENT_ID is required in environment variables.")
        if not _is_snowflake(self.client_id):
            raise ConfigError("CLIENT_ID must be a numeric application id.")

        bad = [g for g in self.guild_ids if not _is_snowflake(g)]
        if bad:
            raise ConfigError(f"GUILD_ID/GUILD_IDS contain invalid ids: {', '.join(bad)}")

        if self.log_level not in _LOG_LEVELS:
            raise ConfigError(f"LOG_LEVEL must be one of: {', '.join(sorted(_LOG_LEVELS))}")
        if not 0 < self.port < 65536:
            raise ConfigError("PORT must be between 1 and 65535.")
        if self.http_timeout_s <= 0:
            raise ConfigError("HTTP_TIMEOUT must be > 0.")


def load_settings(**overrides: Any) -> Settings:
    """
    Build the settings value once at process entry.
    Type errors from the environment (e.g. PORT=abc) surface as ConfigError.
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


__all__ = ["Settings", "load_settings", "split_csv"]
