from __future__ import annotations

from typing import Optional


class ArcadeBotError(RuntimeError):
    """Base class for every error the bot core raises on purpose."""


class ConfigError(ArcadeBotError):
    """Missing or invalid configuration. Always fatal at the entry point."""


class ConfirmationRequired(ArcadeBotError):
    """A destructive operation was requested without explicit confirmation."""


class RegistrationError(ArcadeBotError):
    """
    The command registration API rejected a call or could not be reached.

    status_code is the HTTP status (None for transport failures).
    error_code is the platform's JSON error code when one was returned.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, error_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class MigrationError(ArcadeBotError):
    """A schema rebuild step failed. The transaction was rolled back."""

    def __init__(self, table: str, step: str, message: str) -> None:
        super().__init__(f"{table}: {step} failed: {message}")
        self.table = table
        self.step = step


__all__ = [
    "ArcadeBotError",
    "ConfigError",
    "ConfirmationRequired",
    "RegistrationError",
    "MigrationError",
]
