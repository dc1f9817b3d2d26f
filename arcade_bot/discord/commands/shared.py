from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    import discord

# Application command option type for string options
OPTION_STRING = 3


def option_value(interaction: "discord.Interaction", name: str, default: Any = None) -> Any:
    """Read a top-level option from the raw interaction payload."""
    data = interaction.data or {}
    for opt in data.get("options", []) or []:
        if opt.get("name") == name:
            return opt.get("value", default)
    return default


def format_latency(seconds: Optional[float]) -> str:
    if seconds is None or math.isnan(seconds) or math.isinf(seconds):
        return "n/a"
    return f"{round(seconds * 1000)}ms"


def truncate(s: str, limit: int = 1900) -> str:
    if not s:
        return ""
    if len(s) <= limit:
        return s
    return s[: max(0, limit - 3)] + "..."
