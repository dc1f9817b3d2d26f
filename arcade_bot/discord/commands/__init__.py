from __future__ import annotations

from typing import Sequence

# Single registry of slash command modules, in load order.
# Each module must expose:
#     name: str, description: str, options: list[dict] (optional),
#     cooldown: float (optional), async def execute(interaction) -> None
# Add new modules here; nothing is discovered by scanning the filesystem.
COMMAND_MODULES: Sequence[str] = (
    "arcade_bot.discord.commands.ping",
    "arcade_bot.discord.commands.help",
)

__all__ = ["COMMAND_MODULES"]
