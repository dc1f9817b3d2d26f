from __future__ import annotations

from typing import Sequence

# Gateway event modules, in load order.
# Each module must expose:
#     name: str (discord.py event name, without "on_"), once: bool,
#     async def execute(client, *event_args) -> None
EVENT_MODULES: Sequence[str] = (
    "arcade_bot.discord.listeners.ready",
    "arcade_bot.discord.listeners.interaction",
)

__all__ = ["EVENT_MODULES"]
