from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable, Dict, Tuple

import discord

if TYPE_CHECKING:
    from ..bot import ArcadeBot

logger = logging.getLogger(__name__)

name = "interaction"
once = False

ERROR_MESSAGE = "There was an error while executing this command!"


class Cooldowns:
    """Per (command, user) cooldown windows."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._until: Dict[Tuple[str, int], float] = {}

    def _prune(self, now: float) -> None:
        if len(self._until) < 1000:
            return
        self._until = {k: t for k, t in self._until.items() if t > now}

    def hit(self, command: str, user_id: int, seconds: float) -> float:
        """
        Record a use. Returns 0 if allowed, otherwise the seconds left
        (the use is not recorded).
        """
        now = self._clock()
        self._prune(now)

        key = (command, user_id)
        until = self._until.get(key, 0.0)
        if now < until:
            return until - now

        if seconds > 0:
            self._until[key] = now + seconds
        return 0.0


cooldowns = Cooldowns()


async def execute(client: "ArcadeBot", interaction: discord.Interaction) -> None:
    if interaction.type is not discord.InteractionType.application_command:
        return

    command_name = str((interaction.data or {}).get("name", ""))
    command = client.registry.get_command(command_name)
    if command is None:
        logger.warning("No command matching %s was found.", command_name)
        return

    wait = cooldowns.hit(command.name, interaction.user.id, command.cooldown)
    if wait > 0:
        expires = int(time.time() + wait)
        await interaction.response.send_message(
            f"Please wait, you are on a cooldown for `{command.name}`. You can use it again <t:{expires}:R>.",
            ephemeral=True,
        )
        return

    try:
        await command.executor(interaction)
        logger.info("Command %s executed by %s", command.name, interaction.user)
    except Exception:
        logger.exception("Error executing command %s", command.name)
        if interaction.response.is_done():
            await interaction.followup.send(ERROR_MESSAGE, ephemeral=True)
        else:
            await interaction.response.send_message(ERROR_MESSAGE, ephemeral=True)
