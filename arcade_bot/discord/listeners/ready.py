from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

if TYPE_CHECKING:
    from ..bot import ArcadeBot

logger = logging.getLogger(__name__)

name = "ready"
once = True


async def execute(client: "ArcadeBot") -> None:
    logger.info("Ready! Logged in as %s", client.user)

    await client.change_presence(activity=discord.Game(name="games | /help"))

    logger.info("Bot is in %s guilds", len(client.guilds))
    logger.info("Serving %s users", len(client.users))
