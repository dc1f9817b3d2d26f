from __future__ import annotations

from typing import TYPE_CHECKING

from .shared import format_latency

if TYPE_CHECKING:
    import discord

name = "ping"
description = "Replies with Pong and bot latency!"
options: list = []
cooldown = 5


async def execute(interaction: "discord.Interaction") -> None:
    await interaction.response.send_message("Pinging...")
    sent = await interaction.original_response()

    roundtrip = (sent.created_at - interaction.created_at).total_seconds()
    await interaction.edit_original_response(
        content=(
            "🏓 Pong!\n"
            f"💬 **Latency**: {format_latency(roundtrip)}\n"
            f"📡 **API Latency**: {format_latency(interaction.client.latency)}"
        )
    )
