from __future__ import annotations

from typing import TYPE_CHECKING, List

from .shared import OPTION_STRING, option_value, truncate

if TYPE_CHECKING:
    import discord

name = "help"
description = "List available commands or show details for one command."
options = [
    {
        "type": OPTION_STRING,
        "name": "command",
        "description": "Command to describe",
        "required": False,
    }
]
cooldown = 3


def _lines(*items: str) -> str:
    return "\n".join([s for s in items if s])


async def execute(interaction: "discord.Interaction") -> None:
    registry = getattr(interaction.client, "registry", None)
    commands = registry.get_commands() if registry is not None else []
    wanted = (option_value(interaction, "command") or "").strip().lstrip("/").lower()

    if wanted:
        match = next((c for c in commands if c.name == wanted), None)
        if match is None:
            await interaction.response.send_message(f"❓ No command named `/{wanted}`.", ephemeral=True)
            return
        opts: List[str] = [
            f"- `{o.get('name')}`{'' if o.get('required') else ' (optional)'}: {o.get('description', '')}"
            for o in match.options
        ]
        msg = _lines(
            f"📖 **/{match.name}**",
            match.description,
            "**Options**" if opts else "",
            *opts,
            f"Cooldown: {match.cooldown:g}s",
        )
        await interaction.response.send_message(truncate(msg), ephemeral=True)
        return

    msg = _lines(
        "🧭 **Commands**",
        *[f"- `/{c.name}`: {c.description}" for c in commands],
        "",
        "Tip: `/help command:<name>` shows details for one command.",
    )
    await interaction.response.send_message(truncate(msg), ephemeral=True)
