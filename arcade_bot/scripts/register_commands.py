from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from ..config import Settings
from ..discord.registry import DescriptorRegistry
from ..discord.sync import DeploymentTarget, DiscordRegistrationApi, RegistrationApi, SyncEngine, resolve_target
from ..errors import ArcadeBotError
from ._cli import prepare

logger = logging.getLogger(__name__)

EPILOG = """
Examples:
  python -m arcade_bot.scripts.register_commands                    # Register to guilds in .env
  python -m arcade_bot.scripts.register_commands --global           # Register globally
  python -m arcade_bot.scripts.register_commands --guild=123456789  # Register to specific guild

Note: Global commands can take up to 1 hour to update across all servers.
Guild-specific commands update instantly.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="register_commands",
        description="Discord bot command registration script",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--global", dest="use_global", action="store_true", help="Register commands globally (all servers)")
    parser.add_argument("--guild", action="append", metavar="GUILD_ID", help="Register to a specific guild (repeatable)")
    return parser


async def register(api: RegistrationApi, registry: DescriptorRegistry, target: DeploymentTarget) -> int:
    commands = registry.load().get_commands()
    if not commands:
        logger.error("No commands found to register!")
        return 1

    logger.info("Found %s commands to register", len(commands))
    report = await SyncEngine(api).sync(commands, target)

    logger.info("Registered commands:")
    for cmd in commands:
        logger.info("  - /%s: %s", cmd.name, cmd.description)

    if not report.ok:
        logger.error("Command registration failed for: %s", ", ".join(str(o.scope) for o in report.failed))
        return 1

    logger.info("Command registration complete!")
    return 0


async def _run(settings: Settings, target: DeploymentTarget) -> int:
    async with DiscordRegistrationApi.from_settings(settings) as api:
        return await register(api, DescriptorRegistry.default(), target)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = prepare(require_credentials=True)
        target = resolve_target(args.use_global, args.guild, settings)
        return asyncio.run(_run(settings, target))
    except ArcadeBotError as exc:
        logger.error("❌ %s", exc)
        return 1
    except Exception:
        logger.exception("❌ Failed to register commands")
        return 1


if __name__ == "__main__":
    sys.exit(main())
