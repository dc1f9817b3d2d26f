from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from ..config import Settings
from ..discord.sync import DeploymentTarget, DiscordRegistrationApi, RegistrationApi, SyncEngine, resolve_target
from ..errors import ArcadeBotError
from ._cli import prepare

logger = logging.getLogger(__name__)

EPILOG = """
Examples:
  python -m arcade_bot.scripts.clear_commands --dry-run          # Show guild commands that would be cleared
  python -m arcade_bot.scripts.clear_commands                    # Clear commands from guilds in .env
  python -m arcade_bot.scripts.clear_commands --global --yes     # Clear all global commands
  python -m arcade_bot.scripts.clear_commands --guild=123456789  # Clear commands from specific guild

WARNING: This will permanently delete slash commands!
Use --dry-run first to see what will be deleted.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clear_commands",
        description="Discord bot command clearing script",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--global", dest="use_global", action="store_true", help="Clear global commands")
    parser.add_argument("--guild", action="append", metavar="GUILD_ID", help="Clear commands from a specific guild (repeatable)")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be cleared without deleting")
    parser.add_argument("--yes", action="store_true", help="Confirm deletion of global commands")
    return parser


async def clear(api: RegistrationApi, target: DeploymentTarget, *, dry_run: bool, confirmed: bool) -> int:
    report = await SyncEngine(api).clear(target, dry_run=dry_run, confirmed=confirmed)
    if not report.ok:
        logger.error("Command clearing failed for: %s", ", ".join(str(o.scope) for o in report.failed))
        return 1
    logger.info("Command clearing complete!")
    return 0


async def _run(settings: Settings, target: DeploymentTarget, args: argparse.Namespace) -> int:
    async with DiscordRegistrationApi.from_settings(settings) as api:
        return await clear(api, target, dry_run=args.dry_run, confirmed=args.yes)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = prepare(require_credentials=True)
        target = resolve_target(args.use_global, args.guild, settings)
        return asyncio.run(_run(settings, target, args))
    except ArcadeBotError as exc:
        logger.error("❌ %s", exc)
        return 1
    except Exception:
        logger.exception("❌ Failed to clear commands")
        return 1


if __name__ == "__main__":
    sys.exit(main())
