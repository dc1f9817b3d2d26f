from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List, Optional

from sqlalchemy.engine import Engine

from ..database import create_db_engine
from ..errors import ArcadeBotError
from ..migrations import MigrationEngine, backfill_blank, count_blank
from ._cli import prepare

logger = logging.getLogger(__name__)

TABLES = ("redeemable_roles", "user_roles")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="migrate_roles",
        description="Assign a guild to roles whose guild_id is missing or empty.",
        epilog="Example: DEFAULT_GUILD_ID=1234567890 python -m arcade_bot.scripts.migrate_roles",
    )
    parser.add_argument("--default-guild", metavar="GUILD_ID", help="guild_id to assign (default: DEFAULT_GUILD_ID)")
    return parser


def pending(engine: Engine) -> Dict[str, int]:
    """Rows per existing table whose guild_id is still missing or empty."""
    inspector = MigrationEngine(engine)
    blank: Dict[str, int] = {}
    for table in TABLES:
        if not inspector.inspect_columns(table):
            logger.info("%s does not exist; nothing to migrate", table)
            continue
        blank[table] = count_blank(engine, table, "guild_id")
    return blank


def migrate(engine: Engine, guild_id: str) -> Dict[str, int]:
    inspector = MigrationEngine(engine)
    updated: Dict[str, int] = {}
    for table in TABLES:
        if not inspector.inspect_columns(table):
            continue
        updated[table] = backfill_blank(engine, table, "guild_id", guild_id)
    return updated


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = prepare(require_credentials=False)
        engine = create_db_engine(settings.resolved_database_url)
        try:
            blank = pending(engine)
            if not any(blank.values()):
                logger.info("No roles to migrate. All roles already have guild_id.")
                return 0
            logger.info("Found role rows to migrate: %s", blank)

            # The guild id is only required when blank rows exist
            guild_id = (args.default_guild or settings.default_guild_id).strip()
            if not guild_id:
                logger.error("Please set DEFAULT_GUILD_ID (or pass --default-guild) to migrate roles.")
                return 1

            logger.info("Migrating roles to guild ID: %s", guild_id)
            updated = migrate(engine, guild_id)
        finally:
            engine.dispose()
    except ArcadeBotError as exc:
        logger.error("❌ %s", exc)
        return 1
    except Exception:
        logger.exception("❌ Role migration failed")
        return 1

    logger.info("✅ Role migration completed successfully! %s", updated)
    return 0


if __name__ == "__main__":
    sys.exit(main())
