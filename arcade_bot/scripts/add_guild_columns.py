from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from sqlalchemy.engine import Engine

from ..database import create_db_engine
from ..errors import ArcadeBotError
from ..migrations import MigrationEngine, MigrationResult, guild_scope_steps
from ._cli import prepare

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="add_guild_columns",
        description="Add guild_id to redeemable_roles and user_roles, keeping existing rows.",
    )
    parser.add_argument(
        "--default-guild",
        metavar="GUILD_ID",
        help="guild_id given to existing rows (default: DEFAULT_GUILD_ID or 'default')",
    )
    return parser


def migrate(engine: Engine, default_guild_id: str) -> List[MigrationResult]:
    logger.info("Checking and adding guild_id columns...")
    return MigrationEngine(engine).apply_all(guild_scope_steps(default_guild_id))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = prepare(require_credentials=False)
        default_guild_id = (args.default_guild or settings.default_guild_id or "default").strip()

        # SQLite requires foreign key enforcement off while tables are rebuilt.
        engine = create_db_engine(settings.resolved_database_url, foreign_keys=False)
        try:
            results = migrate(engine, default_guild_id)
        finally:
            engine.dispose()
    except ArcadeBotError as exc:
        logger.error("❌ %s", exc)
        return 1
    except Exception:
        logger.exception("❌ Migration failed")
        return 1

    for r in results:
        print(f"{r.table}: {r.action}" + (f" ({r.error})" if r.error else f" (added={r.added_columns}, copied_rows={r.copied_rows})"))

    if any(not r.ok for r in results):
        logger.error("❌ Database migration failed for: %s", ", ".join(r.table for r in results if not r.ok))
        return 1

    logger.info("✅ Database migration completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
