from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from ..database import create_db_engine, drop_all_tables, init_db
from ..errors import ArcadeBotError
from ._cli import prepare

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reset_database",
        description="Drop every table and recreate an empty schema.",
        epilog="WARNING: This will DELETE ALL DATA in the database! This action cannot be undone.",
    )
    parser.add_argument("--yes", action="store_true", help="Confirm that all data may be deleted")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = prepare(require_credentials=False)
        if not args.yes:
            logger.warning("⚠️  This will DELETE ALL DATA in %s", settings.resolved_database_url)
            logger.error("Database reset refused. Add --yes to confirm.")
            return 1

        logger.info("Starting database reset...")
        engine = create_db_engine(settings.resolved_database_url)
        try:
            for name in drop_all_tables(engine):
                logger.info("Dropped table: %s", name)
            init_db(engine)
        finally:
            engine.dispose()
    except ArcadeBotError as exc:
        logger.error("❌ %s", exc)
        return 1
    except Exception:
        logger.exception("❌ Database reset failed")
        return 1

    logger.info("✅ Database reset complete. All tables were dropped and recreated empty.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
