from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from ..database import create_db_engine, init_db
from ..errors import ArcadeBotError
from ._cli import prepare

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    argparse.ArgumentParser(prog="init_database", description="Create all missing tables.").parse_args(argv)
    try:
        settings = prepare(require_credentials=False)
        logger.info("Initializing database...")
        engine = create_db_engine(settings.resolved_database_url)
        try:
            init_db(engine)
        finally:
            engine.dispose()
    except ArcadeBotError as exc:
        logger.error("❌ %s", exc)
        return 1
    except Exception:
        logger.exception("❌ Failed to initialize database")
        return 1

    logger.info("✅ Database initialized successfully! All tables have been created or verified.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
