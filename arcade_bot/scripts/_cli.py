from __future__ import annotations

import logging
from typing import Any

from ..config import Settings, load_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def prepare(*, require_credentials: bool, **overrides: Any) -> Settings:
    """
    Load settings once, configure logging from them and, for scripts that
    talk to the platform, fail before anything else if credentials are missing.
    """
    setup_logging()
    settings = load_settings(**overrides)
    logging.getLogger().setLevel(getattr(logging, settings.log_level, logging.INFO))
    if require_credentials:
        settings.validate_required()
    return settings
