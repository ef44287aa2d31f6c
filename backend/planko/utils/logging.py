"""Logging setup shared by the API server and the board sync client."""

import logging
import sys
from pathlib import Path
from typing import Optional

from ..config import get_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that only speak up at warning level unless debugging
NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite", "sqlalchemy.engine")


def resolve_level(name: str) -> int:
    """Translate a config level name such as "info" into a logging level."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level_name: Optional[str] = None) -> None:
    """Configure the root logger from the logging config section."""
    config = get_config().logging
    level_name = level_name or config.level
    level = resolve_level(level_name)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.file:
        Path(config.file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.file))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)

    logging.getLogger("uvicorn").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)

    quiet_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    logging.getLogger(__name__).info(f"Logging configured at level: {level_name}")
