from __future__ import annotations

"""File-backed logging for the `dist_deployer` logger tree.

The "Logs" tab tails the file written here.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from dist_deployer.core.paths import app_data_dir

ROOT_LOGGER = "dist_deployer"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_BYTES = 2 * 1024 * 1024
LOG_BACKUPS = 3


def log_path() -> Path:
    return app_data_dir() / "app.log"


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    return logging.getLogger(name)


def _file_handler(logger: logging.Logger) -> Optional[RotatingFileHandler]:
    return next((h for h in logger.handlers if isinstance(h, RotatingFileHandler)), None)


def setup_logging(level: int = logging.INFO, path: Optional[Path] = None) -> Optional[Path]:
    """Attach the rotating app log to the package logger.

    Returns the file in use, or None when it cannot be opened; the GUI
    starts either way. Calling it again keeps the existing handler.
    """
    logger = get_logger()
    logger.setLevel(level)

    existing = _file_handler(logger)
    if existing is not None:
        return Path(existing.baseFilename)

    try:
        p = path or log_path()
        p.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(p, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    except OSError as e:
        # no handler yet, so this goes to stderr via logging.lastResort
        logger.warning("file log unavailable: %s", e)
        return None

    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    handler.setLevel(level)
    logger.addHandler(handler)
    logging.captureWarnings(True)
    return p
