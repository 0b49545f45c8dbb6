from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOGGER_NAME = "farmbot"
LOG_FILE = "app.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def log_dir() -> str:
    return os.environ.get("LOG_DIR", "logs")


def log_path(directory: Optional[str] = None) -> str:
    """Path of the rotating run log (``$LOG_DIR/app.log`` by default)."""
    return os.path.join(directory or log_dir(), LOG_FILE)


def init_logging(directory: Optional[str] = None, level: str | int = "INFO") -> logging.Logger:
    """Configure the ``farmbot`` logger once and return it.

    Records go to a rotating ``app.log`` (5 MB, 5 backups) and to the console.
    Module loggers (``farmbot.farming``, ``farmbot.input`` ...) propagate here.
    Later calls return the configured logger untouched.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    directory = directory or log_dir()
    os.makedirs(directory, exist_ok=True)
    path = log_path(directory)
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers = [
        RotatingFileHandler(path, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8"),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setFormatter(fmt)
        handler.setLevel(level)
        logger.addHandler(handler)
    logger.setLevel(level)

    logger.debug("logging | level=%s file=%s", logging.getLevelName(level), path)
    return logger


def tail(n: int, directory: Optional[str] = None) -> Optional[str]:
    """Last ``n`` lines of the run log, or ``None`` when nothing was written yet."""
    path = log_path(directory)
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        lines = f.readlines()
    return "".join(lines[-n:]) if n > 0 else ""
