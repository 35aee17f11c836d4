"""Logging configuration for the collector daemon."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from . import config as cfg


def setup_logging(
    name: str = "collector", level: int = logging.INFO, log_dir: Optional[Path] = None
) -> logging.Logger:
    """Configure rotating file + console logging for the collector."""
    log_dir = Path(log_dir or cfg.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers on re-init
    if logger.handlers:
        return logger

    fmt = logging.Formatter(
        "%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Rotating file handler (10 MB max, keep 5 backups)
    fh = RotatingFileHandler(
        log_dir / f"{name}.log",
        maxBytes=10_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    fh.setFormatter(fmt)
    fh.setLevel(level)
    logger.addHandler(fh)

    # Console handler (WARNING+ only)
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    ch.setLevel(logging.WARNING)
    logger.addHandler(ch)

    # The serializer logs under its own package name
    if name == "collector":
        serialization = logging.getLogger("serialization")
        serialization.setLevel(level)
        if not serialization.handlers:
            serialization.addHandler(fh)
            serialization.addHandler(ch)

    return logger
