"""Logger setup shared by every galga module."""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "galga"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

_CONFIGURED: Optional[logging.Logger] = None


def _log_dir() -> Path:
    return Path(os.getenv("GALGA_LOG_DIR", "/var/log/galga"))


def _configure_root() -> logging.Logger:
    global _CONFIGURED
    if _CONFIGURED is not None:
        return _CONFIGURED

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        formatter = logging.Formatter(LOG_FORMAT)

        try:
            log_dir = _log_dir()
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_dir / "galga.log")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except Exception:
            try:
                home_dir = Path.home() / ".galga" / "logs"
                home_dir.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(home_dir / "galga.log")
                file_handler.setFormatter(formatter)
                logger.addHandler(file_handler)
            except Exception:
                stream_handler = logging.StreamHandler(sys.stderr)
                stream_handler.setFormatter(formatter)
                logger.addHandler(stream_handler)

    _CONFIGURED = logger
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger below ``galga``, configuring handlers on first use."""

    root = _configure_root()
    if not name:
        return root
    return root.getChild(name)


def add_console_handler(level: int = logging.INFO) -> None:
    """Mirror log output on stderr, used by the interactive CLI."""

    logger = _configure_root()
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) is sys.stderr:
            handler.setLevel(level)
            return
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    stream_handler.setLevel(level)
    logger.addHandler(stream_handler)


__all__ = ["ROOT_LOGGER_NAME", "get_logger", "add_console_handler"]
