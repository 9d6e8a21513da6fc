from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import os


_configured = False

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def _level() -> int:
    return getattr(logging, os.getenv("SHIPYARD_LOG_LEVEL", "INFO").upper(), logging.INFO)


def _ensure_base_logger() -> None:
    global _configured
    if _configured:
        return
    logging.basicConfig(level=_level(), format=LOG_FORMAT)
    _configured = True


def get_logger(name: str, log_file: Path | None = None) -> logging.Logger:
    """Logger under the `shipyard` namespace.

    With `log_file`, a rotating file handler is attached once; task loggers
    (`shipyard.<task>`) propagate into it when it sits on `shipyard` itself.
    """
    _ensure_base_logger()
    if not name.startswith("shipyard"):
        name = f"shipyard.{name}"
    logger = logging.getLogger(name)
    # Do not duplicate handlers if already set
    if log_file and not any(
        isinstance(h, RotatingFileHandler) for h in logger.handlers
    ):
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        # the file gets the run log even when the root level is stricter
        logger.setLevel(_level())
    return logger
