"""Logging initialization utilities using loguru."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger


def init_logging(log_dir: str | None = None, level: str = "INFO") -> None:
    """Log to stderr and, when `log_dir` is given, to a rotating file there."""
    logger.remove()
    logger.add(sys.stderr, level=level, backtrace=False, diagnose=False)
    if not log_dir:
        return
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(log_path / "photopicker_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
    )
