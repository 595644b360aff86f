"""Logging for the SeatSwap service and CLI.

Every component logs under the ``seatswap`` namespace. ``setup_logging`` wires
that namespace to a size-rotated file in the log directory and, optionally, to
stderr. ``SEATSWAP_LOG_DIR`` and ``SEATSWAP_LOG_LEVEL`` override the directory
and level when the caller does not pass them.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "seatswap"

DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "seatswap.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: str | None) -> tuple[str, int]:
    name = (level or os.environ.get("SEATSWAP_LOG_LEVEL", DEFAULT_LOG_LEVEL)).upper()
    return name, getattr(logging, name, logging.INFO)


def _resolve_dir(log_dir: str | Path | None) -> Path:
    if log_dir is None:
        log_dir = os.environ.get("SEATSWAP_LOG_DIR", DEFAULT_LOG_DIR)
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _reset(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
) -> logging.Logger:
    """Route the ``seatswap`` loggers to a rotating file.

    Calling it again replaces the previous handlers, so the CLI and the test
    suite can reconfigure freely.

    Args:
        log_dir: Where the log file lives (``SEATSWAP_LOG_DIR``, then ``logs``).
        log_file: File name inside ``log_dir``.
        max_bytes: Size at which the file is rotated.
        backup_count: Rotated files kept beside the live one.
        level: Level name (``SEATSWAP_LOG_LEVEL``, then INFO).
        console: Also write to stderr.

    Returns:
        The ``seatswap`` logger.
    """
    level_name, log_level = _resolve_level(level)
    log_path = _resolve_dir(log_dir) / log_file

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)
    _reset(logger)

    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.info("SeatSwap logging initialized (level=%s, file=%s)", level_name, log_path)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. ``get_logger("matching")`` -> ``seatswap.matching``."""
    if not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def format_transfers(transfers: Sequence[tuple[int, str, str]], limit: int = 10) -> str:
    """Render ``(seat_id, from, to)`` triples as ``"#1 alice->bob, #2 bob->alice"``.

    Anything past ``limit`` is summarised as ``"... [N more]"``.
    """
    shown = [f"#{seat_id} {src}->{dst}" for seat_id, src, dst in transfers[:limit]]
    hidden = len(transfers) - limit
    if hidden > 0:
        shown.append(f"... [{hidden} more]")
    return ", ".join(shown)
