from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from . import config

LOGGER = logging.getLogger("wallgrab")
_LOGGER_INITIALISED = False
_CURRENT_LOG_FILE: Path = config.LOG_FILE


class IsoTimestampFormatter(logging.Formatter):
    """Formatter rendering ``asctime`` as UTC ISO-8601 with milliseconds."""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_formatter(timestamp_style: str) -> logging.Formatter:
    """Return the ``[<timestamp>] <message>`` formatter for ``timestamp_style``."""

    if timestamp_style == "local":
        return logging.Formatter(fmt="[%(asctime)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    return IsoTimestampFormatter(fmt="[%(asctime)s] %(message)s")


def configure_logger(log_path: Path, *, timestamp_style: str = "iso") -> Path:
    """Configure the shared application logger to append to ``log_path``."""

    global _LOGGER_INITIALISED, _CURRENT_LOG_FILE

    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # noqa: BLE001
            continue

    formatter = build_formatter(timestamp_style)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)

    LOGGER.setLevel(logging.INFO)
    LOGGER.addHandler(stream_handler)
    LOGGER.addHandler(file_handler)
    LOGGER.propagate = False

    _CURRENT_LOG_FILE = log_path
    _LOGGER_INITIALISED = True
    return log_path


def _ensure_logger() -> None:
    """Initialise the logger lazily using the default log file."""

    if _LOGGER_INITIALISED:
        return

    configure_logger(config.LOG_FILE, timestamp_style=config.TIMESTAMP_STYLE)


def get_current_log_path() -> Path:
    """Return the path to the log file currently receiving log lines."""

    _ensure_logger()
    return _CURRENT_LOG_FILE


def log_line(message: str) -> None:
    """Write a timestamped log line to stdout and the active log file."""

    _ensure_logger()
    LOGGER.info(message)


def ensure_dirs(*directories: Path) -> None:
    """Ensure that each directory in ``directories`` exists."""

    for directory in directories:
        Path(directory).mkdir(parents=True, exist_ok=True)


def short_error_message(exc: BaseException, max_length: int = 200) -> str:
    """Return a single-line, bounded description of ``exc``."""

    text = " ".join(str(exc).split()) or type(exc).__name__
    if len(text) > max_length:
        text = text[: max_length - 3] + "..."
    return text


__all__ = [
    "LOGGER",
    "build_formatter",
    "configure_logger",
    "ensure_dirs",
    "get_current_log_path",
    "log_line",
    "short_error_message",
]
