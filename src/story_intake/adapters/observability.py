"""Runtime logging configuration with bounded retention and token masking."""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_CONFIGURED = False

DEFAULT_LOG_PATH = "work/logs/story_intake.log"
_FILE_LOGGING_OFF = {"", "none", "off", "-"}
_HTTP_LOGGERS = ("httpx", "httpcore")
_BEARER = re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+")


class BearerTokenFilter(logging.Filter):
    """Masks `Bearer <jwt>` values in rendered messages before any handler writes them."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = _BEARER.sub(r"\1***", message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def _int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def _level_env(name: str, default: int) -> int:
    level = getattr(logging, os.environ.get(name, "").strip().upper(), None)
    return level if isinstance(level, int) else default


def _file_handler(formatter: logging.Formatter) -> RotatingFileHandler | None:
    raw_path = os.environ.get("STORY_INTAKE_LOG_PATH", DEFAULT_LOG_PATH).strip()
    if raw_path.lower() in _FILE_LOGGING_OFF:
        return None
    log_path = Path(raw_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=log_path,
        maxBytes=_int_env(
            "STORY_INTAKE_LOG_MAX_BYTES", 1024 * 1024, minimum=64 * 1024, maximum=50 * 1024 * 1024
        ),
        backupCount=_int_env("STORY_INTAKE_LOG_BACKUP_COUNT", 5, minimum=1, maximum=50),
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def configure_runtime_logging() -> None:
    """Configure console and (unless disabled) rotating file logs once per process.

    `STORY_INTAKE_LOG_PATH=none` keeps a one-off CLI run from writing a log file.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    handlers[0].setFormatter(formatter)
    file_handler = _file_handler(formatter)
    if file_handler is not None:
        handlers.append(file_handler)

    redactor = BearerTokenFilter()
    root = logging.getLogger()
    root.setLevel(_level_env("STORY_INTAKE_LOG_LEVEL", logging.INFO))
    root.handlers.clear()
    for handler in handlers:
        handler.addFilter(redactor)
        root.addHandler(handler)

    # Per-request lines from the HTTP stack are noise at INFO.
    http_level = _level_env("STORY_INTAKE_HTTP_LOG_LEVEL", logging.WARNING)
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    _CONFIGURED = True
