"""Logging initialization helpers."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from subtune.config import LoggingSettings, Settings


def _level(name: str | None, default: int) -> int:
    if not name:
        return default
    value = logging.getLevelName(str(name).strip().upper())
    return value if isinstance(value, int) else default


def _file_handler(settings: Settings, formatter: logging.Formatter, level: int) -> logging.Handler | None:
    cfg = settings.logging
    if not cfg.file:
        return None
    path = Path(str(cfg.file))
    if not path.is_absolute():
        path = Path(settings.log_dir) / path
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=int(cfg.max_bytes),
        backupCount=int(cfg.backup_count),
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _quiet_libraries(cfg: LoggingSettings) -> None:
    level = _level(cfg.library_level, logging.WARNING)
    for name in str(cfg.library_loggers or "").split(","):
        if name.strip():
            logging.getLogger(name.strip()).setLevel(level)


def setup_logging(settings: Settings, *, level: str | None = None) -> None:
    """Configure the `subtune` logger tree and the HTTP client loggers.

    `level` overrides LOG_LEVEL (the CLI's --log-level). Console and file
    handlers take their own levels when LOG_CONSOLE_LEVEL / LOG_FILE_LEVEL are
    set. Loggers listed in LOG_LIBRARY_LOGGERS are set to LOG_LIBRARY_LEVEL so
    per-request httpx lines stay out of INFO output. Calling this more than
    once is a no-op.
    """
    logger = logging.getLogger("subtune")
    if getattr(logger, "_subtune_configured", False):
        return

    cfg = settings.logging
    base = _level(level or cfg.level, logging.INFO)
    console_level = _level(cfg.console_level, base)
    file_level = _level(cfg.file_level, base)
    formatter = logging.Formatter(fmt=str(cfg.format), datefmt=str(cfg.datefmt))

    handlers: list[logging.Handler] = []
    if cfg.console:
        stream = logging.StreamHandler()
        stream.setLevel(console_level)
        stream.setFormatter(formatter)
        handlers.append(stream)
    fh = _file_handler(settings, formatter, file_level)
    if fh is not None:
        handlers.append(fh)

    # The logger passes everything any handler wants; handlers filter.
    logger.setLevel(min([base, *(h.level for h in handlers)]))
    logger.handlers = handlers
    logger.propagate = False
    _quiet_libraries(cfg)
    setattr(logger, "_subtune_configured", True)
