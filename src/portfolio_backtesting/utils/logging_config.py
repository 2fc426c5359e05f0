"""Logging configuration for scripts and notebooks driving a backtest.

Library modules only do ``logger = logging.getLogger(__name__)``; whoever
drives a run calls `setup_logging(...)` once. The console handler injects
``record.shortname`` (last dotted component of the logger name) so formats
may use ``%(shortname)s``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

DEFAULT_LOGGING: dict[str, Any] = {
    "level": "INFO",
    "format": "%(asctime)s %(levelname)s %(shortname)s - %(message)s",
    "file": None,
    "color": False,
}


class _AddShortNameFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.shortname = record.name.rsplit(".", 1)[-1]
        return True


class _ColorFormatter(logging.Formatter):
    """Colors the level name only; never attach to file handlers."""

    _RESET = "\033[0m"
    _LEVEL_COLOR: dict[int, str] = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self._LEVEL_COLOR.get(record.levelno)
        if not color:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{color}{original}{self._RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def coerce_level(level: int | str) -> int:
    """Accept ``logging.INFO``, ``"info"`` or ``"20"``."""
    if isinstance(level, int):
        return level
    name = str(level).strip().upper()
    if not name:
        raise ValueError("Empty logging level")
    if name.isdigit():
        return int(name)
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level!r}")
    return resolved


def setup_logging(
    level: int | str = "INFO",
    *,
    fmt: str = DEFAULT_LOGGING["format"],
    datefmt: str = "%Y-%m-%d %H:%M:%S",
    log_file: str | Path | None = None,
    colored: bool = False,
) -> None:
    """Configure root logging; reruns replace handlers (``force=True``)."""
    console = logging.StreamHandler()
    console.addFilter(_AddShortNameFilter())
    formatter_cls = _ColorFormatter if colored else logging.Formatter
    console.setFormatter(formatter_cls(fmt=fmt, datefmt=datefmt))
    handlers: list[logging.Handler] = [console]

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.addFilter(_AddShortNameFilter())
        file_handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
        handlers.append(file_handler)

    logging.basicConfig(level=coerce_level(level), handlers=handlers, force=True)


def setup_logging_from_config(config: Mapping[str, Any] | None) -> None:
    """Apply a ``logging:`` config section over `DEFAULT_LOGGING`."""
    merged = dict(DEFAULT_LOGGING)
    for key, value in (config or {}).items():
        if key in merged and value is not None:
            merged[key] = value
    setup_logging(
        merged["level"],
        fmt=merged["format"],
        log_file=merged["file"],
        colored=bool(merged["color"]),
    )
