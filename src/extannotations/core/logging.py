"""Structured logging for annotation scanning and caching.

Events are emitted through structlog and rendered by stdlib handlers, so a
host analyzer that already configured ``logging`` keeps receiving them.

Every record carries the process id: several analyzer processes may share
one persisted annotation cache file, and their interleaved rebuild/reuse
events are otherwise indistinguishable.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from extannotations.config.models import LoggingConfig

_CONSOLE_DESTINATIONS = ("stderr", "stdout")

# Third-party loggers that report every raw file notification
_NOISY_LOGGERS = ("watchfiles.main", "watchfiles.watcher")

# First file destination of the active configuration
_log_file_path: Path | None = None


def get_log_file_path() -> Path | None:
    """Return the file the current configuration logs to, if any."""
    return _log_file_path


def _resolve_level(name: str | None, fallback: int) -> int:
    if not name:
        return fallback
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else fallback


def _add_pid(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    event_dict.setdefault("pid", os.getpid())
    return event_dict


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Route structlog events to the outputs in ``config``.

    Without ``config`` a single stderr output is set up from ``json_format``
    and ``level``. Calling again replaces the previous configuration.
    """
    from extannotations.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    root_level = _resolve_level(config.level, logging.INFO)
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_pid,  # type: ignore[list-item]
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration must reach loggers created at import time
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(root_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    global _log_file_path
    _log_file_path = None

    for output in config.outputs:
        is_console = output.destination in _CONSOLE_DESTINATIONS
        if not is_console and _log_file_path is None:
            _log_file_path = Path(output.destination)

        handler = _open_handler(output.destination)
        handler.setLevel(_resolve_level(output.level, root_level))
        handler.setFormatter(_build_formatter(output.format, is_console, pre_chain))
        root.addHandler(handler)


def _open_handler(destination: str) -> logging.Handler:
    if destination in _CONSOLE_DESTINATIONS:
        # sys.stderr may have been replaced since import
        return logging.StreamHandler(getattr(sys, destination))
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def _build_formatter(
    output_format: str,
    is_console: bool,
    pre_chain: list[structlog.types.Processor],
) -> structlog.stdlib.ProcessorFormatter:
    renderer: structlog.types.Processor
    if output_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=is_console and sys.stderr.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a logger, bound to ``name`` when given."""
    logger = structlog.get_logger()
    return logger.bind(logger=name) if name else logger  # type: ignore[no-any-return]
