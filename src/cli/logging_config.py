"""Structured logging configuration using structlog."""

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

# Free-text fields users type into notes and reflections.
_FREE_TEXT_KEYS = {"reason", "note", "reflection", "title"}
_MAX_FREE_TEXT = 80


def _clip_free_text(_, __, event_dict: dict) -> dict:
    """Structlog processor that keeps user-written text out of logs beyond a short prefix."""
    for key in _FREE_TEXT_KEYS & event_dict.keys():
        value = event_dict[key]
        if isinstance(value, str) and len(value) > _MAX_FREE_TEXT:
            event_dict[key] = value[:_MAX_FREE_TEXT] + "..."
    return event_dict


def setup_logging(
    json_mode: bool = False,
    level: str = "INFO",
    log_file: Optional[Path] = None,
) -> None:
    """Configure structlog with appropriate renderer.

    Args:
        json_mode: Use JSON renderer (for machine consumption).
                   False = console renderer (for humans at a terminal).
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional file that also receives JSON-rendered records.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _clip_free_text,
    ]

    if json_mode:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level)

    if log_file:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.JSONRenderer(),
                ],
            )
        )
        root.addHandler(file_handler)
