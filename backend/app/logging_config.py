"""Structured logging configuration using structlog.

Provides JSON logging in production and colorized console output in development.
Provider keys never reach the renderer: only a truncated prefix survives.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from app.config import Environment, get_settings


KEY_PREFIX_LENGTH = 8

# Fields that would carry a whole provider key (directly, or inside a URL/headers)
_KEY_MATERIAL_FIELDS = {"key", "keys", "api_key", "raw_key", "url", "headers", "params"}
_SECRET_MARKERS = ("authorization", "x-api-key", "secret", "token")


def mask_key(key: str, visible: int = KEY_PREFIX_LENGTH) -> str:
    """Truncate a key for diagnostics: first few characters plus an ellipsis."""
    return f"{key[:visible]}..."


def _redact_key_material(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Keep full provider keys out of log events.

    ``key_prefix`` is the only key-derived field allowed through, and is
    re-truncated if a caller passed more than the prefix.
    """
    for field in list(event_dict.keys()):
        name = field.lower()
        if name == "key_prefix":
            value = event_dict[field]
            if isinstance(value, str) and len(value) > KEY_PREFIX_LENGTH + 3:
                event_dict[field] = mask_key(value)
        elif name in _KEY_MATERIAL_FIELDS or any(m in name for m in _SECRET_MARKERS):
            event_dict[field] = "[REDACTED]"
    return event_dict


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _redact_key_material,
    ]

    if settings.environment == Environment.PRODUCTION:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

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

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))

    # Suppress noisy loggers
    for logger_name in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
