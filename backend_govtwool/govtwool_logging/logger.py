"""
Structured logging for GovTwool: one JSON object per event on stderr.

Every record carries event_type (the snake_case first argument), level,
an ISO-8601 UTC timestamp and the module logger name; callers add context as
keywords (drep_id, provider, stat, error). Provider credentials that end up
in context are masked before rendering.

Env: LOG_LEVEL (default INFO), LOG_FORMAT=json|console (default json).

No backend_govtwool imports here, to avoid circular imports.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "json"

_SECRET_KEYS = frozenset({"api_key", "project_id", "authorization", "koios_api_key", "blockfrost_api_key"})


def _resolve_level(level: str | None) -> int:
    name = (level or os.getenv("LOG_LEVEL") or DEFAULT_LEVEL).strip().upper()
    return getattr(logging, name, logging.INFO)


def _rename_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """structlog 'event' -> event_type; message mirrors it unless given."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    event_dict.setdefault("message", str(event_dict.get("event_type", "")))
    return event_dict


def _mask_secrets(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    for key in _SECRET_KEYS.intersection(event_dict):
        value = event_dict[key]
        if value:
            text = str(value)
            event_dict[key] = text[:4] + "***" if len(text) > 8 else "***"
    return event_dict


def configure_structlog(level: str | None = None, fmt: str | None = None) -> None:
    """(Re)configure structlog. Called once on import; tools may call again to change level."""
    fmt = (fmt or os.getenv("LOG_FORMAT") or DEFAULT_FORMAT).strip().lower()
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.format_exc_info,
        _mask_secrets,
        _rename_event,
    ]
    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    else:
        processors.append(structlog.processors.JSONRenderer())
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Structured logger for a module.

        logger = get_logger(__name__)
        logger.warning("provider_call_failed", drep_id=drep_id, provider="koios", error=str(e))
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_drep(drep_id: str) -> structlog.BoundLogger:
    """Logger with drep_id bound to all subsequent calls."""
    return get_logger("backend_govtwool").bind(drep_id=drep_id)
