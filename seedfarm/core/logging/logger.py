"""
Seed Farm Logging

Purpose
-------
Structured logging for the farm services. Every record carries the player
context bound with ``LogContext`` / ``set_log_context`` (username, character,
action, correlation id), so one collect or purchase can be followed through
the engine, the state store and the leaderboard.

Output
------
- JSON lines (one object per record, ``extra={...}`` fields merged under
  ``"extra"``) when ``LOG_JSON`` is set or in production
- Human-readable text otherwise, colored on a TTY when ``LOG_COLORS`` is on

Handlers are attached to the ``seedfarm`` package logger only; records still
propagate, so an embedding application keeps its own root configuration.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging import Logger
from typing import Any, Dict, Optional, TextIO

from seedfarm.core.config.config import Config


PACKAGE_LOGGER = "seedfarm"
CONTEXT_FIELDS = ("username", "character_id", "action", "operation", "correlation_id")

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s%(context_suffix)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_log_context: ContextVar[Dict[str, Any]] = ContextVar("seedfarm_log_context", default={})
_installed_handler: Optional[logging.Handler] = None


# ============================================================================
# Filters & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    """Copy the bound player context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _log_context.get()
        for name in CONTEXT_FIELDS:
            setattr(record, name, context.get(name))

        bound = [f"{name}={context[name]}" for name in CONTEXT_FIELDS[:3] if context.get(name)]
        record.context_suffix = f" [{' '.join(bound)}]" if bound else ""
        return True


class ColoredFormatter(logging.Formatter):
    COLORS: Dict[str, str] = {
        "DEBUG": "\033[90m",
        "INFO": "\033[94m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[91m\033[1m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        original = record.levelname
        color = self.COLORS.get(original)
        if color:
            record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class JSONFormatter(logging.Formatter):
    # Attributes every LogRecord has; anything else came in through ``extra``
    RESERVED = frozenset(
        logging.LogRecord("", 0, "", 0, "", None, None).__dict__
    ) | {"message", "asctime", "context_suffix", *CONTEXT_FIELDS}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self.RESERVED and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


# ============================================================================
# Setup
# ============================================================================


def _resolve_level(level_name: Any) -> int:
    if not isinstance(level_name, str):
        return logging.INFO
    return getattr(logging, level_name.upper(), logging.INFO)


def _use_json() -> bool:
    if Config.LOG_JSON is None:
        return Config.is_production()
    return bool(Config.LOG_JSON)


def setup_logging(stream: Optional[TextIO] = None) -> logging.Handler:
    """
    Attach the console handler to the ``seedfarm`` logger.

    Safe to call again (e.g. after Config changes); the previous handler is
    replaced rather than duplicated.
    """
    global _installed_handler

    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream)
    handler.addFilter(ContextFilter())

    if _use_json():
        handler.setFormatter(JSONFormatter())
    elif Config.LOG_COLORS and stream.isatty():
        handler.setFormatter(ColoredFormatter(TEXT_FORMAT, DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, DATE_FORMAT))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if _installed_handler is not None:
        package_logger.removeHandler(_installed_handler)
    package_logger.addHandler(handler)
    package_logger.setLevel(_resolve_level(Config.LOG_LEVEL))
    _installed_handler = handler
    return handler


# ============================================================================
# Public API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Bind player context to every record emitted inside the block.

    Example
    -------
    >>> async with LogContext(username="farmer_joe", action="collect"):
    ...     logger.info("Harvest committed")
    """

    def __init__(
        self,
        username: Optional[str] = None,
        character_id: Optional[str] = None,
        action: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.context: Dict[str, Any] = {
            **_log_context.get(),
            "username": username,
            "character_id": character_id,
            "action": action,
            "operation": operation,
            "correlation_id": correlation_id or uuid.uuid4().hex[:8],
        }
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def set_log_context(**fields: Any) -> None:
    """Merge fields into the current task's context; None values are skipped."""
    current = dict(_log_context.get())
    current.update({k: v for k, v in fields.items() if k in CONTEXT_FIELDS and v is not None})
    _log_context.set(current)


def get_log_context() -> Dict[str, Any]:
    return dict(_log_context.get())


def clear_log_context() -> None:
    _log_context.set({})


setup_logging()
