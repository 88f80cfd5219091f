"""
Base Service Foundation

Purpose
-------
Foundation class for the application services (farm, leaderboard). Services
orchestrate the pure modules, talk to infrastructure and log what they do.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Safe config access
- Domain event dispatch to registered listeners

What this class does NOT do:
- Hold game rules (those live in the pure modules)
- Manage Redis connections or SQLAlchemy sessions

Usage
-----
    class LeaderboardService(BaseService):
        def __init__(self, database, config_manager=ConfigManager, logger=None):
            super().__init__(config_manager, logger or get_logger(__name__))
            self.db = database
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional, Type

from seedfarm.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from logging import Logger

    from seedfarm.core.config.config_manager import ConfigManager
    from seedfarm.domain.models import DomainEvent

EventListener = Callable[["DomainEvent"], None]


class BaseService:
    """
    Base class for application services.

    Args:
        config_manager: Configuration manager (class or instance exposing ``get``)
        logger: Structured logger instance
    """

    def __init__(self, config_manager: Type[ConfigManager], logger: Logger) -> None:
        self._config = config_manager
        self._listeners: List[EventListener] = []
        self.log = logger

    def get_config(self, key: str, default: Optional[Any] = None, required: bool = False) -> Any:
        """
        Safely retrieve a configuration value.

        Raises:
            ConfigurationError: If required=True and the key is missing
        """
        value = self._config.get(key, default)
        if required and value is None:
            raise ConfigurationError(key, f"Required configuration key '{key}' is missing")
        return value

    def subscribe(self, listener: EventListener) -> None:
        """Register a callable invoked with every emitted DomainEvent."""
        self._listeners.append(listener)

    def emit_events(self, events: Iterable[DomainEvent]) -> None:
        """
        Dispatch domain events to listeners.

        A failing listener is logged and skipped; it never fails the action
        that produced the event.
        """
        for event in events:
            self.log.debug(
                f"Domain event: {event.event_name}",
                extra={"event_name": event.event_name, "event_payload": event.payload},
            )
            for listener in self._listeners:
                try:
                    listener(event)
                except Exception as e:
                    self.log_error("emit_events", e, event_name=event.event_name)

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(self, operation: str, error: Exception, **context: Any) -> None:
        """Log a service error with full context."""
        self.log.error(
            f"Service error during {operation}: {error}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **context,
            },
        )
