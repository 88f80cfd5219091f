"""
Base domain model building blocks for Seed Farm.

Purpose
-------
Provide the small set of abstractions shared by the domain value objects:
domain events that describe state changes, a validation error type, and
field validators used in ``__post_init__`` hooks.

Responsibilities
----------------
- Define DomainEvent, the "description of what changed" returned by every
  state transition
- Provide a validation error for invariant violations at construction time
- Provide reusable field validators

Non-Responsibilities
--------------------
- Persistence (handled by the player state store)
- Service orchestration (handled by the progression engine and farm service)

Design Notes
------------
Domain models are immutable frozen dataclasses. Transitions return new
instances together with a list of DomainEvent objects; the caller decides
whether to persist, sync, or display them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union


# ============================================================================
# DOMAIN EVENTS
# ============================================================================


@dataclass(frozen=True)
class DomainEvent:
    """
    Represents a domain event that has occurred.

    Attributes
    ----------
    event_name : str
        Event name (e.g., "farm.harvested")
    payload : Dict[str, Any]
        Event payload with relevant data
    occurred_at : datetime
        When the event occurred (UTC)
    """

    event_name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# DOMAIN MODEL VALIDATION
# ============================================================================


class DomainValidationError(Exception):
    """
    Exception raised when domain model validation fails.

    Raised only for programming or data errors (e.g. a negative balance read
    from a corrupt snapshot), never for ordinary player-facing rejections.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


Number = Union[int, float]


def validate_positive(value: Number, field_name: str) -> None:
    """
    Validate that a value is positive.

    Raises
    ------
    DomainValidationError
        If value is not positive
    """
    if value <= 0:
        raise DomainValidationError(
            f"{field_name} must be positive, got {value}",
            field=field_name,
        )


def validate_non_negative(value: Number, field_name: str) -> None:
    """
    Validate that a value is non-negative.

    Raises
    ------
    DomainValidationError
        If value is negative
    """
    if value < 0:
        raise DomainValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name,
        )


def validate_not_empty(value: str, field_name: str) -> None:
    """
    Validate that a string is not empty.

    Raises
    ------
    DomainValidationError
        If value is empty or whitespace-only
    """
    if not value or not value.strip():
        raise DomainValidationError(
            f"{field_name} cannot be empty",
            field=field_name,
        )


def validate_aware(value: datetime, field_name: str) -> None:
    """Reject naive datetimes; every timestamp in the domain is timezone-aware."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise DomainValidationError(
            f"{field_name} must be timezone-aware",
            field=field_name,
        )
