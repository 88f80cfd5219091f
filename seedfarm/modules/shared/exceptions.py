"""
Domain exceptions for Seed Farm.

Purpose
-------
Define the structured, domain-specific exception hierarchy for game logic.
These exceptions are raised by validators and services for business rule
violations. The progression engine converts them into explicit rejection
outcomes; nothing here is fatal.

Design Notes
------------
- All domain exceptions inherit from `SeedfarmDomainException`.
- `ValidationRejected` always carries a `RejectionReason` so callers can
  branch on a stable code instead of parsing messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from seedfarm.core.exceptions import ErrorSeverity


class RejectionReason(str, Enum):
    """Stable reason codes for rejected player actions."""

    UNKNOWN_UPGRADE = "unknown_upgrade"
    ALREADY_OWNED = "already_owned"
    UPGRADE_LOCKED = "upgrade_locked"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INVALID_USERNAME = "invalid_username"
    USERNAME_TAKEN = "username_taken"
    UNKNOWN_CHARACTER = "unknown_character"


class SeedfarmDomainException(Exception):
    """
    Base exception for all Seed Farm domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"


class ValidationRejected(SeedfarmDomainException):
    """
    Raised when a player action fails a precondition.

    Covers insufficient funds, locked or already-owned upgrades, and invalid
    or taken usernames. The action is a no-op; state is unchanged.

    Args:
        reason: Stable rejection code
        message: Explanation for logs and UI
        **details: Extra structured context (upgrade_id, required, current...)

    Example:
        >>> raise ValidationRejected(
        ...     RejectionReason.INSUFFICIENT_FUNDS,
        ...     "Need 400 seeds, have 399",
        ...     required=400,
        ...     current=399,
        ... )
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, reason: RejectionReason, message: str, **details: Any) -> None:
        self.reason = reason
        super().__init__(
            message,
            details={"reason": reason.value, **details},
            error_code=reason.name,
        )


class NotFoundError(SeedfarmDomainException):
    """
    Raised when a requested catalog entry cannot be found.

    Args:
        resource_type: Type of resource (e.g., "Character", "Upgrade")
        identifier: Identifier of the missing resource
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier

        if identifier is not None:
            message = f"{resource_type} not found: {identifier}"
        else:
            message = f"{resource_type} not found"

        super().__init__(
            message,
            details={
                "resource_type": resource_type,
                "identifier": identifier,
            },
            error_code=f"{resource_type.upper()}_NOT_FOUND",
        )
