"""
Input Validation Layer for Seed Farm

Purpose
-------
Low-level validation for player-supplied input. Today that is the username
chosen at registration; the helpers are generic so further free-text inputs
go through the same path.

Responsibilities
----------------
- Validate string length and character restrictions
- Validate choices against allowed options (character ids)
- Raise ValidationRejected with a stable reason and a readable message

Non-Responsibilities
--------------------
- Uniqueness checks (LeaderboardService)
- Persistence

Observability
-------------
Every failure is logged at debug level with field_name, raw_value (repr) and
the reason.
"""

from __future__ import annotations

import re
from typing import Any, NoReturn, Optional, Sequence

from seedfarm.core.config.config_manager import ConfigManager
from seedfarm.core.logging.logger import get_logger
from seedfarm.modules.shared.constants import (
    USERNAME_ALLOWED_CHARS,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
)
from seedfarm.modules.shared.exceptions import RejectionReason, ValidationRejected

logger = get_logger(__name__)


def _raise_validation_error(
    field_name: str,
    value: Any,
    message: str,
    reason: RejectionReason = RejectionReason.INVALID_USERNAME,
) -> NoReturn:
    """Log and raise a ValidationRejected for one field."""
    logger.debug(
        "Input validation failed",
        extra={
            "field_name": field_name,
            "raw_value": repr(value),
            "reason": message,
        },
    )
    raise ValidationRejected(reason, message, field=field_name)


class InputValidator:
    """
    Stateless input validation.

    All methods return the validated value or raise ValidationRejected.
    """

    # =========================================================================
    # STRING VALIDATION
    # =========================================================================

    @staticmethod
    def validate_string(
        value: Any,
        field_name: str,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
        allowed_chars: Optional[str] = None,
        reason: RejectionReason = RejectionReason.INVALID_USERNAME,
    ) -> str:
        """
        Validate string input with optional length and character constraints.

        Args:
            value: Raw input; surrounding whitespace is stripped
            field_name: Name of field for error messages
            min_length: Minimum string length
            max_length: Maximum string length
            allowed_chars: Regex character class every character must match
                           (e.g. ``[A-Za-z0-9_]``)
            reason: Rejection reason reported on failure

        Returns:
            The stripped string

        Raises:
            ValidationRejected: If validation fails
        """
        if value is None:
            _raise_validation_error(field_name, value, "Value is required", reason)

        str_value = str(value).strip()

        if min_length is not None and len(str_value) < min_length:
            _raise_validation_error(
                field_name,
                str_value,
                f"Must be at least {min_length} characters",
                reason,
            )

        if max_length is not None and len(str_value) > max_length:
            _raise_validation_error(
                field_name,
                str_value,
                f"Cannot exceed {max_length} characters",
                reason,
            )

        if allowed_chars is not None and not re.fullmatch(f"{allowed_chars}+", str_value):
            _raise_validation_error(
                field_name,
                str_value,
                "Contains invalid characters",
                reason,
            )

        return str_value

    @staticmethod
    def validate_username(value: Any) -> str:
        """
        Validate a leaderboard username.

        Length bounds come from ``username.min_length`` / ``username.max_length``;
        only letters, digits and underscores are allowed.

        Example:
            >>> InputValidator.validate_username("  farmer_01 ")
            'farmer_01'
        """
        return InputValidator.validate_string(
            value,
            "username",
            min_length=int(ConfigManager.get("username.min_length", USERNAME_MIN_LENGTH)),
            max_length=int(ConfigManager.get("username.max_length", USERNAME_MAX_LENGTH)),
            allowed_chars=USERNAME_ALLOWED_CHARS,
        )

    # =========================================================================
    # CHOICE VALIDATION
    # =========================================================================

    @staticmethod
    def validate_choice(
        value: Any,
        field_name: str,
        choices: Sequence[str],
        reason: RejectionReason,
    ) -> str:
        """
        Validate that a value is one of the allowed choices (case-sensitive).

        Raises:
            ValidationRejected: If value is not an allowed choice
        """
        str_value = "" if value is None else str(value).strip()
        if str_value not in choices:
            _raise_validation_error(
                field_name,
                value,
                f"Must be one of: {', '.join(choices)}",
                reason,
            )
        return str_value
