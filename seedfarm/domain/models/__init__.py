"""
Domain models package for Seed Farm.

Purpose
-------
Immutable value objects for the progression engine. Transition functions in
``seedfarm.modules`` take these values and return new ones; nothing here
talks to the store or the leaderboard.
"""

from .base import (
    DomainEvent,
    DomainValidationError,
    validate_aware,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
)
from .character import Ability, Character
from .player import PlayerState
from .upgrade import Upgrade, UpgradeKind

__all__ = [
    # Base
    "DomainEvent",
    "DomainValidationError",
    "validate_aware",
    "validate_positive",
    "validate_non_negative",
    "validate_not_empty",
    # Models
    "Ability",
    "Character",
    "PlayerState",
    "Upgrade",
    "UpgradeKind",
]
