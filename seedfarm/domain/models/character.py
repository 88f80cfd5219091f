"""
Character value object and the closed set of abilities.

Every ability is matched exhaustively by the modules that care about it
(multiplier, capacity, purchase discount); adding a member here without
handling it there raises at runtime instead of silently defaulting.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from seedfarm.domain.models.base import validate_not_empty, validate_positive


class Ability(str, Enum):
    """Character-specific modifier to multiplier, capacity, or purchase discount."""

    NONE = "none"
    ALTERNATING_DOUBLE_HARVEST = "alternating_double_harvest"
    STREAK_AMPLIFIER = "streak_amplifier"
    INFINITE_CAPACITY_AND_DISCOUNT = "infinite_capacity_and_discount"


@dataclass(frozen=True)
class Character:
    """
    Immutable playable character.

    Attributes
    ----------
    id : str
        Stable identifier stored with the player and on the leaderboard
    name : str
        Display name
    base_rate_per_hour : float
        Seeds accrued per hour before multipliers
    ability : Ability
        The character's modifier
    """

    id: str
    name: str
    base_rate_per_hour: float
    ability: Ability = Ability.NONE

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "id")
        validate_positive(self.base_rate_per_hour, "base_rate_per_hour")
        if not isinstance(self.ability, Ability):
            object.__setattr__(self, "ability", Ability(self.ability))
