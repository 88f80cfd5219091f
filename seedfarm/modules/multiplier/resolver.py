"""
Harvest Multiplier Resolver

Purpose
-------
Compose the streak bonus with a character's ability factor into the single
multiplier applied to pending seeds at collection time.

Design Notes
------------
- The same ``resolve`` call backs both the real collection and the
  "current bonus" display query, so the two can never disagree.
- Abilities are matched exhaustively; an unknown member raises.
- Balance values come from ConfigManager via ``from_config``; the
  constructor takes them explicitly so tests can pin them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from seedfarm.core.config.config_manager import ConfigManager
from seedfarm.core.exceptions import ConfigurationError
from seedfarm.domain.models import Ability, Character
from seedfarm.modules.shared.constants import (
    DOUBLE_HARVEST_FACTOR,
    STREAK_AMPLIFIER_FACTOR,
    STREAK_AMPLIFIER_MIN_STREAK,
)

DEFAULT_BONUS_TIERS: Tuple[Tuple[int, float], ...] = ((7, 1.25), (3, 1.10))


@dataclass(frozen=True)
class MultiplierBreakdown:
    """Streak bonus, ability factor, and their product."""

    streak_bonus: float
    ability_factor: float

    @property
    def total(self) -> float:
        return self.streak_bonus * self.ability_factor

    def to_dict(self) -> Dict[str, float]:
        return {
            "streak_bonus": self.streak_bonus,
            "ability_factor": self.ability_factor,
            "total": self.total,
        }


def _parse_tiers(raw: Iterable[Mapping[str, Any]]) -> List[Tuple[int, float]]:
    tiers: List[Tuple[int, float]] = []
    for entry in raw:
        try:
            tiers.append((int(entry["min_streak"]), float(entry["bonus"])))
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError("streak.bonus_tiers", f"invalid tier {entry!r}: {e}") from e
    return tiers


class MultiplierResolver:
    """
    Resolve the harvest multiplier for a character.

    Args:
        bonus_tiers: (min_streak, bonus) pairs; the highest matching tier wins
        double_harvest_factor: Factor for ALTERNATING_DOUBLE_HARVEST on even counts
        amplifier_factor: Factor for STREAK_AMPLIFIER once the streak qualifies
        amplifier_min_streak: Streak needed for the amplifier

    Example:
        >>> resolver = MultiplierResolver()
        >>> round(resolver.resolve(foxy, streak_count=3, harvest_count_before=10).total, 3)
        1.265
    """

    def __init__(
        self,
        bonus_tiers: Optional[Sequence[Tuple[int, float]]] = None,
        double_harvest_factor: float = DOUBLE_HARVEST_FACTOR,
        amplifier_factor: float = STREAK_AMPLIFIER_FACTOR,
        amplifier_min_streak: int = STREAK_AMPLIFIER_MIN_STREAK,
    ) -> None:
        tiers = bonus_tiers if bonus_tiers is not None else DEFAULT_BONUS_TIERS
        self._tiers = sorted(tiers, key=lambda tier: tier[0], reverse=True)
        self._double_harvest_factor = double_harvest_factor
        self._amplifier_factor = amplifier_factor
        self._amplifier_min_streak = amplifier_min_streak

    @classmethod
    def from_config(cls) -> MultiplierResolver:
        """Build a resolver from the balance values in ConfigManager."""
        return cls(
            bonus_tiers=_parse_tiers(ConfigManager.get("streak.bonus_tiers", [])),
            double_harvest_factor=float(
                ConfigManager.get("abilities.alternating_double_harvest.factor", DOUBLE_HARVEST_FACTOR)
            ),
            amplifier_factor=float(
                ConfigManager.get("abilities.streak_amplifier.factor", STREAK_AMPLIFIER_FACTOR)
            ),
            amplifier_min_streak=int(
                ConfigManager.get("abilities.streak_amplifier.min_streak", STREAK_AMPLIFIER_MIN_STREAK)
            ),
        )

    def streak_bonus(self, streak_count: int) -> float:
        """1.25 at 7+ days, 1.10 at 3+ days, else 1.0 (with default tiers)."""
        for min_streak, bonus in self._tiers:
            if streak_count >= min_streak:
                return bonus
        return 1.0

    def ability_factor(
        self, character: Character, streak_count: int, harvest_count_before: int
    ) -> float:
        """
        Ability contribution to the multiplier.

        ``harvest_count_before`` is the lifetime count read before this
        collection increments it, so the 1st, 3rd, 5th... collections double.
        """
        match character.ability:
            case Ability.ALTERNATING_DOUBLE_HARVEST:
                return self._double_harvest_factor if harvest_count_before % 2 == 0 else 1.0
            case Ability.STREAK_AMPLIFIER:
                return self._amplifier_factor if streak_count >= self._amplifier_min_streak else 1.0
            case Ability.INFINITE_CAPACITY_AND_DISCOUNT:
                # Realized through capacity and purchase discount instead
                return 1.0
            case Ability.NONE:
                return 1.0
            case _:
                raise ValueError(f"Unhandled ability: {character.ability!r}")

    def resolve(
        self, character: Character, streak_count: int, harvest_count_before: int
    ) -> MultiplierBreakdown:
        return MultiplierBreakdown(
            streak_bonus=self.streak_bonus(streak_count),
            ability_factor=self.ability_factor(character, streak_count, harvest_count_before),
        )
