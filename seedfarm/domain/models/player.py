"""
Player state value object for Seed Farm.

Purpose
-------
Immutable snapshot of one player's progression: seed balance, last
collection time, streak calendar fields, lifetime harvest count and owned
upgrades.

Responsibilities
----------------
- Validate field invariants on construction
- Provide the zeroed first-run state
- Provide copy-with-changes helpers used by the transition functions

Non-Responsibilities
--------------------
- Deciding how state changes (accrual, streak, purchase modules)
- Persistence (PlayerStateStore reads/writes whole snapshots)

Usage Example
-------------
>>> state = PlayerState.initial(now)
>>> state.seeds_total
0.0
>>> richer = state.with_changes(seeds_total=120.5)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, FrozenSet, Optional

from seedfarm.domain.models.base import (
    DomainValidationError,
    validate_aware,
    validate_non_negative,
)


@dataclass(frozen=True)
class PlayerState:
    """
    Immutable value object representing a player's progression.

    Attributes
    ----------
    seeds_total : float
        Committed seed balance (never negative)
    last_collection_at : datetime
        Timezone-aware timestamp of the last collection
    streak_count : int
        Consecutive calendar days with at least one collection
    last_streak_date : Optional[date]
        Calendar day of the last streak update, unset before the first collect
    collected_today : bool
        Whether a collection happened on ``last_streak_date``
    harvest_count : int
        Lifetime number of collections
    purchased_upgrades : FrozenSet[str]
        Owned upgrade ids
    """

    seeds_total: float
    last_collection_at: datetime
    streak_count: int = 0
    last_streak_date: Optional[date] = None
    collected_today: bool = False
    harvest_count: int = 0
    purchased_upgrades: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        validate_non_negative(self.seeds_total, "seeds_total")
        validate_non_negative(self.streak_count, "streak_count")
        validate_non_negative(self.harvest_count, "harvest_count")
        validate_aware(self.last_collection_at, "last_collection_at")
        if not isinstance(self.purchased_upgrades, frozenset):
            # Accept any iterable of ids from callers, store it frozen
            object.__setattr__(self, "purchased_upgrades", frozenset(self.purchased_upgrades))
        if self.collected_today and self.last_streak_date is None:
            raise DomainValidationError(
                "collected_today requires last_streak_date",
                field="collected_today",
            )

    @classmethod
    def initial(cls, now: datetime) -> PlayerState:
        """Zeroed first-run state; accrual starts at ``now``."""
        return cls(seeds_total=0.0, last_collection_at=now)

    def with_changes(self, **changes: Any) -> PlayerState:
        """Return a validated copy with the given fields replaced."""
        return replace(self, **changes)

    def owns(self, upgrade_id: str) -> bool:
        return upgrade_id in self.purchased_upgrades
