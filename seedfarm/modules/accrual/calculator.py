"""
Seed Accrual Formulas

Purpose
-------
Pure calculation functions turning elapsed wall-clock time into pending
seeds, and deriving the pending-seed capacity for a character.

Design Notes
------------
- Pure functions only (no side effects, no config access)
- Callable repeatedly for display polling; never advances any timestamp
- Clock skew (now earlier than the last collection) clamps to zero

Usage
-----
    from seedfarm.modules.accrual.calculator import compute_pending

    pending = compute_pending(now, state.last_collection_at, character.base_rate_per_hour)
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, Optional

from seedfarm.core.logging.logger import get_logger
from seedfarm.domain.models import Ability, Character, Upgrade, UpgradeKind
from seedfarm.modules.shared.constants import SECONDS_PER_HOUR

logger = get_logger(__name__)


def hours_between(start: datetime, end: datetime) -> float:
    """
    Elapsed hours from ``start`` to ``end``, clamped at zero.

    Example:
        >>> hours_between(t0, t0 + timedelta(minutes=90))
        1.5
    """
    seconds = (end - start).total_seconds()
    if seconds < 0:
        logger.debug(
            "Clock anomaly: now precedes last collection, clamping accrual to zero",
            extra={"skew_seconds": -seconds},
        )
        return 0.0
    return seconds / SECONDS_PER_HOUR


def compute_pending(
    now: datetime,
    last_collection_at: datetime,
    rate_per_hour: float,
    capacity: Optional[float] = None,
) -> float:
    """
    Seeds accrued since the last collection.

    Args:
        now: Current timestamp (timezone-aware)
        last_collection_at: Timestamp of the last committed collection
        rate_per_hour: Seeds per hour
        capacity: Upper bound on pending seeds; None or inf means unbounded

    Returns:
        ``hours_elapsed * rate_per_hour``, capped at ``capacity`` when finite

    Example:
        >>> compute_pending(t0 + timedelta(hours=3), t0, 10)
        30.0
        >>> compute_pending(t0 + timedelta(hours=3), t0, 10, capacity=25)
        25
        >>> compute_pending(t0 - timedelta(hours=1), t0, 10)
        0.0
    """
    pending = hours_between(last_collection_at, now) * rate_per_hour
    if capacity is not None and math.isfinite(capacity):
        pending = min(pending, capacity)
    return pending


def resolve_capacity(
    character: Character,
    owned_upgrades: Iterable[Upgrade],
    base_capacity: Optional[float] = None,
) -> Optional[float]:
    """
    Pending-seed capacity for a character and its owned upgrades.

    Args:
        character: The farming character
        owned_upgrades: Upgrade definitions the player owns
        base_capacity: Configured cap before storage upgrades (None = no cap)

    Returns:
        None when unbounded, otherwise ``base_capacity`` times the largest
        owned storage multiplier
    """
    match character.ability:
        case Ability.INFINITE_CAPACITY_AND_DISCOUNT:
            return None
        case Ability.NONE | Ability.ALTERNATING_DOUBLE_HARVEST | Ability.STREAK_AMPLIFIER:
            pass
        case _:
            raise ValueError(f"Unhandled ability: {character.ability!r}")

    if base_capacity is None:
        return None

    # Storage tiers replace each other, they do not stack
    multiplier = max(
        (u.storage_multiplier for u in owned_upgrades if u.kind is UpgradeKind.STORAGE),
        default=1.0,
    )
    return float(base_capacity) * multiplier
