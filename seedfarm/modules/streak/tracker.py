"""
Daily Streak Tracker

Purpose
-------
Calendar-day state machine for the daily engagement streak. Works on
calendar days (not elapsed hours): collecting at 23:59 and again at 00:01
the next day continues the streak.

States
------
- NO_STREAK: streak_count == 0
- STREAK_ACTIVE: streak_count >= 1, nothing collected today
- HARVESTED_TODAY: collected_today is set for the current day

Transitions
-----------
- ``advance`` runs once per collection.
- ``reconcile`` runs when state is loaded, so a skipped day is visible before
  the next collection.

Both return a StreakTransition; neither mutates its input.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import Optional

from seedfarm.core.logging.logger import get_logger
from seedfarm.domain.models import PlayerState
from seedfarm.modules.shared.constants import STREAK_GAP_CONTINUES

logger = get_logger(__name__)


class StreakStatus(str, Enum):
    NO_STREAK = "no_streak"
    STREAK_ACTIVE = "streak_active"
    HARVESTED_TODAY = "harvested_today"


@dataclass(frozen=True)
class StreakTransition:
    """Result of a streak transition."""

    state: PlayerState
    previous_count: int
    broken: bool = False
    advanced: bool = False

    @property
    def changed(self) -> bool:
        return self.broken or self.advanced


def calendar_day(moment: datetime, zone: tzinfo) -> date:
    """Calendar date of ``moment`` as seen in ``zone``."""
    return moment.astimezone(zone).date()


class StreakTracker:
    """
    Calendar-day streak state machine.

    Example:
        >>> tracker = StreakTracker()
        >>> result = tracker.advance(state, date(2025, 1, 2))
        >>> result.state.streak_count
        1
    """

    def gap_days(self, state: PlayerState, today: date) -> Optional[int]:
        """Calendar days since ``last_streak_date``; None before the first collection."""
        if state.last_streak_date is None:
            return None
        return (today - state.last_streak_date).days

    def advance(self, state: PlayerState, today: date) -> StreakTransition:
        """
        Apply one collection on ``today``.

        - first collection ever: streak 1
        - same day: unchanged (re-collecting never raises the streak twice)
        - next day: streak + 1
        - gap > 1 day: streak broken, a new streak of 1 starts
        """
        previous = state.streak_count
        gap = self.gap_days(state, today)

        if gap is None:
            new_state = state.with_changes(
                streak_count=1, collected_today=True, last_streak_date=today
            )
            return StreakTransition(new_state, previous, advanced=True)

        if gap <= 0:
            # A negative gap means the clock went back over midnight: same day.
            new_state = state.with_changes(
                streak_count=max(previous, 1), collected_today=True
            )
            return StreakTransition(new_state, previous, advanced=new_state.streak_count != previous)

        if gap == STREAK_GAP_CONTINUES:
            new_state = state.with_changes(
                streak_count=previous + 1, collected_today=True, last_streak_date=today
            )
            return StreakTransition(new_state, previous, advanced=True)

        new_state = state.with_changes(
            streak_count=1, collected_today=True, last_streak_date=today
        )
        return StreakTransition(new_state, previous, broken=previous > 0, advanced=True)

    def reconcile(self, state: PlayerState, today: date) -> StreakTransition:
        """
        Bring a freshly loaded state up to date with the calendar.

        - gap > 1 day without a collection: streak resets to 0
        - gap == 1: a new day started, collected_today clears (streak kept)
        """
        previous = state.streak_count
        gap = self.gap_days(state, today)

        if gap is None or gap <= 0:
            return StreakTransition(state, previous)

        if gap > STREAK_GAP_CONTINUES:
            if previous == 0 and not state.collected_today:
                return StreakTransition(state, previous)
            logger.info(
                "Streak reset on load after missed day",
                extra={"previous_streak": previous, "gap_days": gap},
            )
            new_state = state.with_changes(streak_count=0, collected_today=False)
            return StreakTransition(new_state, previous, broken=previous > 0)

        if state.collected_today:
            return StreakTransition(state.with_changes(collected_today=False), previous)
        return StreakTransition(state, previous)

    def status(self, state: PlayerState, today: Optional[date] = None) -> StreakStatus:
        """Display state; pass ``today`` to ignore a stale collected_today flag."""
        harvested = state.collected_today and (
            today is None or state.last_streak_date == today
        )
        if harvested:
            return StreakStatus.HARVESTED_TODAY
        if state.streak_count >= 1:
            return StreakStatus.STREAK_ACTIVE
        return StreakStatus.NO_STREAK
