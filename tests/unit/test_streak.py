"""
Unit tests for the calendar-day streak state machine.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from seedfarm.domain.models import PlayerState
from seedfarm.modules.streak.tracker import StreakStatus, StreakTracker, calendar_day

DAY1 = date(2025, 1, 1)
DAY2 = date(2025, 1, 2)
DAY3 = date(2025, 1, 3)
DAY4 = date(2025, 1, 4)


@pytest.fixture
def tracker() -> StreakTracker:
    return StreakTracker()


def streak_state(t0, count: int, last: date, collected: bool = False) -> PlayerState:
    return PlayerState(
        seeds_total=0.0,
        last_collection_at=t0,
        streak_count=count,
        last_streak_date=last,
        collected_today=collected,
    )


@pytest.mark.unit
class TestAdvance:
    """Transitions applied on collection."""

    def test_first_collection_starts_streak(self, tracker, fresh_state):
        result = tracker.advance(fresh_state, DAY1)

        assert result.state.streak_count == 1
        assert result.state.collected_today is True
        assert result.state.last_streak_date == DAY1
        assert result.advanced and not result.broken

    def test_same_day_does_not_raise_streak(self, tracker, t0):
        state = streak_state(t0, 4, DAY2, collected=True)

        result = tracker.advance(state, DAY2)

        assert result.state.streak_count == 4
        assert result.state.collected_today is True
        assert not result.changed

    def test_next_day_increments(self, tracker, t0):
        state = streak_state(t0, 2, DAY1, collected=True)

        result = tracker.advance(state, DAY2)

        assert result.state.streak_count == 3
        assert result.state.last_streak_date == DAY2
        assert result.advanced

    def test_gap_breaks_and_restarts_at_one(self, tracker, t0):
        state = streak_state(t0, 2, DAY2, collected=True)

        result = tracker.advance(state, DAY4)

        assert result.state.streak_count == 1
        assert result.state.last_streak_date == DAY4
        assert result.broken
        assert result.previous_count == 2

    def test_backwards_clock_treated_as_same_day(self, tracker, t0):
        state = streak_state(t0, 3, DAY3, collected=True)

        result = tracker.advance(state, DAY2)

        assert result.state.streak_count == 3
        assert result.state.last_streak_date == DAY3

    def test_same_day_after_reconciled_reset_restarts_at_one(self, tracker, t0):
        # reconcile zeroed the count but kept the date
        state = streak_state(t0, 0, DAY1)

        result = tracker.advance(state, DAY1)

        assert result.state.streak_count == 1

    def test_day_sequence_with_skip(self, tracker, fresh_state):
        # Arrange & Act
        day1 = tracker.advance(fresh_state, DAY1).state
        day2 = tracker.advance(day1, DAY2).state
        day4 = tracker.advance(day2, DAY4).state

        # Assert
        assert day1.streak_count == 1
        assert day2.streak_count == 2
        assert day4.streak_count == 1


@pytest.mark.unit
class TestReconcile:
    """Transitions applied on load."""

    def test_missed_day_resets_before_collection(self, tracker, t0):
        state = streak_state(t0, 5, DAY1, collected=True)

        result = tracker.reconcile(state, DAY3)

        assert result.state.streak_count == 0
        assert result.state.collected_today is False
        assert result.state.last_streak_date == DAY1
        assert result.broken

    def test_next_day_clears_collected_flag_only(self, tracker, t0):
        state = streak_state(t0, 5, DAY1, collected=True)

        result = tracker.reconcile(state, DAY2)

        assert result.state.streak_count == 5
        assert result.state.collected_today is False
        assert not result.broken

    def test_same_day_is_noop(self, tracker, t0):
        state = streak_state(t0, 5, DAY1, collected=True)

        result = tracker.reconcile(state, DAY1)

        assert result.state is state

    def test_never_collected_is_noop(self, tracker, fresh_state):
        assert tracker.reconcile(fresh_state, DAY4).state is fresh_state

    def test_already_reset_is_noop(self, tracker, t0):
        state = streak_state(t0, 0, DAY1)

        result = tracker.reconcile(state, DAY4)

        assert result.state is state
        assert not result.broken

    def test_reconcile_then_collect_starts_new_streak(self, tracker, t0):
        state = streak_state(t0, 5, DAY1, collected=True)

        reconciled = tracker.reconcile(state, DAY4).state
        collected = tracker.advance(reconciled, DAY4)

        assert collected.state.streak_count == 1
        assert not collected.broken


@pytest.mark.unit
class TestStatus:
    def test_no_streak(self, tracker, fresh_state):
        assert tracker.status(fresh_state) is StreakStatus.NO_STREAK

    def test_harvested_today(self, tracker, t0):
        state = streak_state(t0, 2, DAY2, collected=True)

        assert tracker.status(state, DAY2) is StreakStatus.HARVESTED_TODAY

    def test_stale_collected_flag_reads_active(self, tracker, t0):
        state = streak_state(t0, 2, DAY2, collected=True)

        assert tracker.status(state, DAY3) is StreakStatus.STREAK_ACTIVE


@pytest.mark.unit
class TestCalendarDay:
    def test_utc_day(self):
        moment = datetime(2025, 1, 1, 23, 59, tzinfo=timezone.utc)

        assert calendar_day(moment, timezone.utc) == DAY1

    def test_zone_shifts_day(self):
        moment = datetime(2025, 1, 2, 3, 0, tzinfo=timezone.utc)

        assert calendar_day(moment, ZoneInfo("America/New_York")) == DAY1

    def test_late_and_early_collections_are_consecutive_days(self, tracker, fresh_state):
        late = datetime(2025, 1, 1, 23, 59, tzinfo=timezone.utc)
        early = datetime(2025, 1, 2, 0, 1, tzinfo=timezone.utc)

        first = tracker.advance(fresh_state, calendar_day(late, timezone.utc)).state
        second = tracker.advance(first, calendar_day(early, timezone.utc)).state

        assert second.streak_count == 2
