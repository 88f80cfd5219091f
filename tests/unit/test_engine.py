"""
Unit Tests for ProgressionEngine
================================

Test Coverage
-------------
- Collection: linear accrual, multiplier application, idempotent re-collect
- Streak progression across calendar days and missed days
- The "current bonus" query agreeing with the applied multiplier
- Upgrade purchases as explicit outcomes
- Reconciliation on load and clock anomalies
- Emitted DomainEvents

Testing Strategy
----------------
- Pure engine calls with fixed timestamps, no infrastructure
- AAA pattern (Arrange, Act, Assert)
"""

import logging
from datetime import date, timedelta

import pytest

from seedfarm.core.config.config_manager import ConfigManager
from seedfarm.domain.models import PlayerState
from seedfarm.modules.progression.engine import (
    EVENT_HARVESTED,
    EVENT_STREAK_ADVANCED,
    EVENT_STREAK_BROKEN,
    EVENT_UPGRADE_PURCHASED,
    ProgressionEngine,
)
from seedfarm.modules.shared.exceptions import RejectionReason
from seedfarm.modules.upgrade.validator import UpgradeStatus


def hours(n: float) -> timedelta:
    return timedelta(hours=n)


def days(n: int) -> timedelta:
    return timedelta(days=n)


def event_names(outcome):
    return [event.event_name for event in outcome.events]


# ============================================================================
# COLLECTION
# ============================================================================


@pytest.mark.unit
class TestCollect:
    def test_collect_credits_linear_accrual(self, engine, fresh_state, monke, t0):
        # Act
        outcome = engine.collect(fresh_state, monke, t0 + hours(3))

        # Assert
        assert outcome.pending == pytest.approx(30.0)
        assert outcome.harvested == pytest.approx(30.0)
        assert outcome.state.seeds_total == pytest.approx(30.0)
        assert outcome.state.last_collection_at == t0 + hours(3)
        assert outcome.state.harvest_count == 1
        assert outcome.state.streak_count == 1

    def test_second_collect_at_same_instant_adds_nothing(self, engine, fresh_state, monke, t0):
        now = t0 + hours(3)
        first = engine.collect(fresh_state, monke, now)

        second = engine.collect(first.state, monke, now)

        assert second.pending == 0.0
        assert second.state.seeds_total == pytest.approx(first.state.seeds_total)
        assert second.state.streak_count == first.state.streak_count

    def test_collect_does_not_mutate_input(self, engine, fresh_state, monke, t0):
        engine.collect(fresh_state, monke, t0 + hours(1))

        assert fresh_state == PlayerState.initial(t0)

    def test_compute_pending_never_advances_timestamp(self, engine, fresh_state, monke, t0):
        first = engine.compute_pending(fresh_state, monke, t0 + hours(2))
        second = engine.compute_pending(fresh_state, monke, t0 + hours(2))

        assert first == second == pytest.approx(20.0)
        assert fresh_state.last_collection_at == t0

    def test_double_harvest_alternates_from_first_collection(self, engine, fresh_state, degen_ape, t0):
        # Arrange & Act
        first = engine.collect(fresh_state, degen_ape, t0 + hours(1))
        second = engine.collect(first.state, degen_ape, t0 + hours(2))
        third = engine.collect(second.state, degen_ape, t0 + hours(3))

        # Assert
        assert first.harvested == pytest.approx(20.0)
        assert second.harvested == pytest.approx(10.0)
        assert third.harvested == pytest.approx(20.0)

    def test_streak_amplifier_at_three_days(self, engine, foxy, t0):
        # Arrange: two-day streak, collected yesterday, one hour of accrual
        state = PlayerState(
            seeds_total=0.0,
            last_collection_at=t0 - hours(1),
            streak_count=2,
            last_streak_date=date(2024, 12, 31),
        )

        # Act
        outcome = engine.collect(state, foxy, t0)

        # Assert
        assert outcome.state.streak_count == 3
        assert outcome.multiplier.total == pytest.approx(1.265)
        assert outcome.harvested == pytest.approx(8 * 1.265)

    def test_streak_sequence_with_missed_day(self, engine, fresh_state, monke, t0):
        day1 = engine.collect(fresh_state, monke, t0).state
        day2 = engine.collect(day1, monke, t0 + days(1)).state
        day4 = engine.collect(day2, monke, t0 + days(3)).state

        assert (day1.streak_count, day2.streak_count, day4.streak_count) == (1, 2, 1)

    def test_same_day_collects_keep_streak(self, engine, fresh_state, monke, t0):
        first = engine.collect(fresh_state, monke, t0)

        second = engine.collect(first.state, monke, t0 + hours(5))

        assert second.state.streak_count == 1
        assert second.state.collected_today is True

    def test_capacity_caps_pending(self, catalog, fresh_state, monke, t0):
        engine = ProgressionEngine(catalog, base_capacity=20)

        outcome = engine.collect(fresh_state, monke, t0 + hours(5))

        assert outcome.pending == 20

    def test_storage_upgrade_raises_capacity(self, catalog, monke, t0):
        engine = ProgressionEngine(catalog, base_capacity=20)
        state = PlayerState(seeds_total=0.0, last_collection_at=t0, purchased_upgrades={"storage1"})

        assert engine.capacity(state, monke) == 40
        assert engine.compute_pending(state, monke, t0 + hours(5)) == 40

    def test_infinite_capacity_ignores_base(self, catalog, fresh_state, okay_bear, t0):
        engine = ProgressionEngine(catalog, base_capacity=20)

        assert engine.compute_pending(fresh_state, okay_bear, t0 + hours(5)) == pytest.approx(60.0)


@pytest.mark.unit
class TestClockAnomaly:
    def test_backwards_clock_credits_nothing(self, engine, monke, t0):
        state = PlayerState(seeds_total=50.0, last_collection_at=t0)

        outcome = engine.collect(state, monke, t0 - hours(1))

        assert outcome.pending == 0.0
        assert outcome.state.seeds_total == 50.0
        assert outcome.state.last_collection_at == t0

    def test_interval_not_credited_twice_after_anomaly(self, engine, monke, t0):
        state = PlayerState(seeds_total=0.0, last_collection_at=t0)

        skewed = engine.collect(state, monke, t0 - hours(1)).state
        later = engine.collect(skewed, monke, t0 + hours(1))

        assert later.pending == pytest.approx(10.0)


# ============================================================================
# CURRENT BONUS
# ============================================================================


@pytest.mark.unit
class TestCurrentBonus:
    @pytest.mark.parametrize("streak, last_day", [(0, None), (2, date(2024, 12, 31)), (6, date(2025, 1, 1))])
    def test_matches_collect_multiplier(self, engine, foxy, t0, streak, last_day):
        state = PlayerState(
            seeds_total=0.0,
            last_collection_at=t0 - hours(2),
            streak_count=streak,
            last_streak_date=last_day,
            collected_today=last_day == date(2025, 1, 1),
        )

        bonus = engine.current_bonus(state, foxy, t0)
        outcome = engine.collect(state, foxy, t0)

        assert bonus == outcome.multiplier

    def test_query_leaves_state_untouched(self, engine, fresh_state, degen_ape, t0):
        engine.current_bonus(fresh_state, degen_ape, t0)

        assert fresh_state.streak_count == 0
        assert fresh_state.harvest_count == 0

    def test_query_after_missed_day_logs_no_break(self, engine, monke, t0, caplog):
        state = PlayerState(
            seeds_total=0.0,
            last_collection_at=t0,
            streak_count=4,
            last_streak_date=date(2025, 1, 1),
        )

        with caplog.at_level(logging.INFO, logger="seedfarm"):
            for _ in range(3):
                engine.current_bonus(state, monke, t0 + days(2))

        assert "Streak broken on collection" not in caplog.messages


# ============================================================================
# PURCHASE
# ============================================================================


@pytest.mark.unit
class TestPurchaseUpgrade:
    def test_accepted_purchase(self, engine, okay_bear, t0):
        state = PlayerState(seeds_total=400.0, last_collection_at=t0)

        outcome = engine.purchase_upgrade(state, okay_bear, "tools1")

        assert outcome.accepted
        assert outcome.cost == 400
        assert outcome.state.seeds_total == 0
        assert outcome.state.owns("tools1")
        assert event_names(outcome) == [EVENT_UPGRADE_PURCHASED]
        assert outcome.events[0].payload["cost"] == 400

    def test_rejection_returns_input_state(self, engine, okay_bear, t0):
        state = PlayerState(seeds_total=399.0, last_collection_at=t0)

        outcome = engine.purchase_upgrade(state, okay_bear, "tools1")

        assert not outcome.accepted
        assert outcome.state is state
        assert outcome.reason is RejectionReason.INSUFFICIENT_FUNDS
        assert outcome.cost is None
        assert outcome.events == []

    def test_locked_upgrade_rejected(self, engine, monke, t0):
        state = PlayerState(seeds_total=100_000.0, last_collection_at=t0)

        outcome = engine.purchase_upgrade(state, monke, "tools3")

        assert outcome.reason is RejectionReason.UPGRADE_LOCKED

    def test_upgrade_statuses_in_catalog_order(self, engine, okay_bear, t0):
        state = PlayerState(seeds_total=450.0, last_collection_at=t0, purchased_upgrades={"storage1"})

        rows = engine.upgrade_statuses(state, okay_bear)

        assert [u.id for u, _, _ in rows] == ["tools1", "tools2", "tools3", "storage1", "storage2", "slot"]
        assert rows[0][1] is UpgradeStatus.AVAILABLE
        assert rows[0][2] == 400
        assert rows[1][1] is UpgradeStatus.LOCKED
        assert rows[3][1] is UpgradeStatus.OWNED
        assert rows[4][1] is UpgradeStatus.EXPENSIVE


# ============================================================================
# RECONCILE / EVENTS
# ============================================================================


@pytest.mark.unit
class TestReconcile:
    def test_missed_day_resets_with_event(self, engine, t0):
        state = PlayerState(
            seeds_total=10.0,
            last_collection_at=t0,
            streak_count=5,
            last_streak_date=date(2025, 1, 1),
            collected_today=True,
        )

        outcome = engine.reconcile(state, t0 + days(3))

        assert outcome.state.streak_count == 0
        assert event_names(outcome) == [EVENT_STREAK_BROKEN]
        assert outcome.events[0].payload == {"previous_streak": 5, "streak_count": 0}

    def test_fresh_state_reconciles_quietly(self, engine, fresh_state, t0):
        outcome = engine.reconcile(fresh_state, t0 + days(10))

        assert outcome.state is fresh_state
        assert outcome.events == []


@pytest.mark.unit
class TestEvents:
    def test_first_collect_emits_harvest_and_streak(self, engine, fresh_state, monke, t0):
        outcome = engine.collect(fresh_state, monke, t0 + hours(1))

        assert event_names(outcome) == [EVENT_HARVESTED, EVENT_STREAK_ADVANCED]
        payload = outcome.events[0].payload
        assert payload["character_id"] == "monke"
        assert payload["harvest_count"] == 1
        assert payload["harvested"] == pytest.approx(10.0)

    def test_same_day_collect_emits_only_harvest(self, engine, fresh_state, monke, t0):
        first = engine.collect(fresh_state, monke, t0)

        second = engine.collect(first.state, monke, t0 + hours(1))

        assert event_names(second) == [EVENT_HARVESTED]

    def test_broken_streak_event_on_collect(self, engine, monke, t0):
        state = PlayerState(
            seeds_total=0.0,
            last_collection_at=t0,
            streak_count=4,
            last_streak_date=date(2025, 1, 1),
        )

        outcome = engine.collect(state, monke, t0 + days(2))

        assert event_names(outcome) == [EVENT_HARVESTED, EVENT_STREAK_BROKEN]
        assert outcome.events[1].payload == {"previous_streak": 4, "streak_count": 1}

    def test_broken_streak_logged_once_on_collect(self, engine, monke, t0, caplog):
        state = PlayerState(
            seeds_total=0.0,
            last_collection_at=t0,
            streak_count=4,
            last_streak_date=date(2025, 1, 1),
        )

        with caplog.at_level(logging.INFO, logger="seedfarm"):
            engine.collect(state, monke, t0 + days(2))

        assert caplog.messages.count("Streak broken on collection") == 1


@pytest.mark.unit
class TestFromConfig:
    def test_engine_from_yaml(self, okay_bear):
        engine = ProgressionEngine.from_config()

        assert len(engine.catalog) == 6
        assert engine.base_capacity is None
        assert engine.validator.effective_cost(engine.catalog.get("tools1"), okay_bear) == 400

    def test_base_capacity_override(self, monke, t0):
        ConfigManager.set("economy.base_capacity", 50)

        engine = ProgressionEngine.from_config()

        assert engine.capacity(PlayerState.initial(t0), monke) == 50.0
