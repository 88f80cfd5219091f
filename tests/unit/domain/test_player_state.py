"""
Unit Tests for Domain Value Objects
===================================

Test Coverage
-------------
- PlayerState construction, defaults and invariants
- Character and Upgrade validation and enum coercion

Testing Strategy
----------------
- Pure domain tests, no infrastructure
- AAA pattern (Arrange, Act, Assert)
"""

from dataclasses import FrozenInstanceError
from datetime import date, datetime

import pytest

from seedfarm.domain.models import (
    Ability,
    Character,
    DomainValidationError,
    PlayerState,
    Upgrade,
    UpgradeKind,
)


# ============================================================================
# PLAYER STATE TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestPlayerState:
    """Test PlayerState value object."""

    def test_initial_state_is_zeroed(self, t0):
        # Act
        state = PlayerState.initial(t0)

        # Assert
        assert state.seeds_total == 0.0
        assert state.last_collection_at == t0
        assert state.streak_count == 0
        assert state.last_streak_date is None
        assert state.collected_today is False
        assert state.harvest_count == 0
        assert state.purchased_upgrades == frozenset()

    def test_negative_seeds_rejected(self, t0):
        with pytest.raises(DomainValidationError) as exc_info:
            PlayerState(seeds_total=-1.0, last_collection_at=t0)

        assert exc_info.value.field == "seeds_total"

    def test_negative_streak_rejected(self, t0):
        with pytest.raises(DomainValidationError):
            PlayerState(seeds_total=0.0, last_collection_at=t0, streak_count=-1)

    def test_naive_timestamp_rejected(self):
        with pytest.raises(DomainValidationError) as exc_info:
            PlayerState(seeds_total=0.0, last_collection_at=datetime(2025, 1, 1))

        assert "timezone-aware" in str(exc_info.value)

    def test_collected_today_requires_streak_date(self, t0):
        with pytest.raises(DomainValidationError) as exc_info:
            PlayerState(seeds_total=0.0, last_collection_at=t0, collected_today=True)

        assert exc_info.value.field == "collected_today"

    def test_purchased_upgrades_coerced_to_frozenset(self, t0):
        # Act
        state = PlayerState(
            seeds_total=0.0,
            last_collection_at=t0,
            purchased_upgrades=["tools1", "tools1", "storage1"],
        )

        # Assert
        assert state.purchased_upgrades == frozenset({"tools1", "storage1"})
        assert state.owns("tools1")
        assert not state.owns("tools2")

    def test_state_is_immutable(self, fresh_state):
        with pytest.raises(FrozenInstanceError):
            fresh_state.seeds_total = 100.0  # type: ignore[misc]

    def test_with_changes_returns_validated_copy(self, fresh_state):
        # Act
        changed = fresh_state.with_changes(seeds_total=42.5, streak_count=2, last_streak_date=date(2025, 1, 1))

        # Assert
        assert changed.seeds_total == 42.5
        assert changed.streak_count == 2
        assert fresh_state.seeds_total == 0.0

    def test_with_changes_still_validates(self, fresh_state):
        with pytest.raises(DomainValidationError):
            fresh_state.with_changes(harvest_count=-3)


# ============================================================================
# CHARACTER / UPGRADE TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestCharacter:
    def test_ability_string_is_coerced(self):
        character = Character("foxy", "Foxy", 8, "streak_amplifier")

        assert character.ability is Ability.STREAK_AMPLIFIER

    def test_unknown_ability_rejected(self):
        with pytest.raises(ValueError):
            Character("x", "X", 1, "teleport")

    def test_rate_must_be_positive(self):
        with pytest.raises(DomainValidationError):
            Character("x", "X", 0)

    def test_default_ability_is_none(self):
        assert Character("monke", "Monke", 10).ability is Ability.NONE


@pytest.mark.unit
@pytest.mark.domain
class TestUpgrade:
    def test_kind_string_is_coerced(self):
        upgrade = Upgrade("storage1", 300, kind="storage", storage_multiplier=2)

        assert upgrade.kind is UpgradeKind.STORAGE

    def test_cost_must_be_integer(self):
        with pytest.raises(DomainValidationError):
            Upgrade("tools1", 500.5)  # type: ignore[arg-type]

    def test_cost_must_be_positive(self):
        with pytest.raises(DomainValidationError):
            Upgrade("tools1", 0)

    def test_upgrade_cannot_require_itself(self):
        with pytest.raises(DomainValidationError) as exc_info:
            Upgrade("tools1", 500, prerequisite_id="tools1")

        assert exc_info.value.field == "prerequisite_id"
