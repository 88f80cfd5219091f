"""
Unit Tests for PlayerStateStore
===============================

Test Coverage
-------------
- Snapshot encoding and per-field decoding fallbacks
- First-run defaults on an empty store
- Degraded load when the store is unreachable
- Write failures propagating as StorageUnavailable

Testing Strategy
----------------
- RedisService replaced by the dict-backed ``mock_redis_service`` fixture
"""

from datetime import date, timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from seedfarm.core.exceptions import StorageUnavailable
from seedfarm.domain.models import PlayerState
from seedfarm.modules.player.store import PlayerStateStore

PREFIX = "test:"


@pytest.fixture
def store(mock_redis_service) -> PlayerStateStore:
    return PlayerStateStore(prefix=PREFIX, redis_service=mock_redis_service)


@pytest.fixture
def played_state(t0) -> PlayerState:
    return PlayerState(
        seeds_total=1234.5678,
        last_collection_at=t0,
        streak_count=4,
        last_streak_date=date(2025, 1, 1),
        collected_today=True,
        harvest_count=9,
        purchased_upgrades={"tools1", "storage1"},
    )


@pytest.mark.unit
class TestEncoding:
    def test_encode_is_flat_strings(self, played_state):
        encoded = PlayerStateStore.encode(played_state)

        assert encoded == {
            "seeds": "1234.5678",
            "last_harvest": "2025-01-01T12:00:00+00:00",
            "streak": "4",
            "last_streak_date": "2025-01-01",
            "collected_today": "true",
            "harvest_count": "9",
            "purchased": '["storage1", "tools1"]',
        }

    def test_encode_omits_missing_streak_date(self, fresh_state):
        assert "last_streak_date" not in PlayerStateStore.encode(fresh_state)

    def test_decode_falls_back_per_field(self, played_state, t0):
        # Arrange
        raw = PlayerStateStore.encode(played_state)
        raw["seeds"] = "lots"
        raw["purchased"] = "{not json"

        # Act
        state = PlayerStateStore.decode(raw, now=t0 + timedelta(days=1))

        # Assert
        assert state.seeds_total == 0.0
        assert state.purchased_upgrades == frozenset()
        assert state.streak_count == 4
        assert state.harvest_count == 9

    def test_decode_drops_collected_flag_without_date(self, t0):
        state = PlayerStateStore.decode({"collected_today": "true", "seeds": "5"}, now=t0)

        assert state.collected_today is False
        assert state.seeds_total == 5.0

    def test_decode_naive_timestamp_read_as_utc(self, t0):
        state = PlayerStateStore.decode({"last_harvest": "2025-01-01T12:00:00"}, now=t0)

        assert state.last_collection_at == t0

    def test_decode_invariant_violation_gives_defaults(self, t0):
        state = PlayerStateStore.decode({"seeds": "-10", "streak": "3"}, now=t0)

        assert state == PlayerState.initial(t0)


@pytest.mark.unit
class TestLoad:
    async def test_empty_store_gives_first_run_defaults(self, store, t0):
        result = await store.load(t0)

        assert result.fresh
        assert not result.degraded
        assert result.state == PlayerState.initial(t0)
        assert result.character_id is None
        assert result.username is None

    async def test_round_trip(self, store, mock_redis_service, played_state, t0):
        # Arrange
        await store.save(played_state)
        await store.save_character("foxy")
        await store.save_username("farmer_joe")

        # Act
        result = await store.load(t0 + timedelta(hours=5))

        # Assert
        assert result.state == played_state
        assert result.character_id == "foxy"
        assert result.username == "farmer_joe"
        assert not result.fresh
        assert mock_redis_service.store["test:seeds"] == "1234.5678"

    async def test_keys_are_prefixed(self, store, mock_redis_service, fresh_state):
        await store.save(fresh_state)

        assert all(key.startswith(PREFIX) for key in mock_redis_service.store)

    async def test_save_clears_stale_streak_date(self, store, mock_redis_service, played_state, fresh_state):
        await store.save(played_state)

        await store.save(fresh_state)

        assert "test:last_streak_date" not in mock_redis_service.store

    async def test_unreachable_store_degrades(self, store, mock_redis_service, t0):
        mock_redis_service.mget.side_effect = StorageUnavailable("read", RedisConnectionError("down"))

        result = await store.load(t0)

        assert result.degraded
        assert result.state == PlayerState.initial(t0)

    async def test_character_only_store_is_fresh(self, store, mock_redis_service, t0):
        mock_redis_service.store["test:character"] = "monke"

        result = await store.load(t0)

        assert result.fresh
        assert result.character_id == "monke"


@pytest.mark.unit
class TestSave:
    async def test_write_failure_propagates(self, store, mock_redis_service, fresh_state):
        mock_redis_service.mset.side_effect = StorageUnavailable("write", RedisConnectionError("down"))

        with pytest.raises(StorageUnavailable) as exc_info:
            await store.save(fresh_state)

        assert exc_info.value.operation == "write"
