"""
Player State Store

Purpose
-------
Read and write whole PlayerState snapshots, plus the chosen character and
username, as flat string values in Redis.

Key Layout
----------
All keys live under ``Config.STORE_KEY_PREFIX`` (default ``seedfarm:``):

- ``seeds``             float as text
- ``last_harvest``      ISO-8601 timestamp
- ``streak``            int
- ``last_streak_date``  ISO date, absent before the first collection
- ``collected_today``   "true" / "false"
- ``harvest_count``     int
- ``purchased``         JSON list of upgrade ids
- ``character``         character id
- ``username``          registered leaderboard name

Failure Policy
--------------
- Empty store: first-run defaults (zero seeds, no streak, no purchases)
- Unparseable value: that field falls back to its default, logged at warning
- Store unreachable on read: defaults, ``LoadResult.degraded`` set
- Store unreachable on write: StorageUnavailable propagates; the caller
  logs it and keeps its in-memory state
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, Optional, TypeVar

from seedfarm.core.config.config import Config
from seedfarm.core.exceptions import StorageUnavailable
from seedfarm.core.infra.redis_service import RedisService
from seedfarm.core.logging.logger import get_logger
from seedfarm.domain.models import DomainValidationError, PlayerState
from seedfarm.modules.shared.constants import (
    KEY_CHARACTER,
    KEY_COLLECTED_TODAY,
    KEY_HARVEST_COUNT,
    KEY_LAST_HARVEST,
    KEY_LAST_STREAK_DATE,
    KEY_PURCHASED,
    KEY_SEEDS,
    KEY_STREAK,
    KEY_USERNAME,
)

logger = get_logger(__name__)

T = TypeVar("T")

STATE_KEYS = (
    KEY_SEEDS,
    KEY_LAST_HARVEST,
    KEY_STREAK,
    KEY_LAST_STREAK_DATE,
    KEY_COLLECTED_TODAY,
    KEY_HARVEST_COUNT,
    KEY_PURCHASED,
)


@dataclass(frozen=True)
class LoadResult:
    """
    What a load produced.

    Attributes:
        state: Stored state, or first-run defaults
        character_id: Chosen character, None before onboarding
        username: Registered username, None if never registered
        degraded: True when the store could not be read
        fresh: True when nothing was stored yet
    """

    state: PlayerState
    character_id: Optional[str] = None
    username: Optional[str] = None
    degraded: bool = False
    fresh: bool = False


def _parse_datetime(raw: str) -> datetime:
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("true", "1"):
        return True
    if lowered in ("false", "0"):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _parse_purchased(raw: str) -> frozenset:
    ids = json.loads(raw)
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        raise ValueError(f"expected a JSON list of ids, got {raw!r}")
    return frozenset(ids)


class PlayerStateStore:
    """
    Snapshot adapter over RedisService.

    Args:
        prefix: Key prefix; defaults to Config.STORE_KEY_PREFIX
        redis_service: Redis access class (injectable for tests)
    """

    def __init__(self, prefix: Optional[str] = None, redis_service: type = RedisService) -> None:
        self.prefix = prefix if prefix is not None else Config.STORE_KEY_PREFIX
        self._redis = redis_service

    def _key(self, name: str) -> str:
        return f"{self.prefix}{name}"

    # =========================================================================
    # ENCODING
    # =========================================================================

    @staticmethod
    def encode(state: PlayerState) -> Dict[str, str]:
        """Flat string mapping (unprefixed keys) for one snapshot."""
        encoded = {
            KEY_SEEDS: repr(float(state.seeds_total)),
            KEY_LAST_HARVEST: state.last_collection_at.isoformat(),
            KEY_STREAK: str(state.streak_count),
            KEY_COLLECTED_TODAY: "true" if state.collected_today else "false",
            KEY_HARVEST_COUNT: str(state.harvest_count),
            KEY_PURCHASED: json.dumps(sorted(state.purchased_upgrades)),
        }
        if state.last_streak_date is not None:
            encoded[KEY_LAST_STREAK_DATE] = state.last_streak_date.isoformat()
        return encoded

    @staticmethod
    def decode(raw: Dict[str, str], now: datetime) -> PlayerState:
        """
        Rebuild a snapshot from unprefixed values; missing or broken fields
        fall back to defaults individually.
        """

        def field(key: str, parse: Callable[[str], T], default: T) -> T:
            value = raw.get(key)
            if value is None:
                return default
            try:
                return parse(value)
            except (ValueError, TypeError) as e:
                logger.warning(
                    "Discarding unparseable stored value",
                    extra={"key": key, "raw_value": value, "error": str(e)},
                )
                return default

        last_streak_date: Optional[date] = field(KEY_LAST_STREAK_DATE, date.fromisoformat, None)
        collected_today = field(KEY_COLLECTED_TODAY, _parse_bool, False)

        try:
            return PlayerState(
                seeds_total=field(KEY_SEEDS, float, 0.0),
                last_collection_at=field(KEY_LAST_HARVEST, _parse_datetime, now),
                streak_count=field(KEY_STREAK, int, 0),
                last_streak_date=last_streak_date,
                collected_today=collected_today and last_streak_date is not None,
                harvest_count=field(KEY_HARVEST_COUNT, int, 0),
                purchased_upgrades=field(KEY_PURCHASED, _parse_purchased, frozenset()),
            )
        except DomainValidationError as e:
            logger.warning(
                "Stored state violates invariants, using defaults",
                extra={"field": e.field, "error": str(e)},
            )
            return PlayerState.initial(now)

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def load(self, now: datetime) -> LoadResult:
        """
        Load the stored snapshot; never raises for store failures.

        Args:
            now: Used as ``last_collection_at`` when nothing was stored
        """
        keys = [self._key(k) for k in (*STATE_KEYS, KEY_CHARACTER, KEY_USERNAME)]
        try:
            stored = await self._redis.mget(keys)
        except StorageUnavailable as e:
            logger.warning(
                "State store unreadable, using defaults",
                extra={"error_code": e.error_code, "error": str(e.original_error)},
            )
            return LoadResult(state=PlayerState.initial(now), degraded=True, fresh=True)

        raw = {key[len(self.prefix):]: value for key, value in stored.items()}
        fresh = not any(k in raw for k in STATE_KEYS)
        return LoadResult(
            state=PlayerState.initial(now) if fresh else self.decode(raw, now),
            character_id=raw.get(KEY_CHARACTER) or None,
            username=raw.get(KEY_USERNAME) or None,
            fresh=fresh,
        )

    async def save(self, state: PlayerState) -> None:
        """
        Write a whole snapshot in one MSET.

        Raises:
            StorageUnavailable: If the store cannot be written
        """
        encoded = self.encode(state)
        mapping = {self._key(k): v for k, v in encoded.items()}
        await self._redis.mset(mapping)
        if KEY_LAST_STREAK_DATE not in encoded:
            await self._redis.delete(self._key(KEY_LAST_STREAK_DATE))

    async def save_character(self, character_id: str) -> None:
        await self._redis.set(self._key(KEY_CHARACTER), character_id)

    async def save_username(self, username: str) -> None:
        await self._redis.set(self._key(KEY_USERNAME), username)
