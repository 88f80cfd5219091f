"""
Redis access for the player state store, with a circuit breaker and metrics.

Features:
- Circuit breaker so a dead Redis fails fast instead of stalling every call
- Automatic reconnection attempt once the breaker goes half-open
- Batch operations (mget, mset via pipeline)
- Operation metrics (counts, timing, failures)

Failures raise StorageUnavailable. Unlike a pure cache, the state store has
to tell "no saved state" (empty result) apart from "store unreachable" so the
caller can flag degraded storage.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from seedfarm.core.config.config import Config
from seedfarm.core.exceptions import StorageUnavailable
from seedfarm.core.logging.logger import get_logger

logger = get_logger(__name__)

_STORE_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class CircuitBreaker:
    """
    Circuit breaker for Redis connection resilience.

    States:
        - closed: Normal operation, all calls allowed
        - open: Failures exceeded threshold, calls blocked
        - half-open: Testing if service recovered
    """

    def __init__(self, failure_threshold: int, recovery_timeout: int):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.last_failure_time: Optional[datetime] = None
        self.state = "closed"

    def call_succeeded(self) -> None:
        self.failure_count = 0
        self.state = "closed"

    def call_failed(self) -> bool:
        """Record a failed call; returns True when this failure opened the circuit."""
        self.failure_count += 1
        self.last_failure_time = datetime.now(timezone.utc)

        if self.failure_count >= self.failure_threshold and self.state != "open":
            self.state = "open"
            logger.warning(
                f"Circuit breaker OPENED: {self.failure_count} failures",
                extra={"circuit_state": "open", "failure_count": self.failure_count},
            )
            return True
        return False

    def can_attempt(self) -> bool:
        if self.state == "closed":
            return True

        if self.state == "open":
            if self.last_failure_time:
                elapsed = (datetime.now(timezone.utc) - self.last_failure_time).total_seconds()
                if elapsed >= self.recovery_timeout:
                    self.state = "half-open"
                    logger.info(
                        "Circuit breaker HALF-OPEN: attempting reconnect",
                        extra={"circuit_state": "half-open"},
                    )
                    return True
            return False

        return True


def _fresh_metrics() -> Dict[str, Any]:
    return {
        "operations": {"get": 0, "set": 0, "mget": 0, "mset": 0, "delete": 0},
        "successes": 0,
        "failures": 0,
        "circuit_breaker_opens": 0,
        "reconnection_attempts": 0,
        "reconnection_successes": 0,
        "total_operation_time_ms": 0.0,
    }


class RedisService:
    """
    Process-wide Redis client for string values.

    Values are stored and returned as ``str`` (``decode_responses=True``);
    encoding richer values is the caller's concern.

    Example:
        >>> await RedisService.initialize()
        >>> await RedisService.mset({"seedfarm:seeds": "120.5"})
        >>> await RedisService.mget(["seedfarm:seeds"])
        {'seedfarm:seeds': '120.5'}
    """

    _client: Optional[redis.Redis] = None
    _circuit_breaker: Optional[CircuitBreaker] = None
    _metrics: Dict[str, Any] = _fresh_metrics()

    @classmethod
    async def initialize(cls, client: Optional[redis.Redis] = None) -> None:
        """
        Create the client (or adopt ``client``) and verify connectivity.

        Raises:
            StorageUnavailable: If Redis cannot be reached
        """
        if cls._client is not None:
            logger.warning("RedisService already initialized")
            return

        cls._client = client or redis.from_url(
            Config.REDIS_URL,
            password=Config.REDIS_PASSWORD,
            max_connections=Config.REDIS_MAX_CONNECTIONS,
            decode_responses=True,
            socket_connect_timeout=Config.REDIS_SOCKET_TIMEOUT,
            socket_timeout=Config.REDIS_SOCKET_TIMEOUT,
            socket_keepalive=True,
        )
        cls._circuit_breaker = CircuitBreaker(
            failure_threshold=Config.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
            recovery_timeout=Config.CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
        )

        try:
            await cls._client.ping()
        except _STORE_ERRORS as e:
            logger.error(f"Failed to initialize RedisService: {e}", exc_info=True)
            cls._client = None
            cls._circuit_breaker = None
            raise StorageUnavailable("connect", e) from e

        logger.info(
            "RedisService initialized successfully",
            extra={
                "max_connections": Config.REDIS_MAX_CONNECTIONS,
                "socket_timeout": Config.REDIS_SOCKET_TIMEOUT,
            },
        )

    @classmethod
    async def shutdown(cls) -> None:
        """Close the client; safe to call when never initialized."""
        if cls._client is None:
            return

        try:
            await cls._client.aclose()
            logger.info("RedisService shutdown successfully")
        except _STORE_ERRORS as e:
            logger.error(f"Error during RedisService shutdown: {e}", exc_info=True)
        finally:
            cls._client = None
            cls._circuit_breaker = None

    @classmethod
    async def health_check(cls) -> bool:
        if cls._client is None:
            return False
        try:
            await cls._client.ping()
            return True
        except _STORE_ERRORS:
            return False

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @classmethod
    async def _ensure_available(cls, operation: str) -> redis.Redis:
        if cls._client is None or cls._circuit_breaker is None:
            cls._metrics["failures"] += 1
            raise StorageUnavailable(operation, ConnectionError("RedisService not initialized"))

        if not cls._circuit_breaker.can_attempt():
            cls._metrics["failures"] += 1
            logger.debug(f"Redis unavailable for {operation}: circuit open")
            raise StorageUnavailable(operation, ConnectionError("circuit breaker open"))

        if cls._circuit_breaker.state == "half-open":
            cls._metrics["reconnection_attempts"] += 1
            try:
                await cls._client.ping()
            except _STORE_ERRORS as e:
                cls._record_failure()
                raise StorageUnavailable(operation, e) from e
            cls._metrics["reconnection_successes"] += 1
            cls._circuit_breaker.call_succeeded()
            logger.info("Redis reconnection successful", extra={"circuit_state": "closed"})

        return cls._client

    @classmethod
    def _record_failure(cls) -> None:
        cls._metrics["failures"] += 1
        if cls._circuit_breaker is not None and cls._circuit_breaker.call_failed():
            cls._metrics["circuit_breaker_opens"] += 1

    @classmethod
    def _record_success(cls, start_time: float) -> None:
        if cls._circuit_breaker is not None:
            cls._circuit_breaker.call_succeeded()
        cls._metrics["successes"] += 1
        cls._metrics["total_operation_time_ms"] += (time.perf_counter() - start_time) * 1000

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    @classmethod
    async def get(cls, key: str) -> Optional[str]:
        """
        Raises:
            StorageUnavailable: If Redis is unreachable
        """
        start_time = time.perf_counter()
        cls._metrics["operations"]["get"] += 1
        client = await cls._ensure_available("read")

        try:
            value = await client.get(key)
        except _STORE_ERRORS as e:
            cls._record_failure()
            logger.error(
                f"Redis GET error: key={key} error={e}",
                extra={"operation": "get", "key": key},
            )
            raise StorageUnavailable("read", e) from e

        cls._record_success(start_time)
        return value

    @classmethod
    async def set(cls, key: str, value: str) -> None:
        start_time = time.perf_counter()
        cls._metrics["operations"]["set"] += 1
        client = await cls._ensure_available("write")

        try:
            await client.set(key, value)
        except _STORE_ERRORS as e:
            cls._record_failure()
            logger.error(
                f"Redis SET error: key={key} error={e}",
                extra={"operation": "set", "key": key},
            )
            raise StorageUnavailable("write", e) from e

        cls._record_success(start_time)

    @classmethod
    async def mget(cls, keys: List[str]) -> Dict[str, str]:
        """
        Get multiple keys in one round trip.

        Returns:
            Mapping of key to value; missing keys are excluded

        Raises:
            StorageUnavailable: If Redis is unreachable
        """
        start_time = time.perf_counter()
        cls._metrics["operations"]["mget"] += 1
        client = await cls._ensure_available("read")

        try:
            values = await client.mget(keys)
        except _STORE_ERRORS as e:
            cls._record_failure()
            logger.error(
                f"Redis MGET error: count={len(keys)} error={e}",
                extra={"operation": "mget", "key_count": len(keys)},
            )
            raise StorageUnavailable("read", e) from e

        cls._record_success(start_time)
        return {key: value for key, value in zip(keys, values) if value is not None}

    @classmethod
    async def mset(cls, mapping: Mapping[str, str]) -> None:
        """
        Set multiple keys atomically (MULTI/EXEC pipeline).

        Raises:
            StorageUnavailable: If Redis is unreachable
        """
        start_time = time.perf_counter()
        cls._metrics["operations"]["mset"] += 1
        client = await cls._ensure_available("write")

        try:
            async with client.pipeline(transaction=True) as pipe:
                pipe.mset(dict(mapping))
                await pipe.execute()
        except _STORE_ERRORS as e:
            cls._record_failure()
            logger.error(
                f"Redis MSET error: count={len(mapping)} error={e}",
                extra={"operation": "mset", "key_count": len(mapping)},
            )
            raise StorageUnavailable("write", e) from e

        cls._record_success(start_time)

    @classmethod
    async def delete(cls, *keys: str) -> int:
        start_time = time.perf_counter()
        cls._metrics["operations"]["delete"] += 1
        client = await cls._ensure_available("write")

        try:
            removed = await client.delete(*keys)
        except _STORE_ERRORS as e:
            cls._record_failure()
            raise StorageUnavailable("write", e) from e

        cls._record_success(start_time)
        return int(removed)

    # =========================================================================
    # METRICS
    # =========================================================================

    @classmethod
    def get_metrics(cls) -> Dict[str, Any]:
        total_ops = cls._metrics["successes"] + cls._metrics["failures"]
        success_rate = cls._metrics["successes"] / total_ops * 100 if total_ops > 0 else 0.0
        avg_op_time = cls._metrics["total_operation_time_ms"] / total_ops if total_ops > 0 else 0.0

        return {
            "operations": cls._metrics["operations"].copy(),
            "total_operations": total_ops,
            "successes": cls._metrics["successes"],
            "failures": cls._metrics["failures"],
            "success_rate": round(success_rate, 2),
            "avg_operation_time_ms": round(avg_op_time, 2),
            "circuit_breaker_state": cls._circuit_breaker.state if cls._circuit_breaker else "unknown",
            "circuit_breaker_opens": cls._metrics["circuit_breaker_opens"],
            "reconnection_attempts": cls._metrics["reconnection_attempts"],
            "reconnection_successes": cls._metrics["reconnection_successes"],
        }

    @classmethod
    def reset_metrics(cls) -> None:
        cls._metrics = _fresh_metrics()
