"""
Pytest Configuration and Fixtures for Seed Farm Tests
=====================================================

Purpose
-------
Centralized fixtures for the test suite: domain model factories, fixed
clocks, the balance-data config, mocked infrastructure for unit tests and
testcontainers for integration tests.

Architecture Notes
------------------
- Unit tests use mocks and in-memory SQLite (fast, isolated)
- Integration tests use testcontainers (real PostgreSQL / Redis) and are
  deselected by default; run them with ``pytest -m integration``
- Fixtures follow scope hierarchy: session > function
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import AsyncGenerator, Generator, List

# Must be set before seedfarm is imported: Config and logging load on import
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest
import pytest_asyncio

from seedfarm.core.config.config import Config
from seedfarm.core.config.config_manager import ConfigManager
from seedfarm.core.infra.database_service import DatabaseService
from seedfarm.core.infra.redis_service import RedisService
from seedfarm.core.logging.logger import get_logger
from seedfarm.domain.models import Ability, Character, PlayerState, Upgrade, UpgradeKind
from seedfarm.modules.character.roster import CharacterRoster
from seedfarm.modules.progression.engine import ProgressionEngine
from seedfarm.modules.upgrade.catalog import UpgradeCatalog

logger = get_logger(__name__)

# 2025-01-01 12:00 UTC; midday keeps +/- a few hours on the same calendar day
T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# CONFIGURATION
# ============================================================================


@pytest.fixture(autouse=True)
def balance_config() -> Generator[None, None, None]:
    """Load config/*.yaml fresh for every test and drop runtime overrides after."""
    ConfigManager.initialize(Config.CONFIG_DIR)
    yield
    ConfigManager.clear_overrides()


# ============================================================================
# DOMAIN FACTORIES
# ============================================================================


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def degen_ape() -> Character:
    return Character("degen_ape", "Degen Ape", 10, Ability.ALTERNATING_DOUBLE_HARVEST)


@pytest.fixture
def foxy() -> Character:
    return Character("foxy", "Foxy", 8, Ability.STREAK_AMPLIFIER)


@pytest.fixture
def okay_bear() -> Character:
    return Character("okay_bear", "Okay Bear", 12, Ability.INFINITE_CAPACITY_AND_DISCOUNT)


@pytest.fixture
def monke() -> Character:
    return Character("monke", "Monke", 10, Ability.NONE)


@pytest.fixture
def roster(degen_ape, foxy, okay_bear, monke) -> CharacterRoster:
    return CharacterRoster([degen_ape, foxy, okay_bear, monke])


@pytest.fixture
def upgrades() -> List[Upgrade]:
    return [
        Upgrade("tools1", 500, kind=UpgradeKind.TOOLS, production_bonus=0.2),
        Upgrade("tools2", 2000, prerequisite_id="tools1", production_bonus=0.5),
        Upgrade("tools3", 8000, prerequisite_id="tools2", production_bonus=1.0),
        Upgrade("storage1", 300, kind=UpgradeKind.STORAGE, storage_multiplier=2),
        Upgrade(
            "storage2",
            1500,
            prerequisite_id="storage1",
            kind=UpgradeKind.STORAGE,
            storage_multiplier=5,
        ),
        Upgrade("slot", 5000, kind=UpgradeKind.SLOT),
    ]


@pytest.fixture
def catalog(upgrades) -> UpgradeCatalog:
    return UpgradeCatalog(upgrades)


@pytest.fixture
def engine(catalog) -> ProgressionEngine:
    return ProgressionEngine(catalog)


@pytest.fixture
def fresh_state(t0) -> PlayerState:
    return PlayerState.initial(t0)


# ============================================================================
# MOCK FIXTURES (Unit Tests)
# ============================================================================


@pytest.fixture
def mock_redis_service(mocker):
    """
    Stand-in for the RedisService class with async batch operations.

    ``store`` backs mget/mset/set/delete so round trips behave like Redis.
    """
    store = {}
    service = mocker.MagicMock()
    service.store = store

    async def mget(keys):
        return {k: store[k] for k in keys if k in store}

    async def mset(mapping):
        store.update(mapping)

    async def set_(key, value):
        store[key] = value

    async def delete(*keys):
        return sum(1 for k in keys if store.pop(k, None) is not None)

    service.mget = mocker.AsyncMock(side_effect=mget)
    service.mset = mocker.AsyncMock(side_effect=mset)
    service.set = mocker.AsyncMock(side_effect=set_)
    service.delete = mocker.AsyncMock(side_effect=delete)
    return service


@pytest.fixture
def mock_config_manager(mocker):
    mock_config = mocker.MagicMock()
    mock_config.get = mocker.MagicMock(side_effect=lambda key, default=None: default)
    return mock_config


@pytest_asyncio.fixture
async def sqlite_database() -> AsyncGenerator[type, None]:
    """DatabaseService on a private in-memory SQLite database."""
    await DatabaseService.initialize("sqlite+aiosqlite:///:memory:", max_retries=1)
    yield DatabaseService
    await DatabaseService.shutdown()


# ============================================================================
# TESTCONTAINERS FIXTURES (Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def postgres_container():
    """
    PostgreSQL testcontainer.

    Scope: session (container persists across all tests)
    """
    from testcontainers.postgres import PostgresContainer

    logger.info("Starting PostgreSQL testcontainer...")
    container = PostgresContainer(image="postgres:17-alpine", driver="asyncpg")
    container.start()
    yield container
    logger.info("Stopping PostgreSQL testcontainer...")
    container.stop()


@pytest.fixture(scope="session")
def redis_container():
    """
    Redis testcontainer.

    Scope: session (container persists across all tests)
    """
    from testcontainers.redis import RedisContainer

    logger.info("Starting Redis testcontainer...")
    container = RedisContainer(image="redis:7-alpine")
    container.start()
    yield container
    logger.info("Stopping Redis testcontainer...")
    container.stop()


@pytest_asyncio.fixture
async def postgres_database(postgres_container) -> AsyncGenerator[type, None]:
    """DatabaseService against the container, with a clean schema per test."""
    await DatabaseService.initialize(postgres_container.get_connection_url(), max_retries=1)
    await DatabaseService.drop_tables()
    await DatabaseService.create_tables()
    yield DatabaseService
    await DatabaseService.shutdown()


@pytest_asyncio.fixture
async def redis_service(redis_container) -> AsyncGenerator[type, None]:
    """RedisService against the container, flushed per test."""
    import redis.asyncio as redis

    host = redis_container.get_container_host_ip()
    port = redis_container.get_exposed_port(6379)
    client = redis.Redis(host=host, port=int(port), decode_responses=True)
    await client.flushdb()

    await RedisService.initialize(client)
    RedisService.reset_metrics()
    yield RedisService
    await RedisService.shutdown()
