"""
Farm Service

Purpose
-------
Application layer around the ProgressionEngine for one local player: load
and reconcile state, run collect / purchase under a single-writer lock, and
persist + sync in the background.

Responsibilities
----------------
- Load the stored snapshot and reconcile the streak against today
- Serialize collect / purchase (one asyncio.Lock per service)
- Snapshot ``now`` once per action
- Fire-and-forget persistence and leaderboard sync; their failures are
  logged and never unwind in-memory state
- Report degraded storage so the UI can show a non-fatal notice
- Character choice and username registration

Non-Responsibilities
--------------------
- Game rules (ProgressionEngine and the modules below it)
- Rendering and polling cadence (callers poll ``snapshot``)

Usage
-----
    service = FarmService(engine, roster, PlayerStateStore(), LeaderboardService())
    await service.load()
    outcome = await service.collect()
    await service.drain()  # on shutdown
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Coroutine,
    Dict,
    List,
    Optional,
    Set,
    Tuple,
    Type,
)

from seedfarm.core.config.config_manager import ConfigManager
from seedfarm.core.exceptions import StorageUnavailable, SyncFailure
from seedfarm.core.logging.logger import LogContext, get_logger
from seedfarm.core.validation.input_validator import InputValidator
from seedfarm.domain.models import Character, PlayerState, Upgrade
from seedfarm.modules.character.roster import CharacterRoster
from seedfarm.modules.multiplier.resolver import MultiplierBreakdown
from seedfarm.modules.player.store import LoadResult, PlayerStateStore
from seedfarm.modules.progression.engine import (
    CollectOutcome,
    ProgressionEngine,
    PurchaseOutcome,
)
from seedfarm.modules.shared.base_service import BaseService
from seedfarm.modules.shared.exceptions import RejectionReason, ValidationRejected
from seedfarm.modules.streak.tracker import StreakStatus, calendar_day
from seedfarm.modules.upgrade.validator import UpgradeStatus

if TYPE_CHECKING:
    from logging import Logger

    from seedfarm.modules.leaderboard.service import LeaderboardService

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FarmSnapshot:
    """
    Read-only view for display polling.

    ``pending`` and ``multiplier`` are what a collection at ``as_of`` would
    use; ``storage_degraded`` asks the UI for a non-fatal notice.
    """

    as_of: datetime
    state: PlayerState
    character: Optional[Character]
    username: Optional[str]
    pending: float
    multiplier: Optional[MultiplierBreakdown]
    capacity: Optional[float]
    streak_status: StreakStatus
    storage_degraded: bool
    upgrades: List[Tuple[Upgrade, UpgradeStatus, int]] = field(default_factory=list)

    @property
    def projected_harvest(self) -> float:
        return self.pending * self.multiplier.total if self.multiplier else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "as_of": self.as_of.isoformat(),
            "seeds_total": self.state.seeds_total,
            "pending": self.pending,
            "projected_harvest": self.projected_harvest,
            "multiplier": self.multiplier.to_dict() if self.multiplier else None,
            "capacity": self.capacity,
            "streak_count": self.state.streak_count,
            "streak_status": self.streak_status.value,
            "harvest_count": self.state.harvest_count,
            "character_id": self.character.id if self.character else None,
            "username": self.username,
            "storage_degraded": self.storage_degraded,
            "upgrades": [
                {"id": upgrade.id, "status": status.value, "cost": cost}
                for upgrade, status, cost in self.upgrades
            ],
        }


class FarmService(BaseService):
    """
    Single-player session over the progression engine.

    Args:
        engine: Progression engine
        roster: Playable characters
        store: Player state store
        leaderboard: Leaderboard service; None disables sync
        clock: Returns the current timezone-aware time
    """

    def __init__(
        self,
        engine: ProgressionEngine,
        roster: CharacterRoster,
        store: PlayerStateStore,
        leaderboard: Optional[LeaderboardService] = None,
        config_manager: Type[ConfigManager] = ConfigManager,
        logger: Optional[Logger] = None,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(config_manager, logger or get_logger(__name__))
        self.engine = engine
        self.roster = roster
        self.store = store
        self.leaderboard = leaderboard
        self._clock = clock

        self._state: PlayerState = PlayerState.initial(clock())
        self._character: Optional[Character] = None
        self._username: Optional[str] = None
        self._storage_degraded = False
        self._loaded = False
        self._writes_held = False

        self._action_lock = asyncio.Lock()
        self._persist_lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task[None]] = set()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def character(self) -> Optional[Character]:
        return self._character

    @property
    def username(self) -> Optional[str]:
        return self._username

    @property
    def storage_degraded(self) -> bool:
        return self._storage_degraded

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def load(self) -> FarmSnapshot:
        """
        Load stored state and reconcile the streak for today.

        An unreadable store sets ``storage_degraded`` and keeps the state of
        the last successful load, or first-run defaults when there was none.
        Defaults are never written back until a later load succeeds.
        """
        now = self._clock()
        result = await self.store.load(now)
        self._storage_degraded = result.degraded
        if result.degraded:
            if not self._loaded:
                self._state = result.state
                self._writes_held = True
        else:
            self._loaded = True
            self._writes_held = False
            self._adopt(result)

        reconciled = self.engine.reconcile(self._state, now)
        changed = reconciled.state != self._state
        self._state = reconciled.state
        self.emit_events(reconciled.events)
        if changed and not result.degraded:
            self._schedule(self._persist(), "persist")

        self.log_operation(
            "load",
            fresh=result.fresh,
            degraded=result.degraded,
            writes_held=self._writes_held,
            streak_count=self._state.streak_count,
        )
        return self.snapshot(now)

    async def drain(self) -> None:
        """Wait for outstanding background persistence and sync."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def snapshot(self, now: Optional[datetime] = None) -> FarmSnapshot:
        """Read-only; never advances ``last_collection_at``."""
        now = now or self._clock()
        character = self._character
        if character is None:
            pending, multiplier, capacity, upgrades = 0.0, None, None, []
        else:
            pending = self.engine.compute_pending(self._state, character, now)
            multiplier = self.engine.current_bonus(self._state, character, now)
            capacity = self.engine.capacity(self._state, character)
            upgrades = self.engine.upgrade_statuses(self._state, character)

        return FarmSnapshot(
            as_of=now,
            state=self._state,
            character=character,
            username=self._username,
            pending=pending,
            multiplier=multiplier,
            capacity=capacity,
            streak_status=self.engine.tracker.status(
                self._state, calendar_day(now, self.engine.zone)
            ),
            storage_degraded=self._storage_degraded,
            upgrades=upgrades,
        )

    async def get_leaderboard(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Top entries; an unreachable leaderboard yields an empty list."""
        if self.leaderboard is None:
            return []
        try:
            return await self.leaderboard.get_leaderboard(limit)
        except SyncFailure as e:
            self.log.warning(
                "Leaderboard unavailable",
                extra={"error_code": e.error_code, "error": str(e.original_error)},
            )
            return []

    # =========================================================================
    # ACTIONS
    # =========================================================================

    async def choose_character(self, character_id: str) -> Character:
        """
        Select the farming character.

        Raises:
            ValidationRejected: UNKNOWN_CHARACTER
        """
        character_id = InputValidator.validate_choice(
            character_id,
            "character_id",
            self.roster.ids(),
            RejectionReason.UNKNOWN_CHARACTER,
        )
        async with self._action_lock:
            self._character = self.roster.get(character_id)
            self._schedule(self._persist_value(self.store.save_character, character_id), "persist_character")

        self.log_operation("choose_character", character_id=character_id)
        return self._character

    async def collect(self) -> CollectOutcome:
        """
        Harvest pending seeds.

        Raises:
            ValidationRejected: UNKNOWN_CHARACTER before a character is chosen
        """
        async with self._action_lock:
            character = self._require_character()
            now = self._clock()
            async with LogContext(
                username=self._username, character_id=character.id, action="collect"
            ):
                outcome = self.engine.collect(self._state, character, now)
                self._state = outcome.state
                self.emit_events(outcome.events)
                self._after_change()
                self.log_operation(
                    "collect",
                    harvested=outcome.harvested,
                    multiplier=outcome.multiplier.total,
                    streak_count=outcome.state.streak_count,
                )
        return outcome

    async def purchase(self, upgrade_id: str) -> PurchaseOutcome:
        """
        Buy an upgrade; rejections come back in the outcome, not as errors.

        Raises:
            ValidationRejected: UNKNOWN_CHARACTER before a character is chosen
        """
        async with self._action_lock:
            character = self._require_character()
            async with LogContext(
                username=self._username, character_id=character.id, action="purchase"
            ):
                outcome = self.engine.purchase_upgrade(self._state, character, upgrade_id)
                if outcome.accepted:
                    self._state = outcome.state
                    self.emit_events(outcome.events)
                    self._after_change()
        return outcome

    async def register(self, raw_username: Any) -> str:
        """
        Claim a leaderboard username and remember it locally.

        Raises:
            ValidationRejected: INVALID_USERNAME, USERNAME_TAKEN or UNKNOWN_CHARACTER
            SyncFailure: If the leaderboard is unreachable
        """
        if self.leaderboard is None:
            raise SyncFailure("register", RuntimeError("leaderboard disabled"))

        async with self._action_lock:
            character = self._require_character()
            username = await self.leaderboard.register_username(
                raw_username, character.id, self._state
            )
            self._username = username
            self._schedule(self._persist_value(self.store.save_username, username), "persist_username")

        self.log_operation("register", username=username)
        return username

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _adopt(self, result: LoadResult) -> None:
        self._state = result.state
        self._username = result.username
        self._character = None
        if result.character_id is None:
            return
        if result.character_id in self.roster:
            self._character = self.roster.get(result.character_id)
        else:
            self.log.warning(
                "Stored character is not in the roster",
                extra={"stored_character_id": result.character_id},
            )

    def _require_character(self) -> Character:
        if self._character is None:
            raise ValidationRejected(
                RejectionReason.UNKNOWN_CHARACTER,
                "Choose a character first",
            )
        return self._character

    def _after_change(self) -> None:
        self._schedule(self._persist(), "persist")
        if self.leaderboard is not None and self._username is not None:
            self._schedule(self._sync(), "sync")

    def _schedule(self, coro: Coroutine[Any, Any, None], name: str) -> None:
        task = asyncio.create_task(coro, name=f"seedfarm-{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _persist(self) -> None:
        # Writes the latest state, so overlapping writes converge
        async with self._persist_lock:
            if self._writes_held:
                self.log.warning("State not persisted until the store can be read")
                return
            try:
                await self.store.save(self._state)
            except StorageUnavailable as e:
                self._storage_degraded = True
                self.log.warning(
                    "State not persisted, keeping in-memory state",
                    extra={"error_code": e.error_code, "error": str(e.original_error)},
                )
                return
            self._storage_degraded = False

    async def _persist_value(
        self, save: Callable[[str], Coroutine[Any, Any, None]], value: str
    ) -> None:
        try:
            await save(value)
        except StorageUnavailable as e:
            self._storage_degraded = True
            self.log.warning(
                "Value not persisted",
                extra={"error_code": e.error_code, "error": str(e.original_error)},
            )

    async def _sync(self) -> None:
        if self.leaderboard is None or self._username is None or self._character is None:
            return
        try:
            await self.leaderboard.sync_progress(self._username, self._character.id, self._state)
        except SyncFailure as e:
            self.log.warning(
                "Leaderboard sync failed, not retrying",
                extra={"error_code": e.error_code, "error": str(e.original_error)},
            )
