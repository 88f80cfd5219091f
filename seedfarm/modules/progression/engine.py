"""
Progression Engine

Purpose
-------
Orchestrate accrual, streak, multiplier and upgrade rules over a single
PlayerState. Every operation takes the state explicitly and returns a new
state plus the DomainEvents describing what changed.

Responsibilities
----------------
- Read-only pending computation for display polling
- The "current bonus" a collection right now would apply
- Collection: pending seeds times the resolved multiplier, streak and
  harvest counters advanced, all from one ``now`` snapshot
- Upgrade purchases, turning rejections into explicit outcomes
- Streak reconciliation on load

Non-Responsibilities
--------------------
- Persistence and leaderboard sync (FarmService, fire-and-forget)
- Serializing concurrent actions (the caller holds the single-writer lock)
- Timers: callers re-invoke ``compute_pending`` on their own schedule

Usage
-----
    engine = ProgressionEngine.from_config()
    outcome = engine.collect(state, character, datetime.now(timezone.utc))
    state = outcome.state
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import List, Optional, Tuple

from seedfarm.core.config.config import Config
from seedfarm.core.config.config_manager import ConfigManager
from seedfarm.core.logging.logger import get_logger
from seedfarm.domain.models import Character, DomainEvent, PlayerState, Upgrade
from seedfarm.modules.accrual.calculator import compute_pending, resolve_capacity
from seedfarm.modules.multiplier.resolver import MultiplierBreakdown, MultiplierResolver
from seedfarm.modules.shared.exceptions import RejectionReason, ValidationRejected
from seedfarm.modules.streak.tracker import StreakTracker, StreakTransition, calendar_day
from seedfarm.modules.upgrade.catalog import UpgradeCatalog
from seedfarm.modules.upgrade.validator import PurchaseValidator, UpgradeStatus

logger = get_logger(__name__)

EVENT_HARVESTED = "farm.harvested"
EVENT_STREAK_ADVANCED = "streak.advanced"
EVENT_STREAK_BROKEN = "streak.broken"
EVENT_UPGRADE_PURCHASED = "upgrade.purchased"


@dataclass(frozen=True)
class CollectOutcome:
    """
    Result of a collection.

    Attributes:
        state: State after the collection
        harvested: Seeds credited (pending * multiplier total)
        pending: Seeds accrued before the multiplier
        multiplier: Multiplier applied
        events: What changed
    """

    state: PlayerState
    harvested: float
    pending: float
    multiplier: MultiplierBreakdown
    events: List[DomainEvent] = field(default_factory=list)


@dataclass(frozen=True)
class PurchaseOutcome:
    """
    Result of a purchase attempt.

    On rejection ``state`` is the input state, ``rejection`` carries the
    reason and ``cost`` is None.
    """

    state: PlayerState
    accepted: bool
    rejection: Optional[ValidationRejected] = None
    cost: Optional[int] = None
    events: List[DomainEvent] = field(default_factory=list)

    @property
    def reason(self) -> Optional[RejectionReason]:
        return self.rejection.reason if self.rejection is not None else None


@dataclass(frozen=True)
class ReconcileOutcome:
    state: PlayerState
    events: List[DomainEvent] = field(default_factory=list)


def _streak_events(transition: StreakTransition, occurred_at: datetime) -> List[DomainEvent]:
    count = transition.state.streak_count
    if transition.broken:
        return [
            DomainEvent(
                EVENT_STREAK_BROKEN,
                {"previous_streak": transition.previous_count, "streak_count": count},
                occurred_at,
            )
        ]
    if count > transition.previous_count:
        return [
            DomainEvent(
                EVENT_STREAK_ADVANCED,
                {"previous_streak": transition.previous_count, "streak_count": count},
                occurred_at,
            )
        ]
    return []


class ProgressionEngine:
    """
    Stateless orchestrator over PlayerState values.

    Args:
        catalog: Upgrade catalog
        resolver: Multiplier resolver (defaults to built-in balance values)
        tracker: Streak tracker
        validator: Purchase validator for ``catalog``
        base_capacity: Pending cap before storage upgrades; None means no cap
        zone: Timezone used to derive calendar days for the streak
    """

    def __init__(
        self,
        catalog: UpgradeCatalog,
        resolver: Optional[MultiplierResolver] = None,
        tracker: Optional[StreakTracker] = None,
        validator: Optional[PurchaseValidator] = None,
        base_capacity: Optional[float] = None,
        zone: tzinfo = timezone.utc,
    ) -> None:
        self.catalog = catalog
        self.resolver = resolver or MultiplierResolver()
        self.tracker = tracker or StreakTracker()
        self.validator = validator or PurchaseValidator(catalog)
        self.base_capacity = base_capacity
        self.zone = zone

    @classmethod
    def from_config(cls, catalog: Optional[UpgradeCatalog] = None) -> ProgressionEngine:
        """Build an engine from ConfigManager balance data and Config.STREAK_TIMEZONE."""
        catalog = catalog or UpgradeCatalog.from_config()
        base_capacity = ConfigManager.get("economy.base_capacity", None)
        return cls(
            catalog,
            resolver=MultiplierResolver.from_config(),
            validator=PurchaseValidator.from_config(catalog),
            base_capacity=float(base_capacity) if base_capacity is not None else None,
            zone=Config.streak_zone(),
        )

    # =========================================================================
    # READ-ONLY QUERIES
    # =========================================================================

    def capacity(self, state: PlayerState, character: Character) -> Optional[float]:
        return resolve_capacity(
            character,
            self.catalog.owned(state.purchased_upgrades),
            self.base_capacity,
        )

    def compute_pending(self, state: PlayerState, character: Character, now: datetime) -> float:
        """Seeds a collection at ``now`` would receive before the multiplier."""
        return compute_pending(
            now,
            state.last_collection_at,
            character.base_rate_per_hour,
            self.capacity(state, character),
        )

    def current_bonus(
        self, state: PlayerState, character: Character, now: datetime
    ) -> MultiplierBreakdown:
        """
        Multiplier a collection at ``now`` would apply.

        Uses the streak count ``collect`` would see after advancing, so the
        displayed bonus always matches the applied one.
        """
        advanced = self.tracker.advance(state, calendar_day(now, self.zone))
        return self.resolver.resolve(
            character,
            streak_count=advanced.state.streak_count,
            harvest_count_before=state.harvest_count,
        )

    def upgrade_statuses(
        self, state: PlayerState, character: Character
    ) -> List[Tuple[Upgrade, UpgradeStatus, int]]:
        """(upgrade, status, effective cost) for every catalog entry, in catalog order."""
        return [
            (
                upgrade,
                self.validator.status(upgrade, state, character),
                self.validator.effective_cost(upgrade, character),
            )
            for upgrade in self.catalog
        ]

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def collect(self, state: PlayerState, character: Character, now: datetime) -> CollectOutcome:
        """
        Convert pending accrual into committed seeds.

        ``now`` is used for both the pending computation and the commit.
        When ``now`` precedes the last collection the pending amount is zero
        and ``last_collection_at`` is kept, so no interval is credited twice.
        """
        pending = self.compute_pending(state, character, now)

        transition = self.tracker.advance(state, calendar_day(now, self.zone))
        if transition.broken:
            logger.info(
                "Streak broken on collection",
                extra={"previous_streak": transition.previous_count},
            )
        multiplier = self.resolver.resolve(
            character,
            streak_count=transition.state.streak_count,
            harvest_count_before=state.harvest_count,
        )
        harvested = pending * multiplier.total

        new_state = transition.state.with_changes(
            seeds_total=state.seeds_total + harvested,
            last_collection_at=max(now, state.last_collection_at),
            harvest_count=state.harvest_count + 1,
        )

        events = [
            DomainEvent(
                EVENT_HARVESTED,
                {
                    "character_id": character.id,
                    "pending": pending,
                    "harvested": harvested,
                    "multiplier": multiplier.total,
                    "harvest_count": new_state.harvest_count,
                    "seeds_total": new_state.seeds_total,
                },
                now,
            ),
            *_streak_events(transition, now),
        ]

        logger.debug(
            "Collected seeds",
            extra={
                "character_id": character.id,
                "pending": pending,
                "harvested": harvested,
                "multiplier": multiplier.total,
                "streak_count": new_state.streak_count,
            },
        )
        return CollectOutcome(
            state=new_state,
            harvested=harvested,
            pending=pending,
            multiplier=multiplier,
            events=events,
        )

    def purchase_upgrade(
        self, state: PlayerState, character: Character, upgrade_id: str
    ) -> PurchaseOutcome:
        """
        Attempt to buy an upgrade.

        Rejections never raise; the outcome carries the ValidationRejected and
        the unchanged input state.
        """
        try:
            receipt = self.validator.purchase(upgrade_id, state, character)
        except ValidationRejected as e:
            logger.info(
                "Upgrade purchase rejected",
                extra={"upgrade_id": upgrade_id, "reason": e.reason.value},
            )
            return PurchaseOutcome(state=state, accepted=False, rejection=e)

        event = DomainEvent(
            EVENT_UPGRADE_PURCHASED,
            {
                "upgrade_id": receipt.upgrade.id,
                "cost": receipt.cost,
                "seeds_total": receipt.state.seeds_total,
            },
        )
        logger.info(
            "Upgrade purchased",
            extra={"upgrade_id": receipt.upgrade.id, "cost": receipt.cost},
        )
        return PurchaseOutcome(
            state=receipt.state,
            accepted=True,
            cost=receipt.cost,
            events=[event],
        )

    def reconcile(self, state: PlayerState, now: datetime) -> ReconcileOutcome:
        """Apply missed-day streak resets to a freshly loaded state."""
        transition = self.tracker.reconcile(state, calendar_day(now, self.zone))
        events: List[DomainEvent] = []
        if transition.broken:
            events.append(
                DomainEvent(
                    EVENT_STREAK_BROKEN,
                    {"previous_streak": transition.previous_count, "streak_count": 0},
                    now,
                )
            )
        return ReconcileOutcome(state=transition.state, events=events)
