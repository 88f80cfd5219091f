"""
Upgrade Purchase Validator

Purpose
-------
Validate and execute upgrade purchases against the prerequisite forest and
the player's seed balance.

Business Rules
--------------
- effective cost = floor(base_cost * (1 - discount_rate)), truncating
- discount_rate is 0.20 for INFINITE_CAPACITY_AND_DISCOUNT, else 0
- a purchase succeeds iff the upgrade is not owned, its prerequisite (if any)
  is owned, and seeds_total >= effective cost
- checks run in that order, so the reported reason is deterministic
- a rejection leaves the state untouched
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from seedfarm.core.config.config_manager import ConfigManager
from seedfarm.domain.models import Ability, Character, PlayerState, Upgrade
from seedfarm.modules.shared.constants import CAPACITY_DISCOUNT_RATE
from seedfarm.modules.shared.exceptions import RejectionReason, ValidationRejected
from seedfarm.modules.upgrade.catalog import UpgradeCatalog


class UpgradeStatus(str, Enum):
    OWNED = "owned"
    LOCKED = "locked"
    EXPENSIVE = "expensive"
    AVAILABLE = "available"


@dataclass(frozen=True)
class PurchaseReceipt:
    state: PlayerState
    upgrade: Upgrade
    cost: int


class PurchaseValidator:
    """
    Validate and execute purchases for one catalog.

    Args:
        catalog: The upgrade catalog
        discount_rate: Discount granted by INFINITE_CAPACITY_AND_DISCOUNT
    """

    def __init__(self, catalog: UpgradeCatalog, discount_rate: float = CAPACITY_DISCOUNT_RATE) -> None:
        self.catalog = catalog
        self._discount_rate = discount_rate

    @classmethod
    def from_config(cls, catalog: UpgradeCatalog) -> PurchaseValidator:
        return cls(
            catalog,
            discount_rate=float(
                ConfigManager.get(
                    "abilities.infinite_capacity_and_discount.discount_rate",
                    CAPACITY_DISCOUNT_RATE,
                )
            ),
        )

    def discount_rate(self, character: Character) -> float:
        match character.ability:
            case Ability.INFINITE_CAPACITY_AND_DISCOUNT:
                return self._discount_rate
            case Ability.NONE | Ability.ALTERNATING_DOUBLE_HARVEST | Ability.STREAK_AMPLIFIER:
                return 0.0
            case _:
                raise ValueError(f"Unhandled ability: {character.ability!r}")

    def effective_cost(self, upgrade: Upgrade, character: Character) -> int:
        """
        Price after the character discount, truncated.

        Example:
            >>> validator.effective_cost(tools1, okay_bear)  # base 500
            400
        """
        rate = Decimal(str(self.discount_rate(character)))
        return math.floor(Decimal(upgrade.base_cost) * (Decimal(1) - rate))

    def validate(self, upgrade_id: str, state: PlayerState, character: Character) -> Upgrade:
        """
        Check every purchase precondition.

        Returns:
            The upgrade definition when the purchase may proceed

        Raises:
            ValidationRejected: With the first failing reason
        """
        upgrade = self.catalog.find(upgrade_id)
        if upgrade is None:
            raise ValidationRejected(
                RejectionReason.UNKNOWN_UPGRADE,
                f"Unknown upgrade '{upgrade_id}'",
                upgrade_id=upgrade_id,
            )

        if state.owns(upgrade.id):
            raise ValidationRejected(
                RejectionReason.ALREADY_OWNED,
                f"Upgrade '{upgrade.id}' is already owned",
                upgrade_id=upgrade.id,
            )

        if upgrade.prerequisite_id is not None and not state.owns(upgrade.prerequisite_id):
            raise ValidationRejected(
                RejectionReason.UPGRADE_LOCKED,
                f"Upgrade '{upgrade.id}' requires '{upgrade.prerequisite_id}'",
                upgrade_id=upgrade.id,
                prerequisite_id=upgrade.prerequisite_id,
            )

        cost = self.effective_cost(upgrade, character)
        if state.seeds_total < cost:
            raise ValidationRejected(
                RejectionReason.INSUFFICIENT_FUNDS,
                f"Insufficient seeds: need {cost:,}, have {math.floor(state.seeds_total):,}",
                upgrade_id=upgrade.id,
                required=cost,
                current=state.seeds_total,
            )

        return upgrade

    def purchase(self, upgrade_id: str, state: PlayerState, character: Character) -> PurchaseReceipt:
        """
        Debit the effective cost and record ownership.

        Raises:
            ValidationRejected: When any precondition fails (state untouched)
        """
        upgrade = self.validate(upgrade_id, state, character)
        cost = self.effective_cost(upgrade, character)
        new_state = state.with_changes(
            seeds_total=state.seeds_total - cost,
            purchased_upgrades=state.purchased_upgrades | {upgrade.id},
        )
        return PurchaseReceipt(state=new_state, upgrade=upgrade, cost=cost)

    def status(self, upgrade: Upgrade, state: PlayerState, character: Character) -> UpgradeStatus:
        """Display status of an upgrade for this player."""
        if state.owns(upgrade.id):
            return UpgradeStatus.OWNED
        if upgrade.prerequisite_id is not None and not state.owns(upgrade.prerequisite_id):
            return UpgradeStatus.LOCKED
        if state.seeds_total < self.effective_cost(upgrade, character):
            return UpgradeStatus.EXPENSIVE
        return UpgradeStatus.AVAILABLE
