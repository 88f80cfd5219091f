"""
Upgrade value object.

Upgrades are one-time unlocks gated by cost and at most one direct
prerequisite. ``production_bonus`` is carried from the balance data but is
not applied to accrual.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from seedfarm.domain.models.base import (
    DomainValidationError,
    validate_non_negative,
    validate_not_empty,
    validate_positive,
)


class UpgradeKind(str, Enum):
    TOOLS = "tools"
    STORAGE = "storage"
    SLOT = "slot"


@dataclass(frozen=True)
class Upgrade:
    """
    Immutable upgrade definition.

    Attributes
    ----------
    id : str
        Stable identifier stored in PlayerState.purchased_upgrades
    base_cost : int
        Price in seeds before any character discount
    prerequisite_id : Optional[str]
        Upgrade that must be owned first
    kind : UpgradeKind
        Tools, storage, or slot
    production_bonus : float
        Declared production bonus (inert)
    storage_multiplier : float
        Capacity multiplier applied when a base capacity is configured
    """

    id: str
    base_cost: int
    prerequisite_id: Optional[str] = None
    name: str = ""
    description: str = ""
    kind: UpgradeKind = UpgradeKind.TOOLS
    production_bonus: float = 0.0
    storage_multiplier: float = 1.0

    def __post_init__(self) -> None:
        validate_not_empty(self.id, "id")
        if not isinstance(self.base_cost, int) or isinstance(self.base_cost, bool):
            raise DomainValidationError("base_cost must be an integer", field="base_cost")
        validate_positive(self.base_cost, "base_cost")
        validate_non_negative(self.production_bonus, "production_bonus")
        validate_positive(self.storage_multiplier, "storage_multiplier")
        if self.prerequisite_id == self.id:
            raise DomainValidationError(
                f"upgrade {self.id} cannot require itself",
                field="prerequisite_id",
            )
        if not isinstance(self.kind, UpgradeKind):
            object.__setattr__(self, "kind", UpgradeKind(self.kind))
