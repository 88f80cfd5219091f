"""
Upgrade Catalog

Purpose
-------
Fixed, externally supplied list of upgrades forming a prerequisite forest.

Responsibilities
----------------
- Build Upgrade values from balance data (config/upgrades.yaml)
- Reject broken data on construction: duplicate ids, unknown prerequisites,
  prerequisite cycles
- Look up upgrades by id and walk prerequisite chains
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from seedfarm.core.config.config_manager import ConfigManager
from seedfarm.core.exceptions import ConfigurationError
from seedfarm.core.logging.logger import get_logger
from seedfarm.domain.models import DomainValidationError, Upgrade
from seedfarm.modules.shared.exceptions import NotFoundError

logger = get_logger(__name__)


def upgrade_from_mapping(raw: Mapping[str, Any]) -> Upgrade:
    """
    Build an Upgrade from one balance-data entry.

    ``requires`` is accepted as an alias of ``prerequisite_id``.
    """
    try:
        return Upgrade(
            id=str(raw["id"]),
            base_cost=int(raw["base_cost"]),
            prerequisite_id=raw.get("prerequisite_id", raw.get("requires")),
            name=str(raw.get("name", raw["id"])),
            description=str(raw.get("description", "")),
            kind=raw.get("kind", "tools"),
            production_bonus=float(raw.get("production_bonus", 0.0)),
            storage_multiplier=float(raw.get("storage_multiplier", 1.0)),
        )
    except (KeyError, TypeError, ValueError, DomainValidationError) as e:
        raise ConfigurationError("upgrades", f"invalid upgrade entry {dict(raw)!r}: {e}") from e


class UpgradeCatalog:
    """
    Immutable collection of upgrades keyed by id.

    Example:
        >>> catalog = UpgradeCatalog.from_config()
        >>> catalog.get("tools2").prerequisite_id
        'tools1'
    """

    def __init__(self, upgrades: Iterable[Upgrade]) -> None:
        self._by_id: Dict[str, Upgrade] = {}
        for upgrade in upgrades:
            if upgrade.id in self._by_id:
                raise ConfigurationError("upgrades", f"duplicate upgrade id '{upgrade.id}'")
            self._by_id[upgrade.id] = upgrade
        self._validate_forest()

    @classmethod
    def from_config(cls) -> UpgradeCatalog:
        raw = ConfigManager.get("upgrades", [])
        catalog = cls(upgrade_from_mapping(entry) for entry in raw)
        logger.debug("Upgrade catalog loaded", extra={"upgrade_count": len(catalog)})
        return catalog

    def _validate_forest(self) -> None:
        for upgrade in self._by_id.values():
            if upgrade.prerequisite_id is not None and upgrade.prerequisite_id not in self._by_id:
                raise ConfigurationError(
                    "upgrades",
                    f"upgrade '{upgrade.id}' requires unknown upgrade '{upgrade.prerequisite_id}'",
                )

        for upgrade in self._by_id.values():
            seen = {upgrade.id}
            current = upgrade.prerequisite_id
            while current is not None:
                if current in seen:
                    raise ConfigurationError(
                        "upgrades", f"prerequisite cycle through '{upgrade.id}'"
                    )
                seen.add(current)
                current = self._by_id[current].prerequisite_id

    def __iter__(self) -> Iterator[Upgrade]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, upgrade_id: object) -> bool:
        return upgrade_id in self._by_id

    def find(self, upgrade_id: str) -> Optional[Upgrade]:
        return self._by_id.get(upgrade_id)

    def get(self, upgrade_id: str) -> Upgrade:
        upgrade = self._by_id.get(upgrade_id)
        if upgrade is None:
            raise NotFoundError("Upgrade", upgrade_id)
        return upgrade

    def owned(self, upgrade_ids: Iterable[str]) -> List[Upgrade]:
        """Definitions for the given ids; ids missing from the catalog are skipped."""
        return [self._by_id[uid] for uid in upgrade_ids if uid in self._by_id]

    def prerequisite_chain(self, upgrade_id: str) -> List[Upgrade]:
        """Ancestors of an upgrade, nearest first."""
        chain: List[Upgrade] = []
        current = self.get(upgrade_id).prerequisite_id
        while current is not None:
            ancestor = self._by_id[current]
            chain.append(ancestor)
            current = ancestor.prerequisite_id
        return chain
