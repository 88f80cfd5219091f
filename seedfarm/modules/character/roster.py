"""
Character Roster

The fixed set of playable characters, loaded from ``config/characters.yaml``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping

from seedfarm.core.config.config_manager import ConfigManager
from seedfarm.core.exceptions import ConfigurationError
from seedfarm.core.logging.logger import get_logger
from seedfarm.domain.models import Character, DomainValidationError
from seedfarm.modules.shared.exceptions import NotFoundError

logger = get_logger(__name__)


def character_from_mapping(raw: Mapping[str, Any]) -> Character:
    try:
        return Character(
            id=str(raw["id"]),
            name=str(raw.get("name", raw["id"])),
            base_rate_per_hour=float(raw["base_rate_per_hour"]),
            ability=raw.get("ability", "none"),
        )
    except (KeyError, TypeError, ValueError, DomainValidationError) as e:
        raise ConfigurationError("characters", f"invalid character entry {dict(raw)!r}: {e}") from e


class CharacterRoster:
    """Characters keyed by id, in configuration order."""

    def __init__(self, characters: Iterable[Character]) -> None:
        self._by_id: Dict[str, Character] = {}
        for character in characters:
            if character.id in self._by_id:
                raise ConfigurationError("characters", f"duplicate character id '{character.id}'")
            self._by_id[character.id] = character

    @classmethod
    def from_config(cls) -> CharacterRoster:
        roster = cls(character_from_mapping(entry) for entry in ConfigManager.get("characters", []))
        logger.debug("Character roster loaded", extra={"character_count": len(roster)})
        return roster

    def __iter__(self) -> Iterator[Character]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, character_id: object) -> bool:
        return character_id in self._by_id

    def ids(self) -> List[str]:
        return list(self._by_id)

    def get(self, character_id: str) -> Character:
        """
        Raises:
            NotFoundError: If no character has this id
        """
        character = self._by_id.get(character_id)
        if character is None:
            raise NotFoundError("Character", character_id)
        return character
