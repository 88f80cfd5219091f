from seedfarm.modules.character.roster import CharacterRoster, character_from_mapping

__all__ = ["CharacterRoster", "character_from_mapping"]
