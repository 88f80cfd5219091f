"""Input validation for player-supplied values."""

from seedfarm.core.validation.input_validator import InputValidator

__all__ = ["InputValidator"]
