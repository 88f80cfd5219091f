"""
Seed Farm Domain Constants

Purpose
-------
Gameplay constants that are not expected to be tuned at runtime. Tunable
balance values (streak tiers, ability factors, discount rate, catalog) live
in config/*.yaml and are read through ConfigManager.

Design Notes
------------
- Values are annotated with typing.Final to signal immutability
- No side effects at import time
"""

from __future__ import annotations

from typing import Final

# ============================================================================
# TIME
# ============================================================================

SECONDS_PER_HOUR: Final[int] = 3600
STREAK_GAP_CONTINUES: Final[int] = 1  # calendar days between consecutive collects

# ============================================================================
# ABILITIES (fallbacks when config omits them)
# ============================================================================

DOUBLE_HARVEST_FACTOR: Final[float] = 2.0
STREAK_AMPLIFIER_FACTOR: Final[float] = 1.15
STREAK_AMPLIFIER_MIN_STREAK: Final[int] = 3
CAPACITY_DISCOUNT_RATE: Final[float] = 0.20

# ============================================================================
# USERNAMES
# ============================================================================

USERNAME_MIN_LENGTH: Final[int] = 3
USERNAME_MAX_LENGTH: Final[int] = 20
USERNAME_ALLOWED_CHARS: Final[str] = r"[A-Za-z0-9_]"

# ============================================================================
# STORE KEYS
# ============================================================================

KEY_SEEDS: Final[str] = "seeds"
KEY_LAST_HARVEST: Final[str] = "last_harvest"
KEY_STREAK: Final[str] = "streak"
KEY_LAST_STREAK_DATE: Final[str] = "last_streak_date"
KEY_COLLECTED_TODAY: Final[str] = "collected_today"
KEY_HARVEST_COUNT: Final[str] = "harvest_count"
KEY_PURCHASED: Final[str] = "purchased"
KEY_CHARACTER: Final[str] = "character"
KEY_USERNAME: Final[str] = "username"
