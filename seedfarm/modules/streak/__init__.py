from seedfarm.modules.streak.tracker import (
    StreakStatus,
    StreakTracker,
    StreakTransition,
    calendar_day,
)

__all__ = ["StreakStatus", "StreakTracker", "StreakTransition", "calendar_day"]
