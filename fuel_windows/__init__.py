"""Energy and macronutrient planning around scheduled endurance workouts."""

from .analysis import allocate_weekly_deficits, build_windows
from .models import PlannedWorkout, Profile, WeeklyPlan, WindowFlag, WindowPlan

__version__ = "0.1.0"

__all__ = [
    "allocate_weekly_deficits",
    "build_windows",
    "PlannedWorkout",
    "Profile",
    "WeeklyPlan",
    "WindowFlag",
    "WindowPlan",
]
