"""Analysis module for fuel window and deficit calculations."""

from .energy import EnergySource, estimate_workout_energy, estimate_workout_energy_with_source, resting_metabolic_rate
from .carbs import CarbComputation, compute_carb_plan
from .macros import compute_macro_targets
from .windows import build_windows
from .weekly import allocate_weekly_deficits, iso_week_of, reset_deficits

__all__ = [
    "EnergySource",
    "estimate_workout_energy",
    "estimate_workout_energy_with_source",
    "resting_metabolic_rate",
    "CarbComputation",
    "compute_carb_plan",
    "compute_macro_targets",
    "build_windows",
    "allocate_weekly_deficits",
    "iso_week_of",
    "reset_deficits",
]
