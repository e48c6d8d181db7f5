"""Fuel window builder.

A window spans from the end of one workout to the end of the next and carries
a single energy and fueling prescription. The first workout gets a synthetic
24-hour lead-in window.
"""

import logging
from datetime import timedelta
from typing import Iterable, List

from ..models import PlannedWorkout, Profile, WindowPlan
from ..units import HOURS_PER_DAY, date_key, hours_between, round_half_up
from .carbs import compute_carb_plan
from .energy import estimate_workout_energy, resting_metabolic_rate
from .macros import compute_macro_targets

logger = logging.getLogger(__name__)

LEAD_IN_HOURS = 24.0
FIRST_WINDOW_PREV_ID = "START"
OVER_FUEL_GUARD_NOTE = "Over-fuel guard applied"


def build_windows(profile: Profile, workouts: Iterable[PlannedWorkout]) -> List[WindowPlan]:
    """Build one window per workout, ordered by workout start time.

    Need is resting energy (RMR scaled by window length and activity factor)
    plus the workout's kJ divided by the profile's efficiency ratio, which is
    taken as kcal directly. Target starts equal to need.

    Args:
        profile: Athlete profile, not modified
        workouts: Planned workouts in any order

    Returns:
        List of WindowPlan sorted by the bounding workout's start
    """
    ordered = sorted(workouts, key=lambda workout: workout.start)
    if not ordered:
        return []

    rmr = resting_metabolic_rate(profile)
    windows = []

    for index, workout in enumerate(ordered):
        previous = ordered[index - 1] if index > 0 else None
        if previous is not None:
            window_start = previous.end
            reference = previous.end
        else:
            window_start = workout.start - timedelta(hours=LEAD_IN_HOURS)
            reference = workout.start

        window_hours = hours_between(window_start, workout.end)
        activity_factor = profile.activity_factor_for(date_key(reference))
        resting_kcal = rmr * (window_hours / HOURS_PER_DAY) * activity_factor
        exercise_kcal = estimate_workout_energy(workout) / profile.efficiency
        need_kcal = resting_kcal + exercise_kcal

        carbs = compute_carb_plan(profile, workout, need_kcal)
        notes = []
        if carbs.over_fuel_guard_applied:
            notes.append(OVER_FUEL_GUARD_NOTE)

        rounded_need = round_half_up(need_kcal, 2)
        logger.debug(
            f"Window {window_start.isoformat()} -> {workout.end.isoformat()} ({workout.type.value}): "
            f"{window_hours:.2f} h, resting {resting_kcal:.0f} kcal, exercise {exercise_kcal:.0f} kcal"
        )

        windows.append(WindowPlan(
            window_start=window_start,
            window_end=workout.end,
            prev_workout_id=previous.id if previous is not None else FIRST_WINDOW_PREV_ID,
            next_workout_id=workout.id,
            next_workout_type=workout.type,
            need_kcal=rounded_need,
            target_kcal=rounded_need,
            activity_factor_applied=round_half_up(activity_factor, 2),
            carbs=carbs.to_plan(),
            macros=compute_macro_targets(profile, rounded_need),
            notes=notes,
        ))

    return windows
