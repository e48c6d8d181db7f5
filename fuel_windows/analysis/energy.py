"""Resting metabolic rate and workout energy estimation."""

import numpy as np
from enum import Enum
from typing import Tuple

from ..models import PlannedWorkout, Profile, SessionType, Sex, TargetType
from ..units import KJ_PER_WATT_HOUR, SECONDS_PER_HOUR

# Intensity factor (fraction of FTP) assumed for unstructured sessions
INTENSITY_FACTORS = {
    SessionType.ENDURANCE: 0.65,
    SessionType.TEMPO: 0.80,
    SessionType.THRESHOLD: 0.92,
    SessionType.VO2: 1.05,
    SessionType.RACE: 0.95,
    SessionType.REST: 0.0,
}
DEFAULT_INTENSITY_FACTOR = 0.7

FALLBACK_KJ_PER_HOUR = 500.0


class EnergySource(Enum):
    """Which estimate in the fallback chain produced a workout's energy."""
    PLANNED = "Planned"
    STEPS = "Estimated (steps)"
    INTENSITY_FACTOR = "Estimated (IF/TSS)"
    FALLBACK = "Estimated (fallback)"


def resting_metabolic_rate(profile: Profile) -> float:
    """Harris-Benedict resting metabolic rate in kcal/day."""
    if profile.sex == Sex.MALE:
        return 88.362 + 13.397 * profile.weight_kg + 4.799 * profile.height_cm - 5.677 * profile.age_years
    return 447.593 + 9.247 * profile.weight_kg + 3.098 * profile.height_cm - 4.330 * profile.age_years


def _step_watt_hours(workout: PlannedWorkout) -> float:
    ftp = workout.ftp_watts_at_plan
    watts = []
    hours = []
    for step in workout.steps:
        if step.target_type == TargetType.PERCENT_FTP:
            watts.append(step.average_target() / 100 * ftp)
        elif step.target_type == TargetType.WATTS:
            watts.append(step.average_target())
        else:
            continue
        hours.append(step.duration_s / SECONDS_PER_HOUR)

    if not watts:
        return 0.0
    return float(np.dot(np.array(watts), np.array(hours)))


def estimate_workout_energy_with_source(workout: PlannedWorkout) -> Tuple[float, EnergySource]:
    """Estimate mechanical work in kJ and report which estimate was used.

    Evaluated in order, first match wins:
        1. Planned kJ supplied by the workout source.
        2. Structured steps with a known FTP: sum of step watts x hours.
        3. Known FTP and duration: FTP x session intensity factor x hours.
        4. Flat 500 kJ per hour.

    Args:
        workout: Normalized planned workout

    Returns:
        (kilojoules, source)
    """
    if workout.planned_kj is not None:
        return workout.planned_kj, EnergySource.PLANNED

    if workout.steps and workout.ftp_watts_at_plan:
        return _step_watt_hours(workout) * KJ_PER_WATT_HOUR, EnergySource.STEPS

    if workout.ftp_watts_at_plan and workout.duration_hr:
        factor = INTENSITY_FACTORS.get(workout.type, DEFAULT_INTENSITY_FACTOR)
        watts = workout.ftp_watts_at_plan * factor
        return watts * workout.duration_hr * KJ_PER_WATT_HOUR, EnergySource.INTENSITY_FACTOR

    return workout.duration_hr * FALLBACK_KJ_PER_HOUR, EnergySource.FALLBACK


def estimate_workout_energy(workout: PlannedWorkout) -> float:
    """Estimate a workout's energy cost in kJ."""
    kilojoules, _ = estimate_workout_energy_with_source(workout)
    return kilojoules
