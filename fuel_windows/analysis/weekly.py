"""Weekly caloric deficit allocation across fuel windows.

Windows are bucketed by the ISO week of their end time. Within a week the
deficit is placed greedily in end-time order, subject to a per-window cap,
hard-day protection and the weight-safety flags.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..models import MacroTargets, PlannedWorkout, Profile, SessionType, WeeklyPlan, WindowFlag, WindowPlan
from ..units import ensure_utc, round_half_up
from .macros import compute_macro_targets

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_PCT_CAP = 0.3
EMPTY_FLAG_FACTOR = 0.5
DEFICIT_NOTE_PREFIX = "Deficit applied: "


@dataclass(frozen=True)
class IsoWeek:
    key: str
    start: datetime
    end: datetime


def iso_week_of(moment: datetime) -> IsoWeek:
    """ISO 8601 week containing ``moment`` (UTC), Monday 00:00 to Sunday 23:59:59.999."""
    utc = ensure_utc(moment)
    iso_year, iso_week, iso_weekday = utc.isocalendar()
    monday = (utc - timedelta(days=iso_weekday - 1)).replace(hour=0, minute=0, second=0, microsecond=0)
    sunday_end = monday + timedelta(days=6, hours=23, minutes=59, seconds=59, milliseconds=999)
    return IsoWeek(key=f"{iso_year}-W{iso_week:02d}", start=monday, end=sunday_end)


def resolve_session_type(window: WindowPlan, workouts_by_id: Mapping[str, PlannedWorkout]) -> SessionType:
    """Session type of the window's bounding workout.

    The workout record is authoritative so a caller can reclassify a session
    after the windows were built; the type cached on the window is the fallback.
    """
    workout = workouts_by_id.get(window.next_workout_id)
    if workout is not None:
        return workout.type
    return window.next_workout_type


def window_deficit_allowance(profile: Profile, window: WindowPlan, session_type: SessionType) -> float:
    """Largest deficit a single window may take before the weekly budget applies."""
    if session_type.is_hard:
        allowance = 0.0
    else:
        pct_cap = profile.window_pct_cap if profile.window_pct_cap is not None else DEFAULT_WINDOW_PCT_CAP
        allowance = max(0.0, min(profile.deficit_cap_per_window, window.need_kcal * pct_cap))

    if WindowFlag.UNDER_RECOVERY in window.flags:
        return 0.0
    if WindowFlag.EMPTY in window.flags:
        return allowance * EMPTY_FLAG_FACTOR
    return allowance


def group_by_iso_week(windows: Iterable[WindowPlan]) -> Dict[str, Tuple[IsoWeek, List[WindowPlan]]]:
    """Bucket windows by the ISO week of their end, each bucket sorted by end time."""
    grouped: Dict[str, Tuple[IsoWeek, List[WindowPlan]]] = {}
    for window in windows:
        week = iso_week_of(window.window_end)
        grouped.setdefault(week.key, (week, []))[1].append(window)
    for _, members in grouped.values():
        members.sort(key=lambda window: window.window_end)
    return grouped


def reset_deficits(profile: Profile, windows: Iterable[WindowPlan]) -> List[WindowPlan]:
    """Copies of ``windows`` with targets back at need and deficit notes dropped."""
    reset = []
    for window in windows:
        copy = window.copy()
        copy.target_kcal = copy.need_kcal
        copy.notes = [note for note in copy.notes if not note.startswith(DEFICIT_NOTE_PREFIX)]
        copy.macros = compute_macro_targets(profile, copy.target_kcal)
        reset.append(copy)
    return reset


def allocate_weekly_deficits(
    profile: Profile,
    windows: Iterable[WindowPlan],
    workouts: Iterable[PlannedWorkout],
) -> Tuple[List[WindowPlan], List[WeeklyPlan]]:
    """Carve each ISO week's target deficit out of its windows.

    Input windows are not modified; the returned windows are copies with
    ``target_kcal`` lowered, a note per applied deficit and macros recomputed.
    The deficit is subtracted from the window's current target, so feeding
    the output back in compounds the deficit unless targets are reset first.

    Args:
        profile: Athlete profile (weekly target, caps, macro floors)
        windows: Output of build_windows, optionally flagged
        workouts: Original workouts, authoritative for session types

    Returns:
        (windows, weekly plans), weeks in ascending key order
    """
    workouts_by_id = {workout.id: workout for workout in workouts}
    cloned = []
    for window in windows:
        copy = window.copy()
        copy.macros = compute_macro_targets(profile, copy.target_kcal)
        cloned.append(copy)

    if not cloned:
        return [], []

    weekly_target = abs(profile.target_kg_per_week) * profile.kcal_per_kg
    weekly_plans = []

    for week_key, (week, members) in sorted(group_by_iso_week(cloned).items()):
        remaining = weekly_target
        protein_g = fat_g = carb_g = 0.0

        for window in members:
            session_type = resolve_session_type(window, workouts_by_id)
            allowance = window_deficit_allowance(profile, window, session_type)
            deficit = min(allowance, remaining)

            if deficit > 0:
                window.target_kcal = max(0.0, window.target_kcal - deficit)
                window.notes.append(f"{DEFICIT_NOTE_PREFIX}{round_half_up(deficit):.0f}")
                logger.debug(f"{week_key} window -> {window.next_workout_id}: deficit {deficit:.0f} kcal")

            window.macros = compute_macro_targets(profile, window.target_kcal)
            protein_g += window.macros.protein_g
            fat_g += window.macros.fat_g
            carb_g += window.macros.carb_g
            remaining -= deficit

        allocated = weekly_target - remaining
        target_rounded = round_half_up(weekly_target)
        allocated_rounded = round_half_up(allocated)
        # carry-over is derived from the rounded figures so the three always add up
        carry_over: Optional[float] = target_rounded - allocated_rounded if remaining > 0 else None
        logger.info(
            f"{week_key}: target {weekly_target:.0f} kcal, allocated {allocated:.0f} kcal, "
            f"carry-over {remaining:.0f} kcal across {len(members)} windows"
        )

        weekly_plans.append(WeeklyPlan(
            week_key=week_key,
            week_start=week.start,
            week_end=week.end,
            weekly_target_deficit_kcal=target_rounded,
            weekly_allocated_kcal=allocated_rounded,
            carry_over_kcal=carry_over,
            macros=MacroTargets(
                protein_g=round_half_up(protein_g, 1),
                fat_g=round_half_up(fat_g, 1),
                carb_g=round_half_up(carb_g, 1),
            ),
        ))

    return cloned, weekly_plans
