"""Flatten window and weekly plans for JSON and CSV export."""

import json
from typing import Any, Dict, Iterable, List

import pandas as pd

from .models import WeeklyPlan, WindowPlan
from .units import format_timestamp


def window_to_record(window: WindowPlan) -> Dict[str, Any]:
    return {
        "window_start": format_timestamp(window.window_start),
        "window_end": format_timestamp(window.window_end),
        "prev_workout_id": window.prev_workout_id,
        "next_workout_id": window.next_workout_id,
        "next_workout_type": window.next_workout_type.value,
        "need_kcal": window.need_kcal,
        "target_kcal": window.target_kcal,
        "activity_factor_applied": window.activity_factor_applied,
        "carb_g_per_hr": window.carbs.g_per_hr,
        "carb_pre_g": window.carbs.pre_g,
        "carb_during_g": window.carbs.during_g,
        "carb_post_g": window.carbs.post_g,
        "glu_fru_ratio": window.carbs.glu_fru_ratio,
        "protein_g": window.macros.protein_g,
        "fat_g": window.macros.fat_g,
        "carb_g": window.macros.carb_g,
        "flags": sorted(flag.value for flag in window.flags),
        "notes": list(window.notes),
    }


def weekly_to_record(week: WeeklyPlan) -> Dict[str, Any]:
    return {
        "week_key": week.week_key,
        "week_start": format_timestamp(week.week_start),
        "week_end": format_timestamp(week.week_end),
        "weekly_target_deficit_kcal": week.weekly_target_deficit_kcal,
        "weekly_allocated_kcal": week.weekly_allocated_kcal,
        "carry_over_kcal": week.carry_over_kcal,
        "protein_g": week.macros.protein_g,
        "fat_g": week.macros.fat_g,
        "carb_g": week.macros.carb_g,
    }


def plan_to_json(windows: Iterable[WindowPlan], weekly: Iterable[WeeklyPlan], indent: int = 2) -> str:
    """Serialize a full plan as ``{"windows": [...], "weekly": [...]}``."""
    payload = {
        "windows": [window_to_record(window) for window in windows],
        "weekly": [weekly_to_record(week) for week in weekly],
    }
    return json.dumps(payload, indent=indent)


def windows_to_frame(windows: Iterable[WindowPlan]) -> pd.DataFrame:
    records: List[Dict[str, Any]] = []
    for window in windows:
        record = window_to_record(window)
        record["flags"] = ";".join(record["flags"])
        record["notes"] = "; ".join(record["notes"])
        records.append(record)
    return pd.DataFrame(records)


def weekly_to_frame(weekly: Iterable[WeeklyPlan]) -> pd.DataFrame:
    return pd.DataFrame([weekly_to_record(week) for week in weekly])


def windows_to_csv(windows: Iterable[WindowPlan]) -> str:
    return windows_to_frame(windows).to_csv(index=False)


def weekly_to_csv(weekly: Iterable[WeeklyPlan]) -> str:
    return weekly_to_frame(weekly).to_csv(index=False)
