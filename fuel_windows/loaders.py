"""Convert JSON-style dictionaries into profiles, planned workouts and windows.

Keys may be given in snake_case or in the camelCase used by the planner's
browser export (``startISO``, ``carbBands`` ...). Missing profile fields fall
back to the configured defaults.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .config import config
from .models import (
    CarbPlan,
    CarbSplit,
    EfficiencyPreset,
    MacroTargets,
    PlannedWorkout,
    Profile,
    SessionType,
    Sex,
    Step,
    TargetType,
    WindowPlan,
    split_notes,
)
from .units import parse_timestamp

logger = logging.getLogger(__name__)

KEY_ALIASES = {
    "efficiencyPreset": "efficiency_preset",
    "activityFactorDefault": "activity_factor_default",
    "activityFactorOverrides": "activity_factor_overrides",
    "targetKgPerWeek": "target_kg_per_week",
    "kcalPerKg": "kcal_per_kg",
    "deficitCapPerWindow": "deficit_cap_per_window",
    "windowPctCap": "window_pct_cap",
    "carbBands": "carb_bands",
    "carbSplit": "carb_split",
    "gluFruRatio": "glu_fru_ratio",
    "useImperial": "use_imperial",
    "startISO": "start",
    "endISO": "end",
    "planned_kJ": "planned_kj",
}

REQUIRED_PROFILE_FIELDS = ("sex", "age_years", "height_cm", "weight_kg")
REQUIRED_WORKOUT_FIELDS = ("id", "type", "start", "end", "duration_hr")


class PlanInputError(ValueError):
    """Raised when a profile, workout or window record cannot be loaded."""


def _normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {KEY_ALIASES.get(key, key): value for key, value in data.items()}


def _enum_value(enum_cls, value: Any, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise PlanInputError(f"Invalid {field_name} '{value}' (expected one of: {allowed})") from None


def _timestamp(value: Any, field_name: str):
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        raise PlanInputError(f"Invalid {field_name} timestamp: {value!r}") from None


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _carb_bands(raw: Optional[Mapping[str, Iterable[float]]]) -> Dict[SessionType, tuple]:
    bands = {_enum_value(SessionType, key, "session type"): tuple(band) for key, band in config.CARB_BANDS.items()}
    for key, values in (raw or {}).items():
        session_type = _enum_value(SessionType, key, "carb band session type")
        values = list(values)
        if len(values) != 2:
            raise PlanInputError(f"Carb band for {key} must contain exactly two entries, got {values}")
        bands[session_type] = (float(values[0]), float(values[1]))
    return bands


def _carb_split(raw: Optional[Mapping[str, float]]) -> CarbSplit:
    merged = dict(config.CARB_SPLIT)
    merged.update(raw or {})
    return CarbSplit(pre=float(merged["pre"]), during=float(merged["during"]), post=float(merged["post"]))


def profile_from_dict(data: Mapping[str, Any]) -> Profile:
    """Build a Profile from a dictionary.

    Args:
        data: Profile fields; ``sex``, ``age_years``, ``height_cm`` and
            ``weight_kg`` are required

    Returns:
        Profile

    Raises:
        PlanInputError: On missing fields or invalid values
    """
    fields = _normalize_keys(data)
    missing = [name for name in REQUIRED_PROFILE_FIELDS if fields.get(name) is None]
    if missing:
        raise PlanInputError(f"Profile is missing required fields: {', '.join(missing)}")

    preset = _enum_value(EfficiencyPreset, fields.get("efficiency_preset", config.EFFICIENCY_PRESET), "efficiency preset")
    try:
        efficiency = float(fields.get("efficiency", preset.default_efficiency))
    except (TypeError, ValueError):
        raise PlanInputError(f"Invalid efficiency: {fields.get('efficiency')!r}") from None
    if efficiency <= 0:
        raise PlanInputError(f"Efficiency must be greater than zero, got {efficiency}")

    window_pct_cap = fields.get("window_pct_cap", config.WINDOW_PCT_CAP)

    try:
        return Profile(
            sex=_enum_value(Sex, fields["sex"], "sex"),
            age_years=float(fields["age_years"]),
            height_cm=float(fields["height_cm"]),
            weight_kg=float(fields["weight_kg"]),
            ftp_watts=_optional_float(fields.get("ftp_watts")),
            efficiency_preset=preset,
            efficiency=efficiency,
            activity_factor_default=float(fields.get("activity_factor_default", config.ACTIVITY_FACTOR)),
            activity_factor_overrides={
                str(day): float(factor) for day, factor in (fields.get("activity_factor_overrides") or {}).items()
            },
            target_kg_per_week=float(fields.get("target_kg_per_week", config.TARGET_KG_PER_WEEK)),
            kcal_per_kg=float(fields.get("kcal_per_kg", config.KCAL_PER_KG)),
            deficit_cap_per_window=float(fields.get("deficit_cap_per_window", config.DEFICIT_CAP_PER_WINDOW)),
            window_pct_cap=_optional_float(window_pct_cap),
            protein_g_per_kg=float(fields.get("protein_g_per_kg", config.PROTEIN_G_PER_KG)),
            fat_g_per_kg_min=float(fields.get("fat_g_per_kg_min", config.FAT_G_PER_KG_MIN)),
            carb_bands=_carb_bands(fields.get("carb_bands")),
            carb_split=_carb_split(fields.get("carb_split")),
            glu_fru_ratio=float(fields.get("glu_fru_ratio", config.GLU_FRU_RATIO)),
            use_imperial=bool(fields.get("use_imperial", False)),
        )
    except PlanInputError:
        raise
    except (TypeError, ValueError) as e:
        raise PlanInputError(f"Invalid profile value: {e}") from e


def step_from_dict(data: Mapping[str, Any]) -> Step:
    return Step(
        start_s=float(data.get("start_s", 0)),
        duration_s=float(data["duration_s"]),
        target_type=_enum_value(TargetType, data["target_type"], "step target type"),
        target_lo=_optional_float(data.get("target_lo")),
        target_hi=_optional_float(data.get("target_hi")),
    )


def workout_from_dict(data: Mapping[str, Any]) -> PlannedWorkout:
    """Build a PlannedWorkout from a dictionary.

    Raises:
        PlanInputError: On missing fields, unknown session types, bad
            timestamps, non-numeric values or a negative duration
    """
    fields = _normalize_keys(data)
    missing = [name for name in REQUIRED_WORKOUT_FIELDS if fields.get(name) is None]
    if missing:
        raise PlanInputError(f"Workout {fields.get('id', '?')} is missing required fields: {', '.join(missing)}")

    try:
        duration_hr = float(fields["duration_hr"])
    except (TypeError, ValueError):
        raise PlanInputError(f"Workout {fields['id']} has an invalid duration: {fields['duration_hr']!r}") from None
    if duration_hr < 0:
        raise PlanInputError(f"Workout {fields['id']} has a negative duration ({duration_hr} h)")

    try:
        steps = [step_from_dict(step) for step in fields.get("steps") or []]
    except KeyError as e:
        raise PlanInputError(f"Workout {fields['id']} has a step without {e}") from e
    except PlanInputError:
        raise
    except (TypeError, ValueError) as e:
        raise PlanInputError(f"Workout {fields['id']} has an invalid step value: {e}") from e

    try:
        return PlannedWorkout(
            id=str(fields["id"]),
            type=_enum_value(SessionType, fields["type"], "session type"),
            start=_timestamp(fields["start"], "start"),
            end=_timestamp(fields["end"], "end"),
            duration_hr=duration_hr,
            planned_kj=_optional_float(fields.get("planned_kj")),
            ftp_watts_at_plan=_optional_float(fields.get("ftp_watts_at_plan")),
            steps=steps,
            title=fields.get("title"),
            source=fields.get("source", "file"),
            kj_source=fields.get("kj_source"),
        )
    except PlanInputError:
        raise
    except (TypeError, ValueError) as e:
        raise PlanInputError(f"Workout {fields['id']} has an invalid value: {e}") from e


def workouts_from_list(records: Iterable[Mapping[str, Any]]) -> List[PlannedWorkout]:
    return [workout_from_dict(record) for record in records]


def window_from_dict(data: Mapping[str, Any]) -> WindowPlan:
    """Rebuild a WindowPlan from an exported window record.

    Flag sentinels are accepted in either ``flags`` or ``notes``; both end up
    in ``WindowPlan.flags`` and only display text stays in ``notes``.
    """
    flags, notes = split_notes(list(data.get("flags") or []) + list(data.get("notes") or []))
    try:
        return WindowPlan(
            window_start=_timestamp(data["window_start"], "window_start"),
            window_end=_timestamp(data["window_end"], "window_end"),
            prev_workout_id=str(data["prev_workout_id"]),
            next_workout_id=str(data["next_workout_id"]),
            next_workout_type=_enum_value(SessionType, data["next_workout_type"], "session type"),
            need_kcal=float(data["need_kcal"]),
            target_kcal=float(data.get("target_kcal", data["need_kcal"])),
            activity_factor_applied=float(data["activity_factor_applied"]),
            carbs=CarbPlan(
                g_per_hr=float(data.get("carb_g_per_hr", 0)),
                pre_g=float(data.get("carb_pre_g", 0)),
                during_g=float(data.get("carb_during_g", 0)),
                post_g=float(data.get("carb_post_g", 0)),
                glu_fru_ratio=float(data.get("glu_fru_ratio", config.GLU_FRU_RATIO)),
            ),
            macros=MacroTargets(
                protein_g=float(data.get("protein_g", 0)),
                fat_g=float(data.get("fat_g", 0)),
                carb_g=float(data.get("carb_g", 0)),
            ),
            notes=notes,
            flags=flags,
        )
    except KeyError as e:
        raise PlanInputError(f"Window record is missing {e}") from e
    except PlanInputError:
        raise
    except (TypeError, ValueError) as e:
        raise PlanInputError(f"Invalid window value: {e}") from e


def _read_json(path: Union[str, Path]) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_profile(path: Union[str, Path]) -> Profile:
    """Load a profile from a JSON file (an ``internal`` wrapper object is accepted)."""
    data = _read_json(path)
    if isinstance(data, dict) and isinstance(data.get("internal"), dict):
        data = data["internal"]
    if not isinstance(data, dict):
        raise PlanInputError(f"Profile file {path} must contain a JSON object")
    profile = profile_from_dict(data)
    logger.info(f"Loaded profile from {path}")
    return profile


def load_workouts(path: Union[str, Path]) -> List[PlannedWorkout]:
    """Load planned workouts from a JSON file holding a list (or ``{"workouts": [...]}``)."""
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("workouts")
    if not isinstance(data, list):
        raise PlanInputError(f"Workout file {path} must contain a JSON list of workouts")
    workouts = workouts_from_list(data)
    logger.info(f"Loaded {len(workouts)} workouts from {path}")
    return workouts


def load_windows(path: Union[str, Path]) -> List[WindowPlan]:
    """Load windows from an exported plan (``{"windows": [...]}``) or a bare list."""
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("windows")
    if not isinstance(data, list):
        raise PlanInputError(f"Window file {path} must contain a JSON list of windows")
    windows = [window_from_dict(record) for record in data]
    logger.info(f"Loaded {len(windows)} windows from {path}")
    return windows
