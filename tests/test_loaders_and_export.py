"""Tests for input loading, sample data and plan export."""

import json
import pytest
from datetime import datetime, timezone

from fuel_windows.analysis import allocate_weekly_deficits, build_windows
from fuel_windows.export import plan_to_json, weekly_to_csv, window_to_record, windows_to_csv
from fuel_windows.loaders import (
    PlanInputError,
    load_profile,
    load_windows,
    load_workouts,
    profile_from_dict,
    window_from_dict,
    workout_from_dict,
)
from fuel_windows.models import CarbSplit, EfficiencyPreset, SessionType, Sex, TargetType, WindowFlag, split_notes
from fuel_windows.samples import SampleWorkoutSource, sample_profile


PROFILE_JSON = {
    "sex": "F",
    "age_years": 34,
    "height_cm": 170,
    "weight_kg": 68,
    "ftp_watts": 250,
    "efficiencyPreset": "Elite",
    "activityFactorDefault": 1.5,
    "activityFactorOverrides": {"2024-06-14": 1.3},
    "targetKgPerWeek": -0.25,
    "kcalPerKg": 7700,
    "deficitCapPerWindow": 400,
    "carbBands": {"Endurance": [50, 65]},
    "carbSplit": {"pre": 1, "during": 2, "post": 1},
}

WORKOUT_JSON = {
    "id": "ride-1",
    "type": "Tempo",
    "startISO": "2024-06-14T16:00:00Z",
    "endISO": "2024-06-14T17:30:00.000Z",
    "duration_hr": 1.5,
    "ftp_watts_at_plan": 250,
    "steps": [
        {"start_s": 0, "duration_s": 900, "target_type": "%FTP", "target_lo": 55, "target_hi": 65},
    ],
}


class TestLoaders:
    """Test dictionary and file loading."""

    def test_profile_from_camel_case(self):
        """Test the browser export's camelCase keys are understood."""
        profile = profile_from_dict(PROFILE_JSON)

        assert profile.sex == Sex.FEMALE
        assert profile.efficiency_preset == EfficiencyPreset.ELITE
        assert profile.efficiency == pytest.approx(0.24)
        assert profile.activity_factor_for("2024-06-14") == 1.3
        assert profile.activity_factor_for("2024-06-15") == 1.5
        assert profile.deficit_cap_per_window == 400
        assert profile.carb_bands[SessionType.ENDURANCE] == (50.0, 65.0)
        assert profile.carb_bands[SessionType.VO2] == (80.0, 100.0)
        assert profile.carb_split == CarbSplit(pre=1, during=2, post=1)

    def test_explicit_efficiency_wins_over_preset(self):
        """Test an explicit efficiency is kept."""
        profile = profile_from_dict({**PROFILE_JSON, "efficiency": 0.27})
        assert profile.efficiency == pytest.approx(0.27)

    def test_profile_missing_fields(self):
        """Test required profile fields are reported."""
        with pytest.raises(PlanInputError, match="weight_kg"):
            profile_from_dict({"sex": "M", "age_years": 30, "height_cm": 180})

    def test_profile_invalid_values(self):
        """Test invalid enum values, bands and efficiency."""
        with pytest.raises(PlanInputError, match="sex"):
            profile_from_dict({**PROFILE_JSON, "sex": "X"})
        with pytest.raises(PlanInputError, match="exactly two"):
            profile_from_dict({**PROFILE_JSON, "carbBands": {"Tempo": [60, 70, 80]}})
        with pytest.raises(PlanInputError, match="Efficiency"):
            profile_from_dict({**PROFILE_JSON, "efficiency": 0})

    def test_workout_from_dict(self):
        """Test timestamps and steps are parsed."""
        workout = workout_from_dict(WORKOUT_JSON)

        assert workout.type == SessionType.TEMPO
        assert workout.start == datetime(2024, 6, 14, 16, tzinfo=timezone.utc)
        assert workout.end == datetime(2024, 6, 14, 17, 30, tzinfo=timezone.utc)
        assert workout.planned_kj is None
        assert workout.steps[0].target_type == TargetType.PERCENT_FTP
        assert workout.steps[0].average_target() == 60

    def test_naive_timestamps_are_utc(self):
        """Test timestamps without an offset are read as UTC."""
        workout = workout_from_dict({**WORKOUT_JSON, "startISO": "2024-06-14T16:00:00"})
        assert workout.start.tzinfo == timezone.utc

    def test_workout_invalid_values(self):
        """Test bad timestamps, types and durations are rejected."""
        with pytest.raises(PlanInputError, match="timestamp"):
            workout_from_dict({**WORKOUT_JSON, "startISO": "next tuesday"})
        with pytest.raises(PlanInputError, match="session type"):
            workout_from_dict({**WORKOUT_JSON, "type": "Sprint"})
        with pytest.raises(PlanInputError, match="negative"):
            workout_from_dict({**WORKOUT_JSON, "duration_hr": -1})

    def test_workout_non_numeric_values(self):
        """Test non-numeric energy, FTP and step fields are rejected at load."""
        with pytest.raises(PlanInputError, match="ride-1"):
            workout_from_dict({**WORKOUT_JSON, "planned_kJ": "lots"})
        with pytest.raises(PlanInputError, match="ride-1"):
            workout_from_dict({**WORKOUT_JSON, "ftp_watts_at_plan": "strong"})
        with pytest.raises(PlanInputError, match="step"):
            workout_from_dict({**WORKOUT_JSON, "steps": [{"duration_s": "long", "target_type": "Watts"}]})
        with pytest.raises(PlanInputError, match="step"):
            workout_from_dict({**WORKOUT_JSON, "steps": [{"duration_s": 60, "target_type": "Watts", "target_lo": "hard"}]})

    def test_profile_non_numeric_efficiency(self):
        """Test a non-numeric efficiency is rejected at load."""
        with pytest.raises(PlanInputError, match="efficiency"):
            profile_from_dict({**PROFILE_JSON, "efficiency": "high"})

    def test_load_files(self, tmp_path):
        """Test loading profile and workouts from JSON files."""
        profile_path = tmp_path / "profile.json"
        profile_path.write_text(json.dumps({"internal": PROFILE_JSON}))
        workouts_path = tmp_path / "workouts.json"
        workouts_path.write_text(json.dumps([WORKOUT_JSON]))

        profile = load_profile(profile_path)
        workouts = load_workouts(workouts_path)

        assert profile.weight_kg == 68
        assert [w.id for w in workouts] == ["ride-1"]

    def test_load_workouts_requires_list(self, tmp_path):
        """Test a workout file must hold a list."""
        path = tmp_path / "workouts.json"
        path.write_text(json.dumps({"id": "ride-1"}))
        with pytest.raises(PlanInputError):
            load_workouts(path)

    def test_split_notes(self):
        """Test sentinel notes become flags and other notes keep their order."""
        flags, notes = split_notes(["first", "EMPTY_FLAG", "second", "UNDER_RECOVERY_FLAG"])
        assert flags == {WindowFlag.EMPTY, WindowFlag.UNDER_RECOVERY}
        assert notes == ["first", "second"]


class TestSamples:
    """Test the sample workout source."""

    def test_range_filter(self):
        """Test only overlapping workouts are returned."""
        source = SampleWorkoutSource(omit_planned_kj=False)
        workouts = source.get_planned_workouts(
            datetime(2024, 6, 14, tzinfo=timezone.utc),
            datetime(2024, 6, 16, tzinfo=timezone.utc),
        )
        assert [w.id for w in workouts] == ["wkt-tempo-001", "wkt-vo2-001"]

    def test_omit_planned_kj(self):
        """Test planned kJ is stripped on request."""
        source = SampleWorkoutSource(omit_planned_kj=True)
        workouts = source.get_planned_workouts("2024-06-10T00:00:00Z", "2024-06-20T00:00:00Z")
        assert len(workouts) == 4
        assert all(w.planned_kj is None for w in workouts)
        assert all(w.kj_source == "Estimated (steps)" for w in workouts)

    def test_profile_overrides_do_not_leak(self):
        """Test with_overrides clones nested containers."""
        base = sample_profile()
        variant = base.with_overrides(deficit_cap_per_window=250)
        variant.carb_bands[SessionType.TEMPO] = (10.0, 20.0)
        variant.activity_factor_overrides["2024-06-20"] = 2.0

        assert base.carb_bands[SessionType.TEMPO] == (60.0, 80.0)
        assert "2024-06-20" not in base.activity_factor_overrides
        assert base.deficit_cap_per_window == 500


class TestExport:
    """Test record, JSON and CSV export."""

    def setup_method(self):
        """Set up test fixtures."""
        profile = sample_profile()
        workouts = SampleWorkoutSource(omit_planned_kj=False).get_planned_workouts(
            "2024-06-10T00:00:00Z", "2024-06-20T00:00:00Z")
        windows = build_windows(profile, workouts)
        windows[0].tag(WindowFlag.EMPTY)
        self.windows, self.weekly = allocate_weekly_deficits(profile, windows, workouts)

    def test_window_record(self):
        """Test timestamps and flags in a window record."""
        record = window_to_record(self.windows[0])
        assert record["window_start"] == "2024-06-11T13:00:00.000Z"
        assert record["window_end"] == "2024-06-12T15:15:00.000Z"
        assert record["prev_workout_id"] == "START"
        assert record["next_workout_type"] == "Endurance"
        assert record["flags"] == ["EMPTY_FLAG"]
        assert record["notes"] == ["Deficit applied: 250"]

    def test_plan_to_json(self):
        """Test the JSON payload shape."""
        payload = json.loads(plan_to_json(self.windows, self.weekly))
        assert len(payload["windows"]) == 4
        assert [week["week_key"] for week in payload["weekly"]] == ["2024-W24", "2024-W25"]
        assert payload["weekly"][0]["week_start"] == "2024-06-10T00:00:00.000Z"
        assert payload["weekly"][0]["week_end"] == "2024-06-16T23:59:59.999Z"

    def test_csv(self):
        """Test CSV headers and row counts."""
        windows_lines = windows_to_csv(self.windows).strip().splitlines()
        weekly_lines = weekly_to_csv(self.weekly).strip().splitlines()
        assert "need_kcal" in windows_lines[0]
        assert len(windows_lines) == 5
        assert "carry_over_kcal" in weekly_lines[0]
        assert len(weekly_lines) == 3

    def test_window_record_loads_back(self):
        """Test an exported window rebuilds into an equal WindowPlan."""
        payload = json.loads(plan_to_json(self.windows, self.weekly))
        loaded = window_from_dict(payload["windows"][0])
        assert loaded == self.windows[0]

    def test_sentinel_notes_become_flags(self):
        """Test flag strings stored as notes are routed into flags."""
        record = window_to_record(self.windows[1])
        record["notes"] = ["UNDER_RECOVERY_FLAG"] + record["notes"]

        window = window_from_dict(record)

        assert window.flags == {WindowFlag.UNDER_RECOVERY}
        assert window.notes == ["Deficit applied: 500"]

    def test_load_windows_file(self, tmp_path):
        """Test loading the windows of a saved plan."""
        path = tmp_path / "plan.json"
        path.write_text(plan_to_json(self.windows, self.weekly))
        assert load_windows(path) == self.windows

    def test_window_record_missing_field(self):
        """Test incomplete window records are rejected."""
        record = window_to_record(self.windows[0])
        del record["need_kcal"]
        with pytest.raises(PlanInputError, match="missing"):
            window_from_dict(record)
