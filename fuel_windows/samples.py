"""Sample athlete profile and planned workouts for demos and tests."""

from datetime import datetime
from typing import List, Optional

from .analysis.energy import EnergySource
from .config import config
from .models import (
    CarbSplit,
    EfficiencyPreset,
    PlannedWorkout,
    Profile,
    SessionType,
    Sex,
    Step,
    TargetType,
)
from .units import parse_timestamp


def sample_profile() -> Profile:
    """A fresh copy of the sample athlete: 34-year-old female cyclist, 68 kg, FTP 250 W."""
    return Profile(
        sex=Sex.FEMALE,
        age_years=34,
        height_cm=170,
        weight_kg=68,
        ftp_watts=250,
        efficiency_preset=EfficiencyPreset.COMPETITIVE,
        efficiency=EfficiencyPreset.COMPETITIVE.default_efficiency,
        activity_factor_default=1.4,
        activity_factor_overrides={"2024-06-14": 1.3},
        target_kg_per_week=-0.5,
        kcal_per_kg=7700,
        deficit_cap_per_window=500,
        window_pct_cap=0.3,
        protein_g_per_kg=1.8,
        fat_g_per_kg_min=0.8,
        carb_bands={
            SessionType.ENDURANCE: (55.0, 70.0),
            SessionType.TEMPO: (60.0, 80.0),
            SessionType.THRESHOLD: (70.0, 90.0),
            SessionType.VO2: (80.0, 100.0),
            SessionType.RACE: (90.0, 120.0),
            SessionType.REST: (0.0, 0.0),
        },
        carb_split=CarbSplit(pre=0.2, during=0.6, post=0.2),
        glu_fru_ratio=0.8,
    )


def _vo2_steps() -> List[Step]:
    steps = [Step(0, 900, TargetType.PERCENT_FTP, 55, 65)]
    offset = 900
    for _ in range(4):
        steps.append(Step(offset, 180, TargetType.PERCENT_FTP, 110, 120))
        steps.append(Step(offset + 180, 180, TargetType.PERCENT_FTP, 50, 55))
        offset += 360
    steps.append(Step(offset, 660, TargetType.PERCENT_FTP, 50, 60))
    return steps


def sample_workouts() -> List[PlannedWorkout]:
    """Four planned rides spread over ISO weeks 2024-W24 and 2024-W25."""
    return [
        PlannedWorkout(
            id="wkt-endurance-001",
            title="Aerobic Endurance Ride",
            type=SessionType.ENDURANCE,
            start=parse_timestamp("2024-06-12T13:00:00Z"),
            end=parse_timestamp("2024-06-12T15:15:00Z"),
            duration_hr=2.25,
            planned_kj=1350,
            ftp_watts_at_plan=250,
            source="intervals",
            kj_source="ICU Structured",
        ),
        PlannedWorkout(
            id="wkt-tempo-001",
            title="Sweet Spot Tempo Finish",
            type=SessionType.TEMPO,
            start=parse_timestamp("2024-06-14T16:00:00Z"),
            end=parse_timestamp("2024-06-14T17:30:00Z"),
            duration_hr=1.5,
            planned_kj=900,
            ftp_watts_at_plan=250,
            steps=[
                Step(0, 900, TargetType.PERCENT_FTP, 55, 65),
                Step(900, 1800, TargetType.PERCENT_FTP, 88, 92),
            ],
            source="intervals",
            kj_source="ICU Structured",
        ),
        PlannedWorkout(
            id="wkt-vo2-001",
            title="VO2 Max 4x3",
            type=SessionType.VO2,
            start=parse_timestamp("2024-06-15T14:30:00Z"),
            end=parse_timestamp("2024-06-15T15:20:00Z"),
            duration_hr=50 / 60,
            planned_kj=750,
            ftp_watts_at_plan=250,
            steps=_vo2_steps(),
            source="intervals",
            kj_source="ICU Structured",
        ),
        PlannedWorkout(
            id="wkt-endurance-002",
            title="Easy Spin",
            type=SessionType.ENDURANCE,
            start=parse_timestamp("2024-06-18T06:00:00Z"),
            end=parse_timestamp("2024-06-18T07:30:00Z"),
            duration_hr=1.5,
            ftp_watts_at_plan=250,
            source="file",
        ),
    ]


class SampleWorkoutSource:
    """Serves the sample workouts the way a remote calendar would."""

    def __init__(self, omit_planned_kj: Optional[bool] = None):
        """Initialize the source.

        Args:
            omit_planned_kj: Drop planned kJ to simulate a source without it
                (defaults to the FUEL_OMIT_KJ setting)
        """
        self.omit_planned_kj = config.OMIT_PLANNED_KJ if omit_planned_kj is None else omit_planned_kj

    def get_planned_workouts(self, start: datetime, end: datetime) -> List[PlannedWorkout]:
        """Copies of the sample workouts overlapping [start, end]."""
        start = parse_timestamp(start)
        end = parse_timestamp(end)
        selected = []
        for workout in sample_workouts():
            if workout.end < start or workout.start > end:
                continue
            copy = workout.copy()
            if self.omit_planned_kj:
                copy.planned_kj = None
                copy.kj_source = EnergySource.STEPS.value
            selected.append(copy)
        return selected
