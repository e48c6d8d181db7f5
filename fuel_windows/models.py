"""Data model for athlete profiles, planned workouts and fuel window plans."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple


class SessionType(Enum):
    """Planned session categories."""
    ENDURANCE = "Endurance"
    TEMPO = "Tempo"
    THRESHOLD = "Threshold"
    VO2 = "VO2"
    RACE = "Race"
    REST = "Rest"

    @property
    def is_hard(self) -> bool:
        """Hard sessions are protected from deficit allocation."""
        return self in HARD_SESSION_TYPES


HARD_SESSION_TYPES = frozenset({SessionType.THRESHOLD, SessionType.VO2, SessionType.RACE})


class EfficiencyPreset(Enum):
    """Gross efficiency presets with their default efficiency ratio."""
    WORLD_CLASS = "WorldClass"
    ELITE = "Elite"
    COMPETITIVE = "Competitive"
    ENTHUSIAST = "Enthusiast"

    @property
    def default_efficiency(self) -> float:
        return PRESET_EFFICIENCY[self]


PRESET_EFFICIENCY = {
    EfficiencyPreset.WORLD_CLASS: 0.25,
    EfficiencyPreset.ELITE: 0.24,
    EfficiencyPreset.COMPETITIVE: 0.22,
    EfficiencyPreset.ENTHUSIAST: 0.20,
}


class Sex(Enum):
    MALE = "M"
    FEMALE = "F"


class TargetType(Enum):
    """How a structured step expresses its intensity."""
    PERCENT_FTP = "%FTP"
    WATTS = "Watts"
    RPE = "RPE"


class WindowFlag(Enum):
    """Weight-safety flags attached to a window by external analysis.

    EMPTY marks an anomalous overnight mass drop and halves the window's
    deficit allowance. UNDER_RECOVERY marks mass loss faster than planned
    and zeroes the allowance.
    """
    EMPTY = "EMPTY_FLAG"
    UNDER_RECOVERY = "UNDER_RECOVERY_FLAG"

    @classmethod
    def from_note(cls, note: str) -> Optional["WindowFlag"]:
        """Return the flag a sentinel note string stands for, if any."""
        for flag in cls:
            if flag.value == note:
                return flag
        return None


def split_notes(notes: Iterable[str]) -> Tuple[Set[WindowFlag], List[str]]:
    """Separate sentinel flag strings from display notes, keeping note order."""
    flags: Set[WindowFlag] = set()
    display: List[str] = []
    for note in notes:
        flag = WindowFlag.from_note(note)
        if flag is None:
            display.append(note)
        else:
            flags.add(flag)
    return flags, display


@dataclass(frozen=True)
class CarbSplit:
    """Pre/during/post carbohydrate weights.

    The weights are ratios relative to ``during``; they need not sum to any
    total. Pre and post grams are only defined when ``during`` > 0, otherwise
    they collapse to zero.
    """
    pre: float
    during: float
    post: float

    @property
    def has_during(self) -> bool:
        return self.during > 0

    @property
    def pre_per_during(self) -> float:
        return self.pre / self.during if self.has_during else 0.0

    @property
    def post_per_during(self) -> float:
        return self.post / self.during if self.has_during else 0.0


@dataclass(frozen=True)
class Profile:
    """Athlete profile. Immutable; derive variants with ``with_overrides``."""
    sex: Sex
    age_years: float
    height_cm: float
    weight_kg: float
    efficiency_preset: EfficiencyPreset
    efficiency: float
    activity_factor_default: float
    target_kg_per_week: float
    kcal_per_kg: float
    deficit_cap_per_window: float
    protein_g_per_kg: float
    fat_g_per_kg_min: float
    carb_bands: Dict[SessionType, Tuple[float, float]]
    carb_split: CarbSplit
    glu_fru_ratio: float
    ftp_watts: Optional[float] = None
    activity_factor_overrides: Dict[str, float] = field(default_factory=dict)
    window_pct_cap: Optional[float] = None
    use_imperial: bool = False

    def activity_factor_for(self, day_key: str) -> float:
        """Activity factor for a ``YYYY-MM-DD`` key, falling back to the default."""
        return self.activity_factor_overrides.get(day_key, self.activity_factor_default)

    def carb_band_for(self, session_type: SessionType) -> Tuple[float, float]:
        """Carb band for a session type; Endurance band when the type has none."""
        band = self.carb_bands.get(session_type)
        if band is None:
            band = self.carb_bands[SessionType.ENDURANCE]
        return band

    def with_overrides(self, **changes) -> "Profile":
        """Return a copy with ``changes`` applied and nested containers cloned."""
        changes.setdefault("carb_bands", {key: (low, high) for key, (low, high) in self.carb_bands.items()})
        changes.setdefault("activity_factor_overrides", dict(self.activity_factor_overrides))
        changes.setdefault("carb_split", replace(self.carb_split))
        return replace(self, **changes)


@dataclass
class Step:
    """One structured workout step."""
    start_s: float
    duration_s: float
    target_type: TargetType
    target_lo: Optional[float] = None
    target_hi: Optional[float] = None

    def average_target(self) -> float:
        """Midpoint of the target bounds; a missing bound mirrors the other."""
        low = self.target_lo if self.target_lo is not None else self.target_hi
        if low is None:
            low = 0.0
        high = self.target_hi if self.target_hi is not None else low
        return (low + high) / 2


@dataclass
class PlannedWorkout:
    """A normalized planned workout."""
    id: str
    type: SessionType
    start: datetime
    end: datetime
    duration_hr: float
    planned_kj: Optional[float] = None
    ftp_watts_at_plan: Optional[float] = None
    steps: List[Step] = field(default_factory=list)
    title: Optional[str] = None
    source: str = "file"
    kj_source: Optional[str] = None

    def copy(self) -> "PlannedWorkout":
        return replace(self, steps=[replace(step) for step in self.steps])


@dataclass
class CarbPlan:
    g_per_hr: float
    pre_g: float
    during_g: float
    post_g: float
    glu_fru_ratio: float

    @property
    def total_g(self) -> float:
        return self.pre_g + self.during_g + self.post_g


@dataclass
class MacroTargets:
    protein_g: float
    fat_g: float
    carb_g: float

    @property
    def kcal(self) -> float:
        return self.protein_g * 4 + self.fat_g * 9 + self.carb_g * 4


@dataclass
class WindowPlan:
    """Energy and fueling prescription for the span ending at one workout.

    ``need_kcal`` is fixed once built; ``target_kcal`` is lowered by the
    weekly allocator and never exceeds ``need_kcal``.
    """
    window_start: datetime
    window_end: datetime
    prev_workout_id: str
    next_workout_id: str
    next_workout_type: SessionType
    need_kcal: float
    target_kcal: float
    activity_factor_applied: float
    carbs: CarbPlan
    macros: MacroTargets
    notes: List[str] = field(default_factory=list)
    flags: Set[WindowFlag] = field(default_factory=set)

    @property
    def deficit_kcal(self) -> float:
        return self.need_kcal - self.target_kcal

    def tag(self, flag: WindowFlag) -> None:
        self.flags.add(flag)

    def copy(self) -> "WindowPlan":
        return replace(
            self,
            carbs=replace(self.carbs),
            macros=replace(self.macros),
            notes=list(self.notes),
            flags=set(self.flags),
        )


@dataclass(frozen=True)
class WeeklyPlan:
    """Deficit placement summary for one ISO week."""
    week_key: str
    week_start: datetime
    week_end: datetime
    weekly_target_deficit_kcal: float
    weekly_allocated_kcal: float
    macros: MacroTargets
    carry_over_kcal: Optional[float] = None
