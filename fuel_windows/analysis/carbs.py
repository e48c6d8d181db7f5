"""Carbohydrate fueling plan for a single window."""

import logging
from dataclasses import dataclass

from ..models import CarbPlan, PlannedWorkout, Profile, SessionType
from ..units import KCAL_PER_G_CARB, round_half_up

logger = logging.getLogger(__name__)

# Carb kcal may not exceed this share of the window's need on easy sessions
OVER_FUEL_GUARD_FRACTION = 0.6

GUARDED_SESSION_TYPES = frozenset({SessionType.ENDURANCE, SessionType.TEMPO})


@dataclass
class CarbComputation:
    """Unrounded carbohydrate plan plus the over-fuel guard outcome."""
    g_per_hr: float
    pre_g: float
    during_g: float
    post_g: float
    glu_fru_ratio: float
    over_fuel_guard_applied: bool = False

    @property
    def total_g(self) -> float:
        return self.pre_g + self.during_g + self.post_g

    def to_plan(self) -> CarbPlan:
        """Rounded plan for display and export."""
        return CarbPlan(
            g_per_hr=round_half_up(self.g_per_hr, 1),
            pre_g=round_half_up(self.pre_g, 1),
            during_g=round_half_up(self.during_g, 1),
            post_g=round_half_up(self.post_g, 1),
            glu_fru_ratio=round_half_up(self.glu_fru_ratio, 2),
        )


def select_carb_rate(profile: Profile, session_type: SessionType) -> float:
    """Pick the g/hr rate from the session's carb band.

    Rest takes nothing, hard sessions the top of the band, Tempo the
    midpoint and everything else the bottom.
    """
    low, high = profile.carb_band_for(session_type)
    if session_type == SessionType.REST:
        return 0.0
    if session_type.is_hard:
        return high
    if session_type == SessionType.TEMPO:
        return (low + high) / 2
    return low


def compute_carb_plan(profile: Profile, workout: PlannedWorkout, window_need_kcal: float) -> CarbComputation:
    """Compute pre/during/post carbohydrate grams for the workout closing a window.

    Args:
        profile: Athlete profile (carb bands, split, glucose:fructose ratio)
        workout: The workout the window ends with
        window_need_kcal: Total energy need of the window

    Returns:
        CarbComputation, scaled down when the over-fuel guard fires
    """
    rate = select_carb_rate(profile, workout.type)
    if rate == 0 or workout.duration_hr <= 0:
        return CarbComputation(0.0, 0.0, 0.0, 0.0, profile.glu_fru_ratio)

    split = profile.carb_split
    during = rate * workout.duration_hr
    pre = split.pre_per_during * during if split.has_during else 0.0
    post = split.post_per_during * during if split.has_during else 0.0

    carb_kcal = (pre + during + post) * KCAL_PER_G_CARB
    guard_limit = window_need_kcal * OVER_FUEL_GUARD_FRACTION
    if workout.type in GUARDED_SESSION_TYPES and carb_kcal > 0 and guard_limit > 0 and carb_kcal > guard_limit:
        scale = guard_limit / carb_kcal
        logger.info(
            f"Over-fuel guard on {workout.id}: {carb_kcal:.0f} kcal of carbs exceeds "
            f"{guard_limit:.0f} kcal, scaling by {scale:.3f}"
        )
        return CarbComputation(
            g_per_hr=rate * scale,
            pre_g=pre * scale,
            during_g=during * scale,
            post_g=post * scale,
            glu_fru_ratio=profile.glu_fru_ratio,
            over_fuel_guard_applied=True,
        )

    return CarbComputation(rate, pre, during, post, profile.glu_fru_ratio)
