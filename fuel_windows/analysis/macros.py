"""Protein / fat / carbohydrate targets from a calorie budget."""

from ..models import MacroTargets, Profile
from ..units import KCAL_PER_G_CARB, KCAL_PER_G_FAT, KCAL_PER_G_PROTEIN, round_half_up


def compute_macro_targets(profile: Profile, target_kcal: float) -> MacroTargets:
    """Split a calorie target into macro grams.

    Protein is filled first from its g/kg floor, then fat from its g/kg
    minimum; whatever budget is left becomes carbohydrate. When a floor does
    not fit, that macro is clamped to exactly the remaining budget.

    Args:
        profile: Athlete profile (body mass, protein and fat floors)
        target_kcal: Calorie budget for the window

    Returns:
        MacroTargets rounded to 0.1 g, never negative
    """
    protein_g = profile.protein_g_per_kg * profile.weight_kg
    remaining = max(0.0, target_kcal - protein_g * KCAL_PER_G_PROTEIN)
    if remaining == 0 and protein_g * KCAL_PER_G_PROTEIN > target_kcal:
        protein_g = target_kcal / KCAL_PER_G_PROTEIN

    fat_g = profile.fat_g_per_kg_min * profile.weight_kg
    fat_kcal = fat_g * KCAL_PER_G_FAT
    if fat_kcal > remaining:
        fat_g = remaining / KCAL_PER_G_FAT
        remaining = 0.0
    else:
        remaining -= fat_kcal

    carb_g = remaining / KCAL_PER_G_CARB if remaining > 0 else 0.0

    return MacroTargets(
        protein_g=round_half_up(max(0.0, protein_g), 1),
        fat_g=round_half_up(max(0.0, fat_g), 1),
        carb_g=round_half_up(max(0.0, carb_g), 1),
    )
