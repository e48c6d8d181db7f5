"""Configuration management for the fuel window planner."""

import os
from datetime import datetime, timezone
from typing import Dict, Tuple
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Application
    LOG_LEVEL: str = os.getenv("FUEL_LOG_LEVEL", "INFO")

    # Profile defaults (used when a profile file leaves a field out)
    EFFICIENCY_PRESET: str = os.getenv("FUEL_EFFICIENCY_PRESET", "Competitive")
    ACTIVITY_FACTOR: float = float(os.getenv("FUEL_ACTIVITY_FACTOR", "1.4"))
    TARGET_KG_PER_WEEK: float = float(os.getenv("FUEL_TARGET_KG_PER_WEEK", "-0.5"))
    KCAL_PER_KG: float = float(os.getenv("FUEL_KCAL_PER_KG", "7700"))
    DEFICIT_CAP_PER_WINDOW: float = float(os.getenv("FUEL_DEFICIT_CAP_PER_WINDOW", "500"))
    WINDOW_PCT_CAP: float = float(os.getenv("FUEL_WINDOW_PCT_CAP", "0.3"))
    PROTEIN_G_PER_KG: float = float(os.getenv("FUEL_PROTEIN_G_PER_KG", "1.8"))
    FAT_G_PER_KG_MIN: float = float(os.getenv("FUEL_FAT_G_PER_KG_MIN", "0.8"))
    GLU_FRU_RATIO: float = float(os.getenv("FUEL_GLU_FRU_RATIO", "0.8"))

    # Pre / during / post carbohydrate weights, relative to "during"
    CARB_SPLIT: Dict[str, float] = {
        "pre": float(os.getenv("FUEL_CARB_SPLIT_PRE", "0.2")),
        "during": float(os.getenv("FUEL_CARB_SPLIT_DURING", "0.6")),
        "post": float(os.getenv("FUEL_CARB_SPLIT_POST", "0.2")),
    }

    # Carbohydrate bands in g/hr (low, high) per session type
    CARB_BANDS: Dict[str, Tuple[float, float]] = {
        "Endurance": (float(os.getenv("FUEL_CARBS_ENDURANCE_LO", "55")), float(os.getenv("FUEL_CARBS_ENDURANCE_HI", "70"))),
        "Tempo": (float(os.getenv("FUEL_CARBS_TEMPO_LO", "60")), float(os.getenv("FUEL_CARBS_TEMPO_HI", "80"))),
        "Threshold": (float(os.getenv("FUEL_CARBS_THRESHOLD_LO", "70")), float(os.getenv("FUEL_CARBS_THRESHOLD_HI", "90"))),
        "VO2": (float(os.getenv("FUEL_CARBS_VO2_LO", "80")), float(os.getenv("FUEL_CARBS_VO2_HI", "100"))),
        "Race": (float(os.getenv("FUEL_CARBS_RACE_LO", "90")), float(os.getenv("FUEL_CARBS_RACE_HI", "120"))),
        "Rest": (0.0, 0.0),
    }

    # Sample workout source
    SAMPLE_START: str = os.getenv("FUEL_SAMPLE_START", "2024-06-10T00:00:00Z")
    SAMPLE_END: str = os.getenv("FUEL_SAMPLE_END", "2024-06-20T00:00:00Z")
    OMIT_PLANNED_KJ: bool = os.getenv("FUEL_OMIT_KJ", "0").lower() in ("1", "true")

    @classmethod
    def get_sample_range(cls) -> Tuple[datetime, datetime]:
        """Parse and return the sample source range as UTC datetimes."""
        start = datetime.fromisoformat(cls.SAMPLE_START.replace("Z", "+00:00"))
        end = datetime.fromisoformat(cls.SAMPLE_END.replace("Z", "+00:00"))
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        return start, end

    @classmethod
    def validate(cls) -> bool:
        """Validate configured defaults."""
        if cls.DEFICIT_CAP_PER_WINDOW < 0:
            raise ValueError("FUEL_DEFICIT_CAP_PER_WINDOW must not be negative")
        if cls.CARB_SPLIT["during"] <= 0:
            raise ValueError("FUEL_CARB_SPLIT_DURING must be greater than zero")
        for session_type, (low, high) in cls.CARB_BANDS.items():
            if low > high:
                raise ValueError(f"Carb band for {session_type} has low > high ({low} > {high})")
        return True


config = Config()
