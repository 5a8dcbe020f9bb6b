"""
Configuration constants for the set-log analytics.

All adjustable thresholds are centralized here. The bundled analytics.yaml
mirrors these values; see core/engine/config_loader.py for overrides.
"""

from dataclasses import dataclass, fields
from typing import Any, Final

# =============================================================================
# REST CAPTURE
# =============================================================================

REST_CAP_SECONDS: Final[int] = 180  # Rest after a set is clamped to [0, cap]
SESSION_TAIL_SECONDS: Final[int] = 180  # Assumed rest after the last set of a day

# =============================================================================
# SESSION QUALITY
# =============================================================================

MIN_SETS_FOR_ANALYSIS: Final[int] = 2  # Fewer working sets -> insufficient
DISTINCT_WEIGHT_SET_THRESHOLD: Final[int] = 4  # All weights distinct below this -> incomplete
MAX_REP_GAP: Final[int] = 4  # Adjacent rep drop above this -> incomplete

BASELINE_WARNING: Final[str] = "Last session data may be incomplete"

# =============================================================================
# PROGRESSIVE OVERLOAD
# =============================================================================

WEIGHT_INCREMENT_KG: Final[float] = 2.5  # Standard plate jump
LOW_REP_THRESHOLD: Final[float] = 6  # Average reps below -> add reps
HIGH_REP_THRESHOLD: Final[float] = 12  # Average reps above -> add weight
CONSERVATIVE_SET_COUNT: Final[int] = 3  # More sets than this -> +1 rep, else +2
MAX_REP_INCREASE_FIRST_SET: Final[int] = 2  # First set absorbs at most this many reps


@dataclass(frozen=True)
class AnalyticsConfig:
    """Thresholds used by the quality classifier, overload generator and rest capture."""

    rest_cap_seconds: int = REST_CAP_SECONDS
    session_tail_seconds: int = SESSION_TAIL_SECONDS
    min_sets_for_analysis: int = MIN_SETS_FOR_ANALYSIS
    distinct_weight_set_threshold: int = DISTINCT_WEIGHT_SET_THRESHOLD
    max_rep_gap: int = MAX_REP_GAP
    weight_increment_kg: float = WEIGHT_INCREMENT_KG
    low_rep_threshold: float = LOW_REP_THRESHOLD
    high_rep_threshold: float = HIGH_REP_THRESHOLD
    conservative_set_count: int = CONSERVATIVE_SET_COUNT
    max_rep_increase_first_set: int = MAX_REP_INCREASE_FIRST_SET

    def __post_init__(self) -> None:
        if self.rest_cap_seconds < 0:
            raise ValueError("rest_cap_seconds must be non-negative")
        if self.weight_increment_kg <= 0:
            raise ValueError("weight_increment_kg must be positive")
        if self.low_rep_threshold > self.high_rep_threshold:
            raise ValueError("low_rep_threshold must not exceed high_rep_threshold")

    @classmethod
    def from_sections(cls, sections: dict[str, Any]) -> "AnalyticsConfig":
        """
        Build a config from YAML-style sections.

        Section names are ignored; any UPPER_CASE key whose lower-cased form
        matches a field is applied. Unknown keys are skipped.

        Args:
            sections: Mapping of section name -> {CONSTANT_NAME: value}

        Returns:
            AnalyticsConfig with overrides applied on top of the defaults
        """
        known = {f.name: f.type for f in fields(cls)}
        values: dict[str, Any] = {}
        for section in sections.values():
            if not isinstance(section, dict):
                continue
            for key, value in section.items():
                name = str(key).lower()
                if name not in known:
                    continue
                values[name] = float(value) if "float" in str(known[name]) else int(value)
        return cls(**values)


DEFAULT_CONFIG: Final[AnalyticsConfig] = AnalyticsConfig()
