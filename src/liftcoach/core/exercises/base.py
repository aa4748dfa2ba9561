"""
StrengthStandard: relative-strength bands for one key lift.

A standard maps e1RM / body weight onto five bands per gender. Each band
value is the lower bound of that band:

    untrained <= beginner <= intermediate <= advanced <= elite

Classification maps the bands onto the user-facing levels one step up
(below ``beginner`` -> "beginner", ``beginner`` -> "novice", and so on).
"""

from __future__ import annotations

from dataclasses import dataclass

BAND_NAMES: tuple[str, ...] = ("untrained", "beginner", "intermediate", "advanced", "elite")


@dataclass(frozen=True)
class StrengthStandard:
    """Relative-strength thresholds and name aliases for one lift."""

    lift_id: str  # "squat", "bench", ...
    display_name: str
    movement_pattern: str  # push | pull | squat | hinge | core
    aliases: tuple[str, ...]
    male: tuple[float, ...]  # five thresholds in BAND_NAMES order
    female: tuple[float, ...]

    def __post_init__(self) -> None:
        for gender, bands in (("male", self.male), ("female", self.female)):
            if len(bands) != len(BAND_NAMES):
                raise ValueError(
                    f"{self.lift_id}: {gender} needs {len(BAND_NAMES)} bands, got {len(bands)}"
                )
            if list(bands) != sorted(bands):
                raise ValueError(f"{self.lift_id}: {gender} bands must be ascending")
        if not self.aliases:
            raise ValueError(f"{self.lift_id}: at least one alias is required")

    def bands_for(self, gender: str) -> tuple[float, ...]:
        """Return the five thresholds for a gender."""
        return self.female if gender == "female" else self.male

    def match_length(self, exercise_name: str) -> int:
        """Length of the longest alias contained in exercise_name (0 = no match)."""
        name = exercise_name.lower()
        return max((len(a) for a in self.aliases if a.lower() in name), default=0)
