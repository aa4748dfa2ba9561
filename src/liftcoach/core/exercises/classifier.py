"""
Keyword-based movement classification.

Program sources do not tag exercises reliably: a plank may arrive tagged
"strength" with no weight, or with no tag at all. The tag is trusted
first; the name keyword tables are consulted only when the tag is missing
or a "strength" exercise has no prescribed load.

Tables cover English and Russian exercise names. Construct a
MovementClassifier with your own tables to extend them.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import Exercise, MovementPattern, MovementType

CARDIO_KEYWORDS: tuple[str, ...] = (
    "cardio", "running", "jogging", "brisk walk", "incline walk", "bike", "cycling",
    "elliptical", "jump rope",
    "treadmill", "stepper", "rowing machine",
    "кардио", "бег", "ходьба", "велосипед", "сайкл", "эллипс", "скакалк",
    "прыжк", "дорожк", "степпер", "гребля", "велотренажёр",
)

ISOMETRIC_KEYWORDS: tuple[str, ...] = (
    "plank", "hold", "wall sit", "dead hang", "l-sit", "hollow", "bird-dog", "bird dog",
    "удержан", "статик", "вис ", "стойка", "планка", "планк", "птица-собака",
)

BODYWEIGHT_KEYWORDS: tuple[str, ...] = (
    "push-up", "push up", "pushup", "pull-up", "pull up", "pullup", "chin-up", "chin up",
    "crunch", "sit-up", "sit up", "leg raise", "burpee", "jump squat",
    "bodyweight", "air squat", "hyperextension",
    "отжиман", "подтягив", "пресс", "скручиван", "в висе", "подъём ног",
    "подъем ног", "берпи", "выпрыгив", "присед без", "гиперэкстензия без",
)

# Checked before the general table: these names contain keywords of another pattern.
PATTERN_EXCEPTIONS: tuple[tuple[str, MovementPattern], ...] = (
    ("leg curl", "hinge"),
    ("back extension", "hinge"),
    ("hyperextension", "hinge"),
    ("сгибани", "hinge"),
    ("leg extension", "squat"),
    ("разгибани", "squat"),
    ("leg raise", "core"),
    ("calf raise", "squat"),
)

# Ordered: first pattern whose keyword appears in the name wins.
PATTERN_KEYWORDS: tuple[tuple[MovementPattern, tuple[str, ...]], ...] = (
    ("squat", (
        "squat", "lunge", "leg press", "step up", "step-up", "bulgarian", "hack", "goblet",
        "присед", "выпады",
    )),
    ("hinge", (
        "deadlift", "rdl", "clean", "snatch", "swing", "good morning", "hip thrust",
        "glute", "тяга", "мост",
    )),
    ("push", (
        "bench", "press", "push", "dip", "fly", "raise", "tricep", "skullcrusher",
        "extension", "жим", "отжимания", "разводк",
    )),
    ("pull", (
        "row", "pull", "chin", "lat", "curl", "shrug", "bicep", "подтягиван",
    )),
    ("core", (
        "plank", "crunch", "sit up", "sit-up", "leg raise", "ab ", "hollow", "russian",
        "планк", "скручиван", "пресс",
    )),
)

# Row-type pulls named with "тяга" would otherwise read as hinges.
PULL_OVERRIDES: tuple[str, ...] = (
    "тяга к поясу", "тяга штанги", "тяга гантели", "тяга верхнего", "тяга блока",
)


@dataclass(frozen=True)
class MovementClassifier:
    """Injectable keyword tables for movement type and pattern inference."""

    cardio_keywords: tuple[str, ...] = CARDIO_KEYWORDS
    isometric_keywords: tuple[str, ...] = ISOMETRIC_KEYWORDS
    bodyweight_keywords: tuple[str, ...] = BODYWEIGHT_KEYWORDS
    pattern_exceptions: tuple[tuple[str, MovementPattern], ...] = PATTERN_EXCEPTIONS
    pattern_keywords: tuple[tuple[MovementPattern, tuple[str, ...]], ...] = PATTERN_KEYWORDS
    pull_overrides: tuple[str, ...] = PULL_OVERRIDES

    def infer_movement_type(self, name: str) -> MovementType | None:
        """Return the movement type suggested by the name, or None if no keyword matches."""
        n = name.lower()
        if any(k in n for k in self.cardio_keywords):
            return "cardio"
        if any(k in n for k in self.isometric_keywords):
            return "isometric"
        if any(k in n for k in self.bodyweight_keywords):
            return "bodyweight"
        return None

    def movement_type(self, exercise: Exercise) -> MovementType:
        """
        Effective movement type of an exercise.

        A missing tag is inferred from the name (default "strength"). A
        "strength" tag without prescribed load is re-checked against the
        keyword tables; explicit non-strength tags are trusted as given.
        """
        tag = exercise.movement_type
        if tag is None:
            return self.infer_movement_type(exercise.name) or "strength"
        if tag == "strength" and not exercise.weight_kg:
            inferred = self.infer_movement_type(exercise.name)
            if inferred is not None:
                return inferred
        return tag

    def requires_load(self, exercise: Exercise) -> bool:
        """True if sets of this exercise need a weight above zero to count as valid."""
        return self.movement_type(exercise) == "strength"

    def movement_pattern(self, name: str) -> MovementPattern:
        """Classify an exercise name into push/pull/squat/hinge/core ("other" if unknown)."""
        n = name.lower()
        for keyword, pattern in self.pattern_exceptions:
            if keyword in n:
                return pattern
        if any(k in n for k in self.pull_overrides):
            return "pull"
        for pattern, keywords in self.pattern_keywords:
            if any(k in n for k in keywords):
                return pattern
        return "other"


DEFAULT_CLASSIFIER = MovementClassifier()
