"""
Strength standard registry.

Standards are loaded from the bundled ``src/liftcoach/standards/*.yaml``
files (plus ``~/.liftcoach/standards/`` overrides) at import time. If no
standard can be loaded a RuntimeError is raised: strength classification
cannot work without them.
"""

from .base import StrengthStandard
from .loader import load_standards


def _build_registry() -> dict[str, StrengthStandard]:
    loaded = load_standards()
    if not loaded:
        raise RuntimeError(
            "liftcoach: no strength standards could be loaded. "
            "Check that src/liftcoach/standards/*.yaml files are present and valid."
        )
    return loaded


STANDARDS_REGISTRY: dict[str, StrengthStandard] = _build_registry()


def get_standard(lift_id: str) -> StrengthStandard:
    """
    Return the StrengthStandard for the given lift_id.

    Args:
        lift_id: One of "squat", "bench", "deadlift", "ohp", "row" (or any user lift)

    Returns:
        StrengthStandard for the requested lift

    Raises:
        ValueError: If lift_id is not in the registry
    """
    if lift_id not in STANDARDS_REGISTRY:
        valid = ", ".join(STANDARDS_REGISTRY)
        raise ValueError(f"Unknown lift '{lift_id}'. Valid IDs: {valid}")
    return STANDARDS_REGISTRY[lift_id]


def find_standard(
    exercise_name: str,
    registry: dict[str, StrengthStandard] | None = None,
) -> StrengthStandard | None:
    """
    Match a logged exercise name to a key lift by alias.

    The standard with the longest matching alias wins, so specific names
    ("тяга к поясу") beat generic fragments.

    Returns:
        The matching StrengthStandard, or None for accessory exercises
    """
    registry = STANDARDS_REGISTRY if registry is None else registry
    best: StrengthStandard | None = None
    best_len = 0
    for std in registry.values():
        n = std.match_length(exercise_name)
        if n > best_len:
            best, best_len = std, n
    return best
