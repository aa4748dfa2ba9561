"""
Exercise knowledge for liftcoach.

Strength standards (relative-strength bands per key lift) come from YAML
data files; the movement classifier maps exercise names to movement types
and patterns.
"""

from .base import StrengthStandard
from .classifier import DEFAULT_CLASSIFIER, MovementClassifier
from .registry import STANDARDS_REGISTRY, find_standard, get_standard

__all__ = [
    "StrengthStandard",
    "MovementClassifier",
    "DEFAULT_CLASSIFIER",
    "STANDARDS_REGISTRY",
    "find_standard",
    "get_standard",
]
