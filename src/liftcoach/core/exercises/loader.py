"""
YAML -> StrengthStandard loader.

Loads strength standards from individual YAML files in the bundled
``src/liftcoach/standards/`` directory, one file per lift (squat.yaml, ...).

User overrides: place matching files in ``~/.liftcoach/standards/``.
A user file is deep-merged over the bundled standard, so only changed
keys need to be listed (e.g. just ``standards.female.elite``). A user
file with no bundled counterpart is loaded as a new lift.
"""

from __future__ import annotations

import logging
import os
import warnings
from pathlib import Path

import yaml

from .base import BAND_NAMES, StrengthStandard

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS: frozenset[str] = frozenset(
    {"lift_id", "display_name", "movement_pattern", "aliases", "standards"}
)
_PATTERNS: frozenset[str] = frozenset({"push", "pull", "squat", "hinge", "core"})


def _bands(raw: dict, gender: str, lift_id: str) -> tuple[float, ...]:
    bands = raw.get(gender)
    if not isinstance(bands, dict):
        raise ValueError(f"standards.{gender} must be a mapping")
    missing = [b for b in BAND_NAMES if b not in bands]
    if missing:
        raise ValueError(f"standards.{gender} missing bands: {missing}")
    return tuple(float(bands[b]) for b in BAND_NAMES)


def standard_from_dict(d: dict) -> StrengthStandard:
    """Convert a raw dict (from YAML) to a StrengthStandard.

    Raises ValueError if any required field is absent or malformed.
    """
    missing = _REQUIRED_FIELDS - set(d)
    if missing:
        raise ValueError(f"StrengthStandard missing fields: {sorted(missing)}")

    pattern = str(d["movement_pattern"])
    if pattern not in _PATTERNS:
        raise ValueError(f"Unknown movement_pattern {pattern!r}")

    lift_id = str(d["lift_id"])
    return StrengthStandard(
        lift_id=lift_id,
        display_name=str(d["display_name"]),
        movement_pattern=pattern,
        aliases=tuple(str(a).lower() for a in d["aliases"]),
        male=_bands(d["standards"], "male", lift_id),
        female=_bands(d["standards"], "female", lift_id),
    )


def load_yaml_file(path: Path) -> dict:
    """Load a YAML mapping; return {} (with a warning) if it cannot be parsed."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"liftcoach: cannot read {path}: {exc}", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def get_bundled_standards_dir() -> Path | None:
    """Return path to the bundled standards/ data directory, or None if not found."""
    # loader.py lives at src/liftcoach/core/exercises/loader.py
    candidate = Path(__file__).parent.parent.parent / "standards"
    return candidate if candidate.is_dir() else None


def get_user_standards_dir() -> Path | None:
    """Return ~/.liftcoach/standards/ if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".liftcoach" / "standards"
    return p if p.is_dir() else None


def load_standards(
    bundled_dir: Path | None = None,
    user_dir: Path | None = None,
) -> dict[str, StrengthStandard]:
    """Return {lift_id: StrengthStandard} loaded from per-lift YAML files.

    Args:
        bundled_dir: Directory of shipped standards (default: package data)
        user_dir: Directory of user overrides (default: ~/.liftcoach/standards)

    Returns:
        Standards keyed by lift_id; files that fail validation are skipped
        with a warning.
    """
    bundled_dir = bundled_dir or get_bundled_standards_dir()
    user_dir = user_dir or get_user_standards_dir()

    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: list[Path] = []
    if user_dir is not None:
        user_only = [p for p in sorted(user_dir.glob("*.yaml")) if p.stem not in stems]

    result: dict[str, StrengthStandard] = {}

    for stem, bundled_path in stems.items():
        raw = load_yaml_file(bundled_path)
        if not raw:
            continue
        if user_dir is not None and (user_dir / f"{stem}.yaml").exists():
            user_raw = load_yaml_file(user_dir / f"{stem}.yaml")
            if user_raw:
                logger.debug("Merging user override for standard %s", stem)
                raw = deep_merge(raw, user_raw)
        _add(result, raw, stem)

    for p in user_only:
        raw = load_yaml_file(p)
        if raw:
            _add(result, raw, p.stem)

    return result


def _add(result: dict[str, StrengthStandard], raw: dict, stem: str) -> None:
    try:
        std = standard_from_dict(raw)
    except (ValueError, TypeError) as exc:
        warnings.warn(f"liftcoach: skipping strength standard '{stem}': {exc}", stacklevel=3)
        return
    result[std.lift_id] = std
