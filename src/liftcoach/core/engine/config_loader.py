"""
YAML -> AppSettings loader.

Load order (later overrides earlier):
1. Bundled src/liftcoach/settings.yaml
2. User override at ~/.liftcoach/settings.yaml
3. Environment: LIFTCOACH_DATA_DIR, LIFTCOACH_INSIGHT_URL, LIFTCOACH_API_KEY

Usage:
    from liftcoach.core.engine.config_loader import load_settings
    settings = load_settings()
    store_dir = settings.data_dir

If the user override file has parse errors, a warning is emitted and the
file is ignored.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..config import INSIGHT_CACHE_TTL_SECONDS, STALE_THRESHOLD_SECONDS
from ..exercises.loader import deep_merge, load_yaml_file

logger = logging.getLogger(__name__)

ENV_DATA_DIR = "LIFTCOACH_DATA_DIR"
ENV_INSIGHT_URL = "LIFTCOACH_INSIGHT_URL"
ENV_API_KEY = "LIFTCOACH_API_KEY"


@dataclass(frozen=True)
class AppSettings:
    """Runtime settings for one installation."""

    data_dir: Path
    insight_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = 20.0
    insight_ttl_seconds: int = INSIGHT_CACHE_TTL_SECONDS
    stale_threshold_seconds: int = STALE_THRESHOLD_SECONDS


def get_bundled_settings_path() -> Path | None:
    """Return the path to the bundled settings.yaml, or None if not found."""
    candidate = Path(__file__).parent.parent.parent / "settings.yaml"
    return candidate if candidate.exists() else None


def get_user_settings_path() -> Path | None:
    """Return ~/.liftcoach/settings.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".liftcoach" / "settings.yaml"
    return p if p.exists() else None


def load_settings_dict(
    user_path: Path | None = None,
) -> dict[str, Any]:
    """
    Merge bundled and user YAML settings into one dict.

    Args:
        user_path: Explicit user override file (default: ~/.liftcoach/settings.yaml)

    Returns:
        Merged dict of settings sections. Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_settings_path()
    if bundled is not None:
        config = deep_merge(config, load_yaml_file(bundled))

    user = user_path or get_user_settings_path()
    if user is not None and user.exists():
        user_cfg = load_yaml_file(user)
        if user_cfg:
            logger.debug("Applying user settings from %s", user)
            config = deep_merge(config, user_cfg)

    return config


def load_settings(
    user_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppSettings:
    """
    Build AppSettings from YAML sources and the environment.

    Args:
        user_path: Explicit user override file
        environ: Environment mapping (default: os.environ)

    Returns:
        Resolved AppSettings
    """
    env = os.environ if environ is None else environ
    raw = load_settings_dict(user_path)
    insight = raw.get("insight") or {}
    workout = raw.get("workout") or {}

    data_dir = env.get(ENV_DATA_DIR) or raw.get("data_dir") or "~/.liftcoach/data"
    ttl_hours = float(insight.get("cache_ttl_hours", INSIGHT_CACHE_TTL_SECONDS / 3600))
    stale_minutes = float(workout.get("stale_threshold_minutes", STALE_THRESHOLD_SECONDS / 60))

    return AppSettings(
        data_dir=Path(str(data_dir)).expanduser(),
        insight_url=env.get(ENV_INSIGHT_URL) or insight.get("base_url") or None,
        api_key=env.get(ENV_API_KEY) or insight.get("api_key") or None,
        timeout_seconds=float(insight.get("timeout_seconds", 20.0)),
        insight_ttl_seconds=int(ttl_hours * 3600),
        stale_threshold_seconds=int(stale_minutes * 60),
    )
