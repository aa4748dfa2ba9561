"""
Coaching text from the AI collaborator, with caching and fallbacks.

The collaborator is unreliable by contract. A failed call is retried once;
after that the static fallback for the intent is returned. Fallbacks are
never cached, so the next request tries the service again.

Only the daily insight is cached (``lastCoachInsight``): it stays valid for
six hours or until a new workout is logged.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Sequence

from ..core.analytics import detect_imbalances
from ..core.config import (
    INSIGHT_CACHE_TTL_SECONDS,
    INSIGHT_FALLBACKS,
    INSIGHT_RECENT_LOGS,
    INSIGHT_RETRIES,
)
from ..core.errors import InsightError
from ..core.exercises.classifier import DEFAULT_CLASSIFIER, MovementClassifier
from ..core.metrics import exercise_e1rm, workout_volume
from ..core.models import (
    ImbalanceReport,
    Profile,
    StrengthInsightsData,
    WorkoutLog,
)
from .cache import VersionedCache, imbalance_cache, insight_cache
from .history_store import HistoryStore
from .insight_client import InsightClient, InsightIntent, InsightRequest

logger = logging.getLogger(__name__)

CACHED_INTENTS: tuple[str, ...] = ("daily_insight",)


# =============================================================================
# Request building
# =============================================================================


def summarize_profile(profile: Profile | None) -> dict[str, Any]:
    if profile is None:
        return {}
    return {
        "gender": profile.gender,
        "age": profile.age,
        "weight_kg": profile.weight_kg,
        "experience": profile.experience,
        "goal": profile.goal,
        "sessions_per_week": profile.sessions_per_week,
        "injuries": list(profile.injuries),
    }


def summarize_log(log: WorkoutLog, classifier: MovementClassifier = DEFAULT_CLASSIFIER) -> dict[str, Any]:
    """Compact description of one workout for the text service."""
    summary: dict[str, Any] = {
        "date": log.date,
        "session": log.session_name,
        "duration_min": round(log.duration_seconds / 60),
        "volume_kg": round(workout_volume(log, classifier), 1),
        "exercises": [
            {
                "name": ex.name,
                "sets_done": sum(1 for s in ex.sets if s.is_completed),
                "e1rm": round(exercise_e1rm(ex), 1),
            }
            for ex in log.exercises
        ],
    }
    if log.readiness is not None:
        summary["readiness"] = log.readiness.status
    if log.feedback is not None:
        summary["completion"] = log.feedback.completion
        if log.feedback.pain.has_pain:
            summary["pain"] = log.feedback.pain.location
    return summary


def strength_prompt(data: StrengthInsightsData) -> str:
    """Plain-text digest of strength analytics for the narrative intent."""
    lines = []
    if data.overall_level:
        lines.append(f"Overall level: {data.overall_level}.")
    for lift in data.lifts:
        lines.append(
            f"{lift.lift}: e1RM {lift.e1rm:.1f} kg ({lift.relative_strength:.2f}x BW), "
            f"{lift.level}, trend {lift.trend}."
        )
    for report in data.imbalances:
        lines.append(f"Imbalance ({report.severity}): {report.description}")
    for plateau in data.plateaus:
        lines.append(f"Plateau: {plateau.exercise} for {plateau.weeks_stuck} weeks.")
    for pattern in data.pain_patterns:
        lines.append(f"Recurring pain: {pattern.location} x{pattern.frequency}.")
    return "\n".join(lines)


def build_request(
    intent: InsightIntent,
    profile: Profile | None,
    logs: Sequence[WorkoutLog],
    prompt: str = "",
    recent: int = INSIGHT_RECENT_LOGS,
) -> InsightRequest:
    """
    Assemble a request from the profile and the most recent logs.

    Args:
        recent: Number of newest logs to summarise
    """
    window = list(logs)[-recent:] if recent > 0 else []
    return InsightRequest(
        intent=intent,
        profile_summary=summarize_profile(profile),
        log_summaries=[summarize_log(log) for log in reversed(window)],
        prompt=prompt,
    )


# =============================================================================
# Service
# =============================================================================


class InsightService:
    """
    Fetches coaching text for the CLI.

    Args:
        store: History store (profile, logs and the insight cache)
        client: Text service client; None means always use fallbacks
        retries: Extra attempts after a failed call
        cache_ttl_seconds: Lifetime of the cached daily insight
        clock: Callable returning the current time
    """

    def __init__(
        self,
        store: HistoryStore,
        client: InsightClient | None,
        retries: int = INSIGHT_RETRIES,
        cache_ttl_seconds: int = INSIGHT_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._client = client
        self.retries = retries
        self.cache: VersionedCache[str] = insight_cache(store, ttl_seconds=cache_ttl_seconds, clock=clock)
        self._inflight: dict[str, asyncio.Future[str]] = {}

    async def get_insight(self, intent: InsightIntent = "daily_insight", prompt: str = "") -> str:
        """
        Return text for intent, never raising for collaborator failures.

        A call made while another for the same intent is pending awaits
        the pending one instead of issuing a second request.
        """
        pending = self._inflight.get(intent)
        if pending is not None:
            logger.debug("Joining in-flight %s request", intent)
            return await pending

        task = asyncio.ensure_future(self._fetch(intent, prompt))
        self._inflight[intent] = task
        try:
            return await task
        finally:
            if self._inflight.get(intent) is task:
                del self._inflight[intent]

    async def _fetch(self, intent: InsightIntent, prompt: str) -> str:
        logs = self._store.load_logs()
        cacheable = intent in CACHED_INTENTS
        if cacheable:
            cached = self.cache.lookup(len(logs))
            if cached is not None:
                return cached

        if self._client is None:
            logger.debug("No insight service configured; using fallback for %s", intent)
            return INSIGHT_FALLBACKS[intent]

        request = build_request(intent, self._store.load_profile(), logs, prompt)
        attempts = 1 + max(self.retries, 0)
        for attempt in range(1, attempts + 1):
            try:
                text = await self._client.generate(request)
            except InsightError as e:
                logger.warning("Insight attempt %d/%d for %s failed: %s", attempt, attempts, intent, e)
                continue
            if cacheable:
                self.cache.put(text, len(logs))
            return text

        logger.warning("Falling back to static %s text", intent)
        return INSIGHT_FALLBACKS[intent]


def cached_imbalances(
    store: HistoryStore,
    logs: Sequence[WorkoutLog] | None = None,
    classifier: MovementClassifier = DEFAULT_CLASSIFIER,
    clock: Callable[[], datetime] = datetime.now,
) -> list[ImbalanceReport]:
    """
    Imbalance reports from the ``imbalanceAnalysis`` cache, recomputed on a miss.

    Args:
        logs: Workout history; loaded from the store when None
    """
    if logs is None:
        logs = store.load_logs()
    cache = imbalance_cache(store, clock=clock)
    return cache.get_or_compute(len(logs), lambda: detect_imbalances(logs, classifier))
