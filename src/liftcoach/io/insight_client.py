"""
HTTP client for the AI coaching text service.

The service is a black box: it receives a profile summary, recent workout
summaries and a prompt intent, and answers with free-form text.

Usage:
    async with HttpInsightClient(base_url, api_key=key) as client:
        text = await client.generate(request)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import logging
from typing import Any, Literal, Protocol

import httpx

from ..core.errors import InsightError

logger = logging.getLogger(__name__)

InsightIntent = Literal["daily_insight", "coach_feedback", "strength_narrative"]

INSIGHT_INTENTS: tuple[str, ...] = ("daily_insight", "coach_feedback", "strength_narrative")
INSIGHTS_PATH = "/v1/insights"


@dataclass(frozen=True)
class InsightRequest:
    """Payload sent to the text service."""

    intent: InsightIntent
    profile_summary: dict[str, Any]
    log_summaries: list[dict[str, Any]] = field(default_factory=list)
    prompt: str = ""

    def __post_init__(self) -> None:
        if self.intent not in INSIGHT_INTENTS:
            raise ValueError(f"Invalid insight intent: {self.intent}")

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


class InsightClient(Protocol):
    """Anything that can turn an InsightRequest into text."""

    async def generate(self, request: InsightRequest) -> str: ...


class HttpInsightClient:
    """
    Async client posting InsightRequests as JSON.

    Args:
        base_url: Service root, e.g. "https://coach.example.com"
        api_key: Sent as a bearer token when set
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = httpx.Timeout(timeout)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> HttpInsightClient:
        self._client = self._new_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def generate(self, request: InsightRequest) -> str:
        """
        Request text for one intent.

        Returns:
            Non-empty response text

        Raises:
            InsightError: On transport failure, timeout, non-2xx status,
                malformed JSON or a missing/empty ``text`` field
        """
        url = f"{self.base_url}{INSIGHTS_PATH}"
        if self._client is not None:
            response = await self._post(self._client, url, request)
        else:
            async with self._new_client() as client:
                response = await self._post(client, url, request)

        if not response.is_success:
            logger.warning(
                "Insight service returned %d for %s: %s",
                response.status_code,
                request.intent,
                response.text[:200] if response.text else "",
            )
            raise InsightError(
                f"Insight service returned status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise InsightError(
                "Insight service returned invalid JSON", status_code=response.status_code
            ) from e

        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise InsightError("Insight service response has no text", status_code=response.status_code)
        return text.strip()

    async def _post(
        self, client: httpx.AsyncClient, url: str, request: InsightRequest
    ) -> httpx.Response:
        try:
            return await client.post(url, json=request.to_payload(), headers=self._headers())
        except httpx.TimeoutException as e:
            raise InsightError(f"Insight request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise InsightError(f"Insight request failed: {e}") from e
