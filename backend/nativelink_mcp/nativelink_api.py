"""Outbound client for the Nativelink API with offline fallbacks.

Every call resolves to a :class:`FetchOutcome`: either the network answer or
the locally held fallback. Callers never see a network error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Mapping

import httpx

from .offline import basic_analysis, offline_documentation
from .settings import Settings

logger = logging.getLogger(__name__)

FetchSource = Literal["network", "fallback"]


@dataclass(frozen=True)
class FetchOutcome:
    """Text produced by a network call or by its fallback."""

    text: str
    source: FetchSource
    reason: str | None = None

    @property
    def from_network(self) -> bool:
        return self.source == "network"


class NativelinkAPIError(Exception):
    """Raised when the API answers with something other than usable content."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None):
        super().__init__(message)
        self.details = dict(details or {})


RequestFn = Callable[[httpx.AsyncClient], Awaitable[httpx.Response]]


class NativelinkAPI:
    """Thin async wrapper around the documentation and analysis endpoints."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.base_url = settings.nativelink_url.rstrip("/")
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "User-Agent": "nativelink-mcp"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        return headers

    async def fetch_documentation(self, topic: str, context: str | None = None) -> FetchOutcome:
        params = {"topic": topic}
        if context:
            params["context"] = context
        url = f"{self.base_url}/docs"
        headers = self._headers()

        async def _send(client: httpx.AsyncClient) -> httpx.Response:
            return await client.get(url, params=params, headers=headers)

        return await self._resolve(
            "docs",
            _send,
            field="content",
            fallback=lambda: offline_documentation(topic),
        )

    async def analyze_performance(self, metrics: Mapping[str, Any]) -> FetchOutcome:
        provider = self.settings.ai_provider
        if provider is None:
            return FetchOutcome(basic_analysis(metrics), "fallback", reason="no_ai_provider")

        url = f"{self.base_url}/analyze"
        headers = self._headers()
        headers["X-AI-Provider"] = provider
        headers["X-AI-Key"] = self.settings.ai_key or ""
        body = {"metrics": dict(metrics)}

        async def _send(client: httpx.AsyncClient) -> httpx.Response:
            return await client.post(url, json=body, headers=headers)

        return await self._resolve(
            "analyze",
            _send,
            field="analysis",
            fallback=lambda: basic_analysis(metrics),
        )

    async def _resolve(
        self,
        operation: str,
        send: RequestFn,
        *,
        field: str,
        fallback: Callable[[], str],
    ) -> FetchOutcome:
        """Return the network text, or the fallback when anything goes wrong."""
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.request_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await send(client)
            text = _extract_text(response, field)
        except NativelinkAPIError as exc:
            logger.warning(
                "nativelink %s response unusable, using offline fallback reason=%s details=%s",
                operation,
                exc,
                exc.details,
            )
            return FetchOutcome(fallback(), "fallback", reason=str(exc))
        except Exception as exc:  # every failure mode resolves to the fallback
            reason = str(exc) or type(exc).__name__
            logger.warning(
                "nativelink %s request failed, using offline fallback reason=%s",
                operation,
                reason,
            )
            return FetchOutcome(fallback(), "fallback", reason=reason)
        logger.debug("nativelink %s request succeeded", operation)
        return FetchOutcome(text, "network")


def _extract_text(response: httpx.Response, field: str) -> str:
    if not response.is_success:
        raise NativelinkAPIError(
            f"api request failed with status {response.status_code}",
            details={"status": response.status_code, "body": response.text[:200]},
        )
    try:
        payload = response.json()
    except ValueError as exc:
        raise NativelinkAPIError(
            "malformed response body", details={"body": response.text[:200]}
        ) from exc
    value = payload.get(field) if isinstance(payload, dict) else None
    if not isinstance(value, str):
        raise NativelinkAPIError(
            f"response missing {field!r}", details={"payload_type": type(payload).__name__}
        )
    return value
