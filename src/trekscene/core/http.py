"""
HTTP helpers.

This module provides the fetch collaborator used by the scene pipeline: an async
`fetch_json(url)` callable built on `httpx.AsyncClient`.

Design goals:
- Small surface area (GET JSON).
- Deterministic defaults (timeout + User-Agent).
- Retry/backoff for 429/5xx/transport errors lives here, never in the pipeline.
- Every failure that survives the retries is raised as `TransportError`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from trekscene.config.settings import RetrySettings, Settings
from trekscene.core.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "trekscene/0.1.0 (+https://local)"
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


def _parse_retry_after_seconds(value: str | None) -> float | None:
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


class JsonFetcher:
    """Async `url -> JSON` callable with timeout, User-Agent and retries."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 15,
        user_agent: str = DEFAULT_USER_AGENT,
        retry: RetrySettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._timeout_seconds = timeout_seconds
        self._user_agent = user_agent
        self._retry = retry or RetrySettings(max_attempts=0)
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> "JsonFetcher":
        return cls(
            timeout_seconds=settings.app.http_timeout_seconds,
            user_agent=settings.http.user_agent,
            retry=settings.http.retry,
            transport=transport,
        )

    def _delay(self, attempt: int, retry_after: float | None = None) -> float:
        delay = min(self._retry.max_delay_seconds, self._retry.base_delay_seconds * (2**attempt))
        if retry_after is not None:
            delay = max(delay, retry_after)
        return delay

    async def _get(self, client: httpx.AsyncClient, url: str) -> Any:
        resp = await client.get(url, headers={"User-Agent": self._user_agent})
        resp.raise_for_status()
        return resp.json()

    async def __call__(self, url: str) -> Any:
        """GET `url` and return the decoded JSON body.

        Raises:
            TransportError: On transport errors, non-2xx statuses (after retries) or a
                body that is not valid JSON.
        """
        max_attempts = int(self._retry.max_attempts)
        async with httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport) as client:
            for attempt in range(max_attempts + 1):
                try:
                    return await self._get(client, url)
                except httpx.HTTPStatusError as exc:
                    status = exc.response.status_code
                    if status not in RETRYABLE_STATUSES or attempt >= max_attempts:
                        raise TransportError(url, f"HTTP {status}") from exc
                    delay = self._delay(attempt, _parse_retry_after_seconds(exc.response.headers.get("Retry-After")))
                    logger.warning(
                        "GET %s failed with status=%s; retrying in %.2fs (attempt %s/%s)",
                        url,
                        status,
                        delay,
                        attempt + 1,
                        max_attempts,
                    )
                except httpx.TransportError as exc:
                    if attempt >= max_attempts:
                        raise TransportError(url, f"{type(exc).__name__}: {exc}") from exc
                    delay = self._delay(attempt)
                    logger.warning(
                        "GET %s transport error; retrying in %.2fs (attempt %s/%s)",
                        url,
                        delay,
                        attempt + 1,
                        max_attempts,
                    )
                except ValueError as exc:
                    raise TransportError(url, "response body is not valid JSON") from exc
                await asyncio.sleep(delay)

        raise TransportError(url, "request failed without a response")
