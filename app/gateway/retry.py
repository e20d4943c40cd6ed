"""Retry policy for throttled provider calls.

Only HTTP 429 is retried. The wait before each retry is the server's
``Retry-After`` (seconds) when it sends one, otherwise the current backoff
delay, which starts at ``initial_delay`` and doubles after every retry:

    attempt 1 -> 429 -> wait 2s
    attempt 2 -> 429 -> wait 4s
    ...

A 429 whose body says the subscription quota is exceeded is terminal and
raises ``UpstreamQuotaExhausted`` without retrying. Every other non-2xx
status, and any transport failure, raises ``UpstreamError`` at once.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from app.core.exceptions import UpstreamError, UpstreamQuotaExhausted, UpstreamTransientError
from app.core.metrics import UPSTREAM_CALLS, UPSTREAM_RETRIES
from app.gateway.types import Provider, RetryState

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_DELAY = 2.0  # seconds

_QUOTA_MARKERS = ("quota exceeded", "insufficient_quota")


def upstream_error_message(resp: httpx.Response) -> str:
    """Best-effort human readable error from a provider response."""
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text[:500]}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"HTTP {resp.status_code}: {error['message']}"
    if isinstance(error, str):
        return f"HTTP {resp.status_code}: {error}"
    return f"HTTP {resp.status_code}: {resp.text[:500]}"


def is_quota_exhausted(resp: httpx.Response) -> bool:
    """True if a 429 body signals an exhausted subscription quota."""
    try:
        body = resp.json()
    except ValueError:
        return any(marker in resp.text.lower() for marker in _QUOTA_MARKERS)

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        haystack = f"{error.get('message') or ''} {error.get('code') or ''}".lower()
    else:
        haystack = str(error or "").lower()
    return any(marker in haystack for marker in _QUOTA_MARKERS)


def parse_retry_after(resp: httpx.Response) -> float | None:
    """Return the ``Retry-After`` header in seconds, or None if absent/unparseable."""
    raw = resp.headers.get("retry-after")
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        logger.debug("Ignoring non-numeric Retry-After header: %r", raw)
        return None
    if not math.isfinite(value):
        logger.debug("Ignoring non-finite Retry-After header: %r", raw)
        return None
    return max(value, 0.0)


class RetryPolicy:
    """Bounded retry loop around a single HTTP request.

    Usage:
        policy = RetryPolicy(max_retries=5, initial_delay=2.0)
        resp = await policy.call(lambda: client.post(url, json=payload))
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._sleep = sleep

    def new_state(self) -> RetryState:
        return RetryState(retries_remaining=self.max_retries, current_delay=self.initial_delay)

    async def call(
        self,
        send: Callable[[], Awaitable[httpx.Response]],
        provider: Provider = Provider.CHAT,
    ) -> httpx.Response:
        """Issue ``send()`` until it succeeds, fails terminally, or retries run out."""
        state = self.new_state()

        while True:
            state.attempts += 1
            try:
                resp = await send()
            except httpx.HTTPError as e:
                UPSTREAM_CALLS.labels(provider=provider.value, outcome="error").inc()
                raise UpstreamError(f"{type(e).__name__}: {e}") from e

            if resp.is_success:
                UPSTREAM_CALLS.labels(provider=provider.value, outcome="success").inc()
                return resp

            if resp.status_code != 429:
                UPSTREAM_CALLS.labels(provider=provider.value, outcome="error").inc()
                message = upstream_error_message(resp)
                logger.error("%s provider error: %s", provider.value, message)
                raise UpstreamError(message, response=resp)

            if is_quota_exhausted(resp):
                UPSTREAM_CALLS.labels(provider=provider.value, outcome="quota").inc()
                logger.error("%s provider quota exhausted: %s", provider.value, upstream_error_message(resp))
                raise UpstreamQuotaExhausted(
                    "API quota exhausted. Please check your subscription.",
                    response=resp,
                )

            UPSTREAM_CALLS.labels(provider=provider.value, outcome="throttled").inc()

            if state.retries_remaining <= 0:
                logger.error(
                    "%s provider still throttling after %d attempts (%.1fs waited), giving up",
                    provider.value,
                    state.attempts,
                    state.total_wait,
                )
                raise UpstreamTransientError(upstream_error_message(resp), response=resp)

            retry_after = parse_retry_after(resp)
            delay = retry_after if retry_after is not None else state.current_delay
            logger.warning(
                "Rate limit exceeded. Retrying in %.1fs (%d attempts left)",
                delay,
                state.retries_remaining,
            )
            UPSTREAM_RETRIES.labels(provider=provider.value).inc()
            state.waited.append(delay)
            await self._sleep(delay)

            state.retries_remaining -= 1
            state.current_delay *= 2
