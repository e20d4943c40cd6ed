"""Provider clients: protocol-level handling for each external service.

  - TranslationClient: Google Cloud Translation v2 (detect + translate).
    Called directly; requests may overlap freely.
  - ChatCompletionClient: Azure OpenAI chat completions. Every call goes
    through the shared SerialScheduler and RetryPolicy, so AI requests
    never overlap and throttling is retried.
"""

from __future__ import annotations

import logging
import time

import httpx

from app.core.exceptions import MissingCredentialsError, UpstreamError
from app.core.metrics import UPSTREAM_CALLS
from app.gateway.retry import RetryPolicy, upstream_error_message
from app.gateway.scheduler import SerialScheduler
from app.gateway.types import Provider

logger = logging.getLogger(__name__)


def _malformed(provider: Provider, data: object, exc: Exception) -> UpstreamError:
    logger.error("Unexpected %s response shape (%s): %.300s", provider.value, exc, data)
    return UpstreamError(f"Unexpected response from {provider.value} provider")


def _json_body(provider: Provider, resp: httpx.Response):
    try:
        return resp.json()
    except ValueError as e:
        raise _malformed(provider, resp.text, e) from e


# ---------------------------------------------------------------------------
# Google Cloud Translation
# ---------------------------------------------------------------------------


class TranslationClient:
    """Google Cloud Translation v2 REST client."""

    provider = Provider.TRANSLATION
    default_url = "https://translation.googleapis.com/language/translate/v2"

    def __init__(self, api_key: str, base_url: str | None = None, timeout: float = 30.0):
        self.api_key = api_key
        self.base_url = (base_url or self.default_url).rstrip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def detect(self, text: str) -> str:
        """Return the language code the provider detects for ``text``."""
        data = await self._post(f"{self.base_url}/detect", {"q": text})
        try:
            return data["data"]["detections"][0][0]["language"]
        except (KeyError, IndexError, TypeError) as e:
            raise _malformed(self.provider, data, e) from e

    async def translate(self, text: str, source: str, target: str) -> str:
        """Translate ``text`` from ``source`` into ``target``."""
        data = await self._post(
            self.base_url,
            {"q": text, "source": source, "target": target, "format": "text"},
        )
        try:
            return data["data"]["translations"][0]["translatedText"]
        except (KeyError, IndexError, TypeError) as e:
            raise _malformed(self.provider, data, e) from e

    async def _post(self, url: str, payload: dict) -> dict:
        if not self.api_key:
            raise MissingCredentialsError(
                "API key not found. Set the GOOGLE_TRANSLATION_API_KEY environment variable."
            )

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            UPSTREAM_CALLS.labels(provider=self.provider.value, outcome="error").inc()
            raise UpstreamError(f"{type(e).__name__}: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)

        if not resp.is_success:
            UPSTREAM_CALLS.labels(provider=self.provider.value, outcome="error").inc()
            message = upstream_error_message(resp)
            logger.error("Translation API %d after %dms: %s", resp.status_code, elapsed_ms, message)
            raise UpstreamError(message, response=resp)

        UPSTREAM_CALLS.labels(provider=self.provider.value, outcome="success").inc()
        logger.debug("Translation API %s in %dms", url.rsplit("/", 1)[-1], elapsed_ms)
        return _json_body(self.provider, resp)


# ---------------------------------------------------------------------------
# Azure OpenAI chat completions
# ---------------------------------------------------------------------------


class ChatCompletionClient:
    """Azure OpenAI chat completions client, serialized and retried."""

    provider = Provider.CHAT

    def __init__(
        self,
        api_key: str,
        url: str,
        scheduler: SerialScheduler,
        retry_policy: RetryPolicy,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.url = url
        self.scheduler = scheduler
        self.retry_policy = retry_policy
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def complete(
        self,
        system_prompt: str,
        user_content: str,
        max_tokens: int = 150,
        temperature: float = 0.7,
        top_p: float | None = None,
    ) -> str:
        """Send one system + user exchange and return the trimmed reply."""
        if not self.api_key:
            raise MissingCredentialsError(
                "API key not found. Set the AZURE_AI_API_KEY environment variable."
            )

        payload: dict = {
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if top_p is not None:
            payload["top_p"] = top_p

        resp = await self.scheduler.schedule(self._send, payload)
        data = _json_body(self.provider, resp)
        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise _malformed(self.provider, data, e) from e
        if not isinstance(content, str):
            raise _malformed(self.provider, data, TypeError("content is not a string"))
        return content.strip()

    async def _send(self, payload: dict) -> httpx.Response:
        headers = {
            "Content-Type": "application/json",
            "api-key": self.api_key,
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self.retry_policy.call(
                lambda: client.post(self.url, json=payload, headers=headers),
                provider=self.provider,
            )
