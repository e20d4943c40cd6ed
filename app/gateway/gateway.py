"""Assist gateway: the three request handlers wired to their collaborators.

Each action follows the same lifecycle:
  1. Validate input (ClientInputError before anything else happens)
  2. Publish "in progress" on the status channel
  3. Check the response cache -> on hit, publish "complete (cached)" and return
  4. Call the provider(s)
  5. Store the result in the cache, publish "complete" and return
  6. On any provider failure publish "failed" and raise ActionFailedError

Cache, broadcaster and provider clients are passed in by the caller, so
tests and the app can each build their own isolated instance.

Usage:
    gateway = build_gateway(settings)
    result = await gateway.translate("Hola", "en")
"""

from __future__ import annotations

import logging
from contextlib import contextmanager

from app.core.config import Settings
from app.core.exceptions import ActionFailedError, ClientInputError, GatewayError, UpstreamError
from app.core.metrics import CACHE_LOOKUPS
from app.gateway import prompts
from app.gateway.broadcaster import StatusBroadcaster
from app.gateway.cache import TTLCache, make_key
from app.gateway.providers import ChatCompletionClient, TranslationClient
from app.gateway.retry import RetryPolicy
from app.gateway.scheduler import SerialScheduler
from app.gateway.types import ACTION_MESSAGES, StatusAction, TranslationResult

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str:
    return value.strip() if isinstance(value, str) else ""


class AssistGateway:
    """Request handlers for translate, summarize and analyze-symptoms."""

    def __init__(
        self,
        cache: TTLCache,
        broadcaster: StatusBroadcaster,
        translator: TranslationClient,
        chat: ChatCompletionClient,
    ):
        self.cache = cache
        self.broadcaster = broadcaster
        self.translator = translator
        self.chat = chat

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def translate(self, text: str | None, target_language: str | None) -> TranslationResult:
        """Detect the source language, then translate unless it already matches."""
        text, target_language = _clean(text), _clean(target_language)
        if not text or not target_language:
            raise ClientInputError("Text and target language are required.")

        action = StatusAction.TRANSLATE
        key = make_key(action.value, text, target_language)
        cached = self._begin(action, key)
        if cached is not None:
            return TranslationResult.from_dict(cached)

        with self._failure_boundary(action):
            detected = await self.translator.detect(text)
            if detected == target_language:
                logger.info("Same language detected (%s), skipping translation", detected)
                result = TranslationResult(detected_language=detected, translated_text=text)
            else:
                translated = await self.translator.translate(text, source=detected, target=target_language)
                result = TranslationResult(detected_language=detected, translated_text=translated)

        self._finish(action, key, result.to_dict())
        return result

    async def summarize(self, text: str | None) -> str:
        """Summarize ``text`` in plain language via the chat provider."""
        text = _clean(text)
        if not text:
            raise ClientInputError("Text is required.")

        action = StatusAction.SUMMARIZE
        key = make_key(action.value, text)
        cached = self._begin(action, key)
        if cached is not None:
            return cached

        with self._failure_boundary(action):
            summary = await self.chat.complete(
                prompts.SUMMARY_SYSTEM_PROMPT,
                prompts.summary_user_content(text),
                **prompts.SUMMARY_PARAMS,
            )

        self._finish(action, key, summary)
        return summary

    async def analyze_symptoms(self, symptoms: str | None) -> str:
        """Suggest possible conditions and OTC remedies, with a disclaimer."""
        symptoms = _clean(symptoms)
        if not symptoms:
            raise ClientInputError("Symptoms are required.")

        action = StatusAction.SYMPTOMS
        key = make_key(action.value, symptoms)
        cached = self._begin(action, key)
        if cached is not None:
            return cached

        with self._failure_boundary(action):
            analysis = await self.chat.complete(
                prompts.SYMPTOMS_SYSTEM_PROMPT,
                prompts.symptoms_user_content(symptoms),
                **prompts.SYMPTOMS_PARAMS,
            )

        self._finish(action, key, analysis)
        return analysis

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------

    def _begin(self, action: StatusAction, key: str):
        """Publish "in progress" and return the cached value, if any."""
        messages = ACTION_MESSAGES[action]
        self.broadcaster.emit(action, messages.started)

        cached = self.cache.get(key)
        if cached is None:
            CACHE_LOOKUPS.labels(action=action.value, result="miss").inc()
            return None

        CACHE_LOOKUPS.labels(action=action.value, result="hit").inc()
        logger.debug("Cache hit for %s", action.value)
        self.broadcaster.emit(action, messages.cached)
        return cached

    def _finish(self, action: StatusAction, key: str, value) -> None:
        self.cache.set(key, value)
        self.broadcaster.emit(action, ACTION_MESSAGES[action].complete)

    @contextmanager
    def _failure_boundary(self, action: StatusAction):
        """Publish "failed" on provider errors and convert them for the HTTP layer."""
        messages = ACTION_MESSAGES[action]
        try:
            yield
        except UpstreamError as e:
            self.broadcaster.emit(action, messages.failed)
            logger.error("%s failed: %s", action.value, e.message)
            raise ActionFailedError(messages.error, details=e.message) from e
        except GatewayError as e:
            # Configuration problems (missing key) keep their own message
            self.broadcaster.emit(action, messages.failed)
            logger.error("%s failed: %s", action.value, e.message)
            raise

    def get_status(self) -> dict:
        return {
            "cache": self.cache.stats(),
            "status_channel": self.broadcaster.get_stats(),
            "ai_scheduler": self.chat.scheduler.get_stats(),
            "ai_configured": self.chat.configured,
            "translation_configured": self.translator.configured,
        }


def build_gateway(settings: Settings) -> AssistGateway:
    """Construct a gateway with fresh cache, broadcaster, scheduler and clients."""
    scheduler = SerialScheduler(min_interval=settings.ai_min_interval_seconds)
    retry_policy = RetryPolicy(
        max_retries=settings.ai_max_retries,
        initial_delay=settings.ai_initial_retry_delay,
    )
    return AssistGateway(
        cache=TTLCache(ttl=settings.cache_ttl_seconds),
        broadcaster=StatusBroadcaster(),
        translator=TranslationClient(
            api_key=settings.google_translation_api_key,
            base_url=settings.google_translation_url,
            timeout=settings.http_timeout_seconds,
        ),
        chat=ChatCompletionClient(
            api_key=settings.azure_ai_api_key,
            url=settings.chat_completions_url,
            scheduler=scheduler,
            retry_policy=retry_policy,
            timeout=settings.http_timeout_seconds,
        ),
    )
