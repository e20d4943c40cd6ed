"""Tests for the request handlers (cache, status events, error mapping)."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.core.exceptions import (
    ActionFailedError,
    ClientInputError,
    MissingCredentialsError,
    UpstreamError,
    UpstreamQuotaExhausted,
)
from app.core.config import Settings
from app.gateway import prompts
from app.gateway.broadcaster import StatusBroadcaster
from app.gateway.cache import TTLCache
from app.gateway.gateway import AssistGateway, build_gateway
from app.gateway.providers import ChatCompletionClient
from app.gateway.retry import RetryPolicy
from app.gateway.scheduler import SerialScheduler
from app.gateway.types import TranslationResult


def _messages(sub) -> list[str]:
    return [e.message for e in sub.drain()]


class TestTranslate:
    @pytest.mark.asyncio
    async def test_translates_after_detection(self, gateway, translator):
        translator.detect.return_value = "es"
        translator.translate.return_value = "Hello"

        result = await gateway.translate("Hola", "en")

        assert result == TranslationResult(detected_language="es", translated_text="Hello")
        translator.translate.assert_awaited_once_with("Hola", source="es", target="en")

    @pytest.mark.asyncio
    async def test_same_language_short_circuits(self, gateway, translator):
        translator.detect.return_value = "es"

        result = await gateway.translate("Hola", "es")

        assert result.to_dict() == {"detectedLanguage": "es", "translatedText": "Hola"}
        translator.translate.assert_not_awaited()
        assert gateway.cache.get("translate:Hola:es") == {"detectedLanguage": "es", "translatedText": "Hola"}

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self, gateway, translator):
        async with gateway.broadcaster.subscribe() as sub:
            await gateway.translate("Hola", "en")
            await gateway.translate("Hola", "en")

            assert _messages(sub) == [
                "Translating...",
                "Translation complete.",
                "Translating...",
                "Translation complete (cached).",
            ]
        assert translator.detect.await_count == 1
        assert translator.translate.await_count == 1

    @pytest.mark.asyncio
    async def test_cache_expires(self, gateway, translator, fake_clock):
        await gateway.translate("Hola", "en")
        fake_clock.advance(3601)
        await gateway.translate("Hola", "en")
        assert translator.detect.await_count == 2

    @pytest.mark.asyncio
    async def test_target_language_is_part_of_key(self, gateway, translator):
        await gateway.translate("Hola", "en")
        await gateway.translate("Hola", "fr")
        assert translator.detect.await_count == 2

    @pytest.mark.parametrize("text,target", [("", "en"), ("Hola", ""), (None, "en"), ("Hola", None), ("   ", "en")])
    @pytest.mark.asyncio
    async def test_missing_fields(self, gateway, translator, text, target):
        async with gateway.broadcaster.subscribe() as sub:
            with pytest.raises(ClientInputError) as exc_info:
                await gateway.translate(text, target)
            assert _messages(sub) == []

        assert exc_info.value.message == "Text and target language are required."
        assert exc_info.value.status_code == 400
        translator.detect.assert_not_awaited()
        assert len(gateway.cache) == 0

    @pytest.mark.asyncio
    async def test_upstream_failure(self, gateway, translator):
        translator.detect.side_effect = UpstreamError("HTTP 403: The request is missing a valid API key.")

        async with gateway.broadcaster.subscribe() as sub:
            with pytest.raises(ActionFailedError) as exc_info:
                await gateway.translate("Hola", "en")
            assert _messages(sub) == ["Translating...", "Translation failed."]

        assert exc_info.value.to_body() == {
            "error": "Translation failed",
            "details": "HTTP 403: The request is missing a valid API key.",
        }
        assert len(gateway.cache) == 0


class TestSummarize:
    @pytest.mark.asyncio
    async def test_summarize(self, gateway, chat):
        chat.complete.return_value = "A short summary."

        summary = await gateway.summarize("Long text about photosynthesis.")

        assert summary == "A short summary."
        chat.complete.assert_awaited_once_with(
            prompts.SUMMARY_SYSTEM_PROMPT,
            "Text: Long text about photosynthesis.",
            max_tokens=150,
            temperature=0.7,
            top_p=1.0,
        )
        assert gateway.cache.get("summarize:Long text about photosynthesis.") == "A short summary."

    @pytest.mark.asyncio
    async def test_cached(self, gateway, chat):
        async with gateway.broadcaster.subscribe() as sub:
            await gateway.summarize("abc")
            await gateway.summarize("abc")
            assert _messages(sub) == [
                "Summarizing...",
                "Summarization complete.",
                "Summarizing...",
                "Summarization complete (cached).",
            ]
        assert chat.complete.await_count == 1

    @pytest.mark.asyncio
    async def test_missing_text(self, gateway, chat):
        with pytest.raises(ClientInputError) as exc_info:
            await gateway.summarize(None)
        assert exc_info.value.message == "Text is required."
        chat.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_quota_exhausted(self, gateway, chat):
        chat.complete.side_effect = UpstreamQuotaExhausted("API quota exhausted. Please check your subscription.")

        async with gateway.broadcaster.subscribe() as sub:
            with pytest.raises(ActionFailedError) as exc_info:
                await gateway.summarize("abc")
            assert _messages(sub) == ["Summarizing...", "Summarization failed."]

        assert exc_info.value.status_code == 500
        assert exc_info.value.to_body() == {
            "error": "Summarization failed",
            "details": "API quota exhausted. Please check your subscription.",
        }

    @pytest.mark.asyncio
    async def test_missing_key_keeps_its_message(self, gateway, chat):
        chat.complete.side_effect = MissingCredentialsError(
            "API key not found. Set the AZURE_AI_API_KEY environment variable."
        )

        async with gateway.broadcaster.subscribe() as sub:
            with pytest.raises(MissingCredentialsError):
                await gateway.summarize("abc")
            assert _messages(sub) == ["Summarizing...", "Summarization failed."]

    @pytest.mark.asyncio
    async def test_non_json_reply_fails_at_boundary(self, translator, fake_clock):
        chat = ChatCompletionClient(
            api_key="azure-key",
            url="https://example.invalid/chat/completions",
            scheduler=SerialScheduler(clock=fake_clock, sleep=fake_clock.sleep),
            retry_policy=RetryPolicy(sleep=fake_clock.sleep),
        )
        gateway = AssistGateway(
            cache=TTLCache(clock=fake_clock),
            broadcaster=StatusBroadcaster(),
            translator=translator,
            chat=chat,
        )

        with patch("app.gateway.providers.httpx.AsyncClient") as MockClient:
            mock_client = AsyncMock()
            mock_client.post.return_value = httpx.Response(200, text="<html>proxy</html>")
            mock_client.__aenter__ = AsyncMock(return_value=mock_client)
            mock_client.__aexit__ = AsyncMock(return_value=False)
            MockClient.return_value = mock_client

            async with gateway.broadcaster.subscribe() as sub:
                with pytest.raises(ActionFailedError) as exc_info:
                    await gateway.summarize("abc")
                assert _messages(sub) == ["Summarizing...", "Summarization failed."]

        assert exc_info.value.to_body() == {
            "error": "Summarization failed",
            "details": "Unexpected response from chat provider",
        }
        assert "summarize:abc" not in gateway.cache


class TestAnalyzeSymptoms:
    @pytest.mark.asyncio
    async def test_analyze(self, gateway, chat):
        chat.complete.return_value = "Possibly a common cold. This is not a medical diagnosis or prescription."

        analysis = await gateway.analyze_symptoms("runny nose, sneezing")

        assert analysis.startswith("Possibly a common cold")
        chat.complete.assert_awaited_once_with(
            prompts.SYMPTOMS_SYSTEM_PROMPT,
            "Symptoms: runny nose, sneezing",
            max_tokens=150,
            temperature=0.7,
        )

    @pytest.mark.asyncio
    async def test_events(self, gateway, chat):
        async with gateway.broadcaster.subscribe() as sub:
            await gateway.analyze_symptoms("headache")
            events = [e.to_dict() for e in sub.drain()]

        assert events == [
            {"action": "symptoms", "message": "Analyzing symptoms..."},
            {"action": "symptoms", "message": "Analysis complete."},
        ]

    @pytest.mark.asyncio
    async def test_missing_symptoms(self, gateway):
        with pytest.raises(ClientInputError) as exc_info:
            await gateway.analyze_symptoms("")
        assert exc_info.value.message == "Symptoms are required."

    @pytest.mark.asyncio
    async def test_failure_label(self, gateway, chat):
        chat.complete.side_effect = UpstreamError("HTTP 500: internal")
        with pytest.raises(ActionFailedError) as exc_info:
            await gateway.analyze_symptoms("headache")
        assert exc_info.value.message == "Symptom analysis failed"

    def test_summaries_and_symptoms_do_not_share_keys(self, gateway):
        gateway.cache.set("summarize:x", "summary")
        assert gateway.cache.get("symptoms:x") is None


class TestBuildGateway:
    def test_wires_settings(self):
        s = Settings(
            _env_file=None,
            azure_ai_api_key="k",
            azure_ai_endpoint="https://my.azure.com/",
            google_translation_api_key="",
            cache_ttl_seconds=60,
            ai_min_interval_seconds=2.5,
            ai_max_retries=3,
            ai_initial_retry_delay=0.5,
        )
        gateway = build_gateway(s)

        assert isinstance(gateway, AssistGateway)
        assert gateway.cache.ttl == 60
        assert gateway.chat.scheduler.min_interval == 2.5
        assert gateway.chat.retry_policy.max_retries == 3
        assert gateway.chat.retry_policy.initial_delay == 0.5
        assert gateway.chat.url == (
            "https://my.azure.com/openai/deployments/gpt-4o-mini/chat/completions?api-version=2024-12-01-preview"
        )
        status = gateway.get_status()
        assert status["ai_configured"] is True
        assert status["translation_configured"] is False
