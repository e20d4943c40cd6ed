"""Tests for the provider connectivity check script (providers mocked)."""

import httpx
import pytest

from app.core.config import Settings
from app.core.exceptions import UpstreamError, UpstreamQuotaExhausted
from run_api_check import CheckResult, check_chat, check_translation, print_report, run_checks


class TestTranslationCheck:
    @pytest.mark.asyncio
    async def test_working(self, translator):
        translator.detect.return_value = "en"
        translator.translate.return_value = "Hola mundo"

        result = await check_translation(translator)

        assert result.ok is True
        assert result.lines == ["Detected language: en", "Translation: Hola mundo"]
        translator.detect.assert_awaited_once_with("Hello world")
        translator.translate.assert_awaited_once_with("Hello world", source="en", target="es")

    @pytest.mark.asyncio
    async def test_missing_key_skips_network(self, translator):
        translator.api_key = ""

        result = await check_translation(translator)

        assert result.ok is False
        assert "GOOGLE_TRANSLATION_API_KEY" in result.lines[0]
        translator.detect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_key(self, translator):
        resp = httpx.Response(400, json={"error": {"message": "API key not valid."}})
        translator.detect.side_effect = UpstreamError("HTTP 400: API key not valid.", response=resp)

        result = await check_translation(translator)

        assert result.ok is False
        assert result.lines == ["Status: 400", "Error: HTTP 400: API key not valid."]
        translator.translate.assert_not_awaited()


class TestChatCheck:
    @pytest.mark.asyncio
    async def test_working(self, chat):
        chat.complete.return_value = "Success"

        result = await check_chat(chat)

        assert result.ok is True
        assert result.lines == ["Response: Success"]
        assert chat.complete.await_args.kwargs["max_tokens"] == 10

    @pytest.mark.asyncio
    async def test_quota_exhausted(self, chat):
        chat.complete.side_effect = UpstreamQuotaExhausted("API quota exhausted. Please check your subscription.")

        result = await check_chat(chat)

        assert result.ok is False
        assert result.lines == ["Error: API quota exhausted. Please check your subscription."]


class TestRunChecks:
    @pytest.mark.asyncio
    async def test_unconfigured_settings_fail_without_network(self):
        cfg = Settings(google_translation_api_key="", azure_ai_api_key="")

        results = await run_checks(cfg)

        assert [r.name for r in results] == ["Google Translation API", "Azure OpenAI API"]
        assert all(r.ok is False for r in results)

    def test_report_shows_tips_on_failure(self, capsys):
        cfg = Settings(google_translation_api_key="g", azure_ai_api_key="")
        results = [
            CheckResult("Google Translation API", True, ["Translation: Hola mundo"]),
            CheckResult("Azure OpenAI API", False, ["API key is missing. Set AZURE_AI_API_KEY."]),
        ]

        print_report(cfg, results)

        out = capsys.readouterr().out
        assert "Azure AI API key:           MISSING" in out
        assert "Google Translation API: ✓ Working" in out
        assert "Azure OpenAI API: ✗ Failed" in out
        assert "Troubleshooting tips:" in out

    def test_report_has_no_tips_when_all_pass(self, capsys):
        cfg = Settings(google_translation_api_key="g", azure_ai_api_key="a")
        results = [
            CheckResult("Google Translation API", True, []),
            CheckResult("Azure OpenAI API", True, []),
        ]

        print_report(cfg, results)

        assert "Troubleshooting" not in capsys.readouterr().out
