"""
run_api_check.py: live connectivity check for both providers.

Uses the same settings and provider clients as the server:
  1. Report which API keys are configured
  2. Google Translation: detect + translate "Hello world" (en -> es)
  3. Azure OpenAI: one-word chat completion
  4. Print a pass/fail summary and troubleshooting tips

Exit code is 0 only when both providers work.

Usage:
    python run_api_check.py
"""

import asyncio
import logging
import sys
from dataclasses import dataclass

from app.core.config import Settings, settings
from app.core.exceptions import GatewayError, UpstreamError
from app.gateway.gateway import build_gateway
from app.gateway.providers import ChatCompletionClient, TranslationClient

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s %(name)s %(levelname)s: %(message)s",
)
logger = logging.getLogger("api_check")

SAMPLE_TEXT = "Hello world"
CHAT_SYSTEM_PROMPT = 'You are a helpful assistant. Respond with a single word: "Success".'
CHAT_USER_PROMPT = "Test the API connection."

TROUBLESHOOTING_TIPS = [
    "Check that your .env file exists and contains the correct API keys",
    "Verify that your API keys are active and have not expired",
    "Ensure you have sufficient quota/credits on your API accounts",
    "Check if the API endpoints are correct for your region",
    "For Azure OpenAI, verify that the deployment is present in your resource",
    "Check if your IP address is allowed in the API service's network settings",
]


@dataclass
class CheckResult:
    name: str
    ok: bool
    lines: list[str]


def _failure(name: str, exc: GatewayError) -> CheckResult:
    lines = [f"Error: {exc.message}"]
    if isinstance(exc, UpstreamError) and exc.upstream_status is not None:
        lines.insert(0, f"Status: {exc.upstream_status}")
    return CheckResult(name, False, lines)


async def check_translation(client: TranslationClient) -> CheckResult:
    name = "Google Translation API"
    if not client.configured:
        return CheckResult(name, False, ["API key is missing. Set GOOGLE_TRANSLATION_API_KEY."])

    try:
        detected = await client.detect(SAMPLE_TEXT)
        translated = await client.translate(SAMPLE_TEXT, source="en", target="es")
    except GatewayError as e:
        return _failure(name, e)

    return CheckResult(name, True, [f"Detected language: {detected}", f"Translation: {translated}"])


async def check_chat(client: ChatCompletionClient) -> CheckResult:
    name = "Azure OpenAI API"
    if not client.configured:
        return CheckResult(name, False, ["API key is missing. Set AZURE_AI_API_KEY."])

    try:
        reply = await client.complete(CHAT_SYSTEM_PROMPT, CHAT_USER_PROMPT, max_tokens=10)
    except GatewayError as e:
        return _failure(name, e)

    return CheckResult(name, True, [f"Response: {reply}"])


async def run_checks(cfg: Settings) -> list[CheckResult]:
    gateway = build_gateway(cfg)
    return [
        await check_translation(gateway.translator),
        await check_chat(gateway.chat),
    ]


def print_report(cfg: Settings, results: list[CheckResult]) -> None:
    print("\n" + "=" * 60)
    print("  API key status")
    print("=" * 60)
    print(f"  Google Translation API key: {'present' if cfg.google_translation_api_key else 'MISSING'}")
    print(f"  Azure AI API key:           {'present' if cfg.azure_ai_api_key else 'MISSING'}")
    print(f"  Azure AI endpoint:          {cfg.azure_ai_endpoint}")
    print(f"  Chat completions URL:       {cfg.chat_completions_url}")

    for result in results:
        print("\n" + "=" * 60)
        print(f"  {result.name}")
        print("=" * 60)
        print(f"  {'✓ working' if result.ok else '✗ failed'}")
        for line in result.lines:
            print(f"    {line}")

    print("\n" + "=" * 60)
    print("  Summary")
    print("=" * 60)
    for result in results:
        print(f"  {result.name}: {'✓ Working' if result.ok else '✗ Failed'}")

    if not all(r.ok for r in results):
        print("\n  Troubleshooting tips:")
        for i, tip in enumerate(TROUBLESHOOTING_TIPS, 1):
            print(f"    {i}. {tip}")


async def main() -> int:
    results = await run_checks(settings)
    print_report(settings, results)
    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
