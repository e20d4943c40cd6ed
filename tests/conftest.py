from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import settings

# Override settings for tests
settings.app_env = "development"
settings.sentry_dsn = ""

from app.core.rate_limit import limiter  # noqa: E402
from app.gateway.broadcaster import StatusBroadcaster  # noqa: E402
from app.gateway.cache import TTLCache  # noqa: E402
from app.gateway.gateway import AssistGateway  # noqa: E402
from app.gateway.providers import ChatCompletionClient, TranslationClient  # noqa: E402
from app.gateway.retry import RetryPolicy  # noqa: E402
from app.gateway.scheduler import SerialScheduler  # noqa: E402
from app.main import app  # noqa: E402


class FakeClock:
    """Monotonic clock + sleep pair where sleeping just advances time."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def translator() -> TranslationClient:
    client = TranslationClient(api_key="test-google-key")
    client.detect = AsyncMock(return_value="es")
    client.translate = AsyncMock(return_value="Hello")
    return client


@pytest.fixture
def chat(fake_clock: FakeClock) -> ChatCompletionClient:
    client = ChatCompletionClient(
        api_key="test-azure-key",
        url="https://example.invalid/openai/deployments/gpt-4o-mini/chat/completions",
        scheduler=SerialScheduler(min_interval=1.0, clock=fake_clock, sleep=fake_clock.sleep),
        retry_policy=RetryPolicy(sleep=fake_clock.sleep),
    )
    client.complete = AsyncMock(return_value="A short summary.")
    return client


@pytest.fixture
def gateway(translator: TranslationClient, chat: ChatCompletionClient, fake_clock: FakeClock) -> AssistGateway:
    return AssistGateway(
        cache=TTLCache(ttl=3600, clock=fake_clock),
        broadcaster=StatusBroadcaster(),
        translator=translator,
        chat=chat,
    )


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
async def client(gateway: AssistGateway) -> AsyncGenerator[AsyncClient, None]:
    previous = app.state.gateway
    app.state.gateway = gateway
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        app.state.gateway = previous
