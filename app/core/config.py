import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Google Cloud Translation (v2 REST)
    google_translation_api_key: str = ""
    google_translation_url: str = "https://translation.googleapis.com/language/translate/v2"

    # Azure OpenAI chat completions
    azure_ai_api_key: str = ""
    azure_ai_endpoint: str = "https://gendem.cognitiveservices.azure.com/"
    azure_ai_deployment: str = "gpt-4o-mini"
    azure_ai_api_version: str = "2024-12-01-preview"

    @property
    def chat_completions_url(self) -> str:
        return (
            f"{self.azure_ai_endpoint.rstrip('/')}/openai/deployments/{self.azure_ai_deployment}"
            f"/chat/completions?api-version={self.azure_ai_api_version}"
        )

    # Response cache
    cache_ttl_seconds: float = 3600.0

    # Per-client quota on the public endpoints (slowapi / limits syntax)
    rate_limit: str = "15/minute"

    # AI provider scheduling and retry
    ai_min_interval_seconds: float = 1.0
    ai_max_retries: int = 5
    ai_initial_retry_delay: float = 2.0  # doubled on every retry

    http_timeout_seconds: float = 30.0

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 5000

    # CORS
    allowed_origins: str = "*"  # comma-separated

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup.

    Provider keys are deliberately not required here: a missing key surfaces
    as a 500 on the first request that needs it.
    """
    errors: list[str] = []

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))

    if not settings.azure_ai_api_key:
        logger.warning("AZURE_AI_API_KEY is not set; /summarize and /analyze-symptoms will fail")
    if not settings.google_translation_api_key:
        logger.warning("GOOGLE_TRANSLATION_API_KEY is not set; /translate will fail")
