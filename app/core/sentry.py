"""Sentry error tracking.

Enabled only when SENTRY_DSN is set. Client mistakes (missing fields,
quota rejections) are not reported; provider failures and unexpected
exceptions are, tagged with the request id that the logs also carry.
"""

import logging

from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.exceptions import GatewayError
from app.core.logging import NO_REQUEST_ID, request_id_var

logger = logging.getLogger(__name__)

RELEASE = "assist-gateway@1.0.0"


def before_send(event: dict, hint: dict) -> dict | None:
    exc_info = hint.get("exc_info")
    if exc_info:
        exc = exc_info[1]
        if isinstance(exc, RateLimitExceeded):
            return None
        if isinstance(exc, GatewayError) and exc.status_code < 500:
            return None

    request_id = request_id_var.get()
    if request_id != NO_REQUEST_ID:
        event.setdefault("tags", {})["request_id"] = request_id
    return event


def init_sentry() -> None:
    """Initialize Sentry if SENTRY_DSN is configured."""
    if not settings.sentry_dsn:
        logger.debug("Sentry DSN not configured, skipping")
        return

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.httpx import HttpxIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        release=RELEASE,
        traces_sample_rate=0.1 if settings.app_env == "production" else 1.0,
        send_default_pii=False,
        before_send=before_send,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            HttpxIntegration(),
        ],
    )
    logger.info("Sentry initialized (env=%s, release=%s)", settings.app_env, RELEASE)
