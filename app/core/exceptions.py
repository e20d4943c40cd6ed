"""Error taxonomy shared by the gateway and the HTTP layer.

Every ``GatewayError`` carries the HTTP status it maps to; ``app.main``
renders them as ``{"error": ..., "details": ...}``. The per-client quota is
enforced by slowapi, whose ``RateLimitExceeded`` is rendered separately.
"""

from __future__ import annotations

import httpx


class GatewayError(Exception):
    status_code: int = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ClientInputError(GatewayError):
    """Required request fields are missing or malformed."""

    status_code = 400


class MissingCredentialsError(GatewayError):
    """A provider API key is not configured."""


class UpstreamError(GatewayError):
    """A provider returned a non-2xx response or could not be reached."""

    def __init__(self, message: str, response: httpx.Response | None = None):
        super().__init__(message)
        self.response = response

    @property
    def upstream_status(self) -> int | None:
        return self.response.status_code if self.response is not None else None


class UpstreamTransientError(UpstreamError):
    """Provider kept throttling (429) until retries ran out."""


class UpstreamQuotaExhausted(UpstreamError):
    """Provider reported that the subscription quota is used up. Never retried."""


class ActionFailedError(GatewayError):
    """Raised at the handler boundary when an action could not be completed."""
