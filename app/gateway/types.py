"""Core types and DTOs for the assist gateway."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Provider(str, Enum):
    """External services the gateway talks to."""

    TRANSLATION = "translation"  # Google Cloud Translation v2
    CHAT = "chat"  # Azure OpenAI chat completions


class StatusAction(str, Enum):
    """Actions reported on the status channel."""

    TRANSLATE = "translate"
    SUMMARIZE = "summarize"
    SYMPTOMS = "symptoms"


# ---------------------------------------------------------------------------
# Status channel
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatusEvent:
    """A single progress notification broadcast to every listener."""

    action: StatusAction
    message: str

    def to_dict(self) -> dict:
        return {"action": self.action.value, "message": self.message}


@dataclass(frozen=True)
class ActionMessages:
    """Status texts and error label used by one handler."""

    started: str
    cached: str
    complete: str
    failed: str
    error: str  # "error" field of the 500 body


ACTION_MESSAGES: dict[StatusAction, ActionMessages] = {
    StatusAction.TRANSLATE: ActionMessages(
        started="Translating...",
        cached="Translation complete (cached).",
        complete="Translation complete.",
        failed="Translation failed.",
        error="Translation failed",
    ),
    StatusAction.SUMMARIZE: ActionMessages(
        started="Summarizing...",
        cached="Summarization complete (cached).",
        complete="Summarization complete.",
        failed="Summarization failed.",
        error="Summarization failed",
    ),
    StatusAction.SYMPTOMS: ActionMessages(
        started="Analyzing symptoms...",
        cached="Analysis complete (cached).",
        complete="Analysis complete.",
        failed="Analysis failed.",
        error="Symptom analysis failed",
    ),
}


# ---------------------------------------------------------------------------
# Cache / retry state
# ---------------------------------------------------------------------------


@dataclass
class CacheEntry:
    """A cached response and the monotonic time it stops being valid."""

    key: str
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass
class RetryState:
    """Per-call retry bookkeeping. Lives only for the duration of one call."""

    retries_remaining: int
    current_delay: float  # seconds
    attempts: int = 0
    waited: list[float] = field(default_factory=list)

    @property
    def total_wait(self) -> float:
        return sum(self.waited)


# ---------------------------------------------------------------------------
# Handler results
# ---------------------------------------------------------------------------


@dataclass
class TranslationResult:
    detected_language: str
    translated_text: str

    def to_dict(self) -> dict:
        return {
            "detectedLanguage": self.detected_language,
            "translatedText": self.translated_text,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TranslationResult:
        return cls(
            detected_language=data["detectedLanguage"],
            translated_text=data["translatedText"],
        )
