"""Text-completion client for the language model behind plan generation."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Optional

import openai
from pydantic import ValidationError

from studyplanner.core.config import Settings

if TYPE_CHECKING:  # pragma: no cover - typing helper
    import httpx

logger = logging.getLogger(__name__)

PLACEHOLDER_KEYS = {"your-api-key-here", "GEMINI_API_KEY"}

FailureKind = Literal[
    "auth_error",
    "rate_limit",
    "server_error",
    "network_error",
    "malformed_response",
    "unknown_error",
]


class EmptyCompletionError(RuntimeError):
    """The completion service answered without any text."""


class MalformedCompletionError(ValueError):
    """The completion text did not contain the structure we asked for."""


@dataclass(frozen=True)
class ApiKeyStatus:
    valid: bool
    error: str | None = None


@dataclass(frozen=True)
class CompletionFailure:
    kind: FailureKind
    message: str


def validate_api_key(api_key: str | None) -> ApiKeyStatus:
    if not api_key:
        return ApiKeyStatus(valid=False, error="API key is missing")
    if api_key.strip() in PLACEHOLDER_KEYS:
        return ApiKeyStatus(valid=False, error="API key is a placeholder")
    return ApiKeyStatus(valid=True)


class CompletionClient:
    """Sends one system/user message pair and returns the reply text."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        client: Optional[openai.OpenAI] = None,
        http_client: Optional["httpx.Client"] = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        # max_retries=0: retrying is left to the caller (429 only).
        self._client = client or openai.OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    def complete(self, user_prompt: str, system_prompt: str | None = None) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        completion = self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        choices = completion.choices or []
        content = choices[0].message.content if choices else None
        if not content or not content.strip():
            raise EmptyCompletionError("No response from the completion service")
        return content


def build_completion_client(
    config: Settings, *, http_client: Optional["httpx.Client"] = None
) -> CompletionClient | None:
    """Return a configured client, or None when no usable API key is set."""
    status = validate_api_key(config.llm_api_key)
    if not status.valid:
        logger.warning("Completion service disabled: %s", status.error)
        return None
    return CompletionClient(
        config.llm_api_key,
        base_url=config.llm_base_url,
        model=config.llm_model,
        temperature=config.llm_temperature,
        max_tokens=config.llm_max_tokens,
        timeout=config.llm_timeout_seconds,
        http_client=http_client,
    )


def is_rate_limited(exc: BaseException) -> bool:
    return getattr(exc, "status_code", None) == 429


def classify_completion_error(exc: BaseException) -> CompletionFailure:
    """Map an exception from a completion round-trip onto a user-facing failure."""
    status_code = getattr(exc, "status_code", None)
    if status_code == 429:
        return CompletionFailure("rate_limit", "Rate limit exceeded. Please try again in a few minutes.")
    if status_code in (401, 403):
        return CompletionFailure("auth_error", "Invalid API key. Please check the completion service API key.")
    if isinstance(status_code, int) and status_code >= 500:
        return CompletionFailure(
            "server_error",
            "The completion service is experiencing issues. Please try again later.",
        )
    if isinstance(exc, (openai.APIConnectionError, openai.APITimeoutError)):
        return CompletionFailure("network_error", "Network error. Please check your internet connection.")
    if isinstance(exc, (EmptyCompletionError, MalformedCompletionError, json.JSONDecodeError, ValidationError)):
        return CompletionFailure("malformed_response", "The completion service returned an unusable response.")
    return CompletionFailure("unknown_error", str(exc) or "An unexpected error occurred.")
