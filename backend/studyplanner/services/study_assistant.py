"""One-shot study assistant prompts (explanations, practice questions, flashcards...)."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from studyplanner.api.schemas.assistant import AssistantMode
from studyplanner.services.completion_client import CompletionClient, CompletionFailure, classify_completion_error
from studyplanner.services.retry import retry_with_backoff

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert study assistant helping students learn effectively."


@dataclass(frozen=True)
class ModeTemplate:
    title: str
    prompt: str


MODE_TEMPLATES: Dict[str, ModeTemplate] = {
    "explanation": ModeTemplate(
        "Ask for Explanations",
        "Explain the following concept{context} in a clear, concise way with examples:\n\n{query}",
    ),
    "practice": ModeTemplate(
        "Generate Practice Questions",
        "Generate 3-5 practice questions{context} about:\n\n{query}\n\nInclude answers and explanations.",
    ),
    "summary": ModeTemplate(
        "Summarize Complex Topics",
        "Summarize the following information{context} into key points and concepts:\n\n{query}",
    ),
    "flashcards": ModeTemplate(
        "Create Flashcards",
        "Create 5 flashcards{context} about:\n\n{query}\n\nFormat as Term: Definition pairs.",
    ),
    "strategy": ModeTemplate(
        "Get Learning Strategies",
        "Suggest effective learning strategies{context} for mastering:\n\n{query}",
    ),
}

FAILURE_GUIDANCE = {
    "rate_limit": (
        "This happens when too many requests are made to the completion service. You can wait a few "
        "minutes and try again, or use an API key with higher limits."
    ),
    "auth_error": "Please check the API key configured for the completion service.",
    "server_error": "This is an issue with the provider's servers and not with your request.",
    "network_error": "Please try again when your connection is stable.",
}


class AssistantError(RuntimeError):
    def __init__(self, failure: CompletionFailure) -> None:
        super().__init__(failure.message)
        self.failure = failure

    @property
    def user_message(self) -> str:
        guidance = FAILURE_GUIDANCE.get(self.failure.kind)
        if guidance:
            return f"{self.failure.message} {guidance}"
        return f"Failed to get a response: {self.failure.message}. Please try again later."


def build_assistant_prompt(query: str, mode: AssistantMode, subject: Optional[str] = None) -> str:
    template = MODE_TEMPLATES.get(mode)
    if template is None:
        return query
    context = f" for the subject: {subject}" if subject else ""
    return template.prompt.format(context=context, query=query)


def mode_title(mode: AssistantMode) -> str:
    template = MODE_TEMPLATES.get(mode)
    return template.title if template else "AI Study Assistant"


def ask_assistant(
    client: CompletionClient,
    query: str,
    mode: AssistantMode,
    subject: Optional[str] = None,
    *,
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Run one assistant query, retrying rate limits; raises AssistantError otherwise."""
    prompt = build_assistant_prompt(query.strip(), mode, subject)
    try:
        return retry_with_backoff(
            lambda: client.complete(prompt, system_prompt=SYSTEM_PROMPT),
            max_attempts=max_attempts,
            initial_delay=initial_delay,
            sleep=sleep,
        )
    except Exception as exc:
        failure = classify_completion_error(exc)
        logger.error("Study assistant request failed (%s): %s", failure.kind, exc)
        raise AssistantError(failure) from exc
