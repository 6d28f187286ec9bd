"""Tests for generation orchestration: retry, fallback and summaries."""
from __future__ import annotations

from datetime import date, timedelta

import httpx
import openai
import pytest

from studyplanner.api.schemas.study_plan import StudyPlanDay, StudyPlanResult, Subject
from studyplanner.core.config import settings
from studyplanner.services import study_plan_service
from studyplanner.services.completion_client import MalformedCompletionError
from studyplanner.services.fallback_planner import MOTIVATIONAL_TIP
from studyplanner.services.study_plan_generator import StudyPlanGenerator

TODAY = date(2026, 10, 16)
REQUEST = httpx.Request("POST", "https://llm.example.test/chat/completions")

LLM_REPLY = """Here you go:
{"studyPlan": [{"day": "Friday", "date": "Oct 16, 2026", "subject": "Math", "hours": 2,
  "notes": "Drill problems", "priority": "high", "resources": "Khan Academy"}],
 "motivationalTip": "You've got this."}
Let me know if you need changes."""


class _ScriptedClient:
    """Replays a list of replies; exceptions in the list are raised instead."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = 0

    def complete(self, user_prompt, system_prompt=None):
        self.calls += 1
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def _rate_limit_error():
    return openai.RateLimitError("slow down", response=httpx.Response(429, request=REQUEST), body=None)


@pytest.fixture(autouse=True)
def retry_settings(monkeypatch):
    monkeypatch.setattr(settings, "llm_retry_attempts", 3)
    monkeypatch.setattr(settings, "llm_retry_initial_delay", 1.0)


@pytest.fixture()
def subjects():
    return [Subject(id="m", name="Math", deadline=TODAY + timedelta(days=5))]


def test_without_generator_uses_fallback(subjects):
    outcome = study_plan_service.generate_study_plan(subjects, 4, generator=None, today=TODAY)

    assert outcome.source == "fallback"
    assert outcome.failure is None
    assert len(outcome.result.study_plan) == 5
    assert outcome.result.motivational_tip == MOTIVATIONAL_TIP


def test_llm_reply_is_used_when_parsable(subjects):
    generator = StudyPlanGenerator(_ScriptedClient(LLM_REPLY))

    outcome = study_plan_service.generate_study_plan(subjects, 4, generator=generator, today=TODAY)

    assert outcome.source == "llm"
    assert outcome.result.study_plan[0].notes == "Drill problems"
    assert outcome.result.motivational_tip == "You've got this."


def test_reply_without_json_falls_back_silently(subjects):
    generator = StudyPlanGenerator(_ScriptedClient("Sorry, I cannot help with that."))

    outcome = study_plan_service.generate_study_plan(subjects, 4, generator=generator, today=TODAY)

    assert outcome.source == "fallback"
    assert outcome.failure.kind == "malformed_response"
    assert outcome.result.study_plan[0].hours == 4


def test_rate_limits_are_retried_before_succeeding(subjects):
    client = _ScriptedClient(_rate_limit_error(), _rate_limit_error(), LLM_REPLY)
    sleeps: list[float] = []

    outcome = study_plan_service.generate_study_plan(
        subjects, 4, generator=StudyPlanGenerator(client), today=TODAY, sleep=sleeps.append
    )

    assert outcome.source == "llm"
    assert client.calls == 3
    assert sleeps == [1.0, 2.0]


def test_persistent_rate_limit_falls_back(subjects):
    client = _ScriptedClient(*[_rate_limit_error() for _ in range(3)])

    outcome = study_plan_service.generate_study_plan(
        subjects, 4, generator=StudyPlanGenerator(client), today=TODAY, sleep=lambda _: None
    )

    assert outcome.source == "fallback"
    assert outcome.failure.kind == "rate_limit"
    assert client.calls == 3


def test_auth_failure_is_not_retried(subjects):
    error = openai.AuthenticationError("nope", response=httpx.Response(401, request=REQUEST), body=None)
    client = _ScriptedClient(error)

    outcome = study_plan_service.generate_study_plan(
        subjects, 4, generator=StudyPlanGenerator(client), today=TODAY, sleep=lambda _: None
    )

    assert outcome.source == "fallback"
    assert outcome.failure.kind == "auth_error"
    assert client.calls == 1


def test_generator_exceptions_never_escape(subjects):
    class _Broken:
        def generate_plan(self, *args, **kwargs):
            raise MalformedCompletionError("nothing usable")

    outcome = study_plan_service.generate_study_plan(subjects, 4, generator=_Broken(), today=TODAY)

    assert outcome.source == "fallback"


def test_summarize_plan_counts_hours_and_subjects():
    result = StudyPlanResult(
        study_plan=[
            StudyPlanDay(day="Friday", date="Oct 16, 2026", subject="Math", hours=2, notes="", priority="high"),
            StudyPlanDay(day="Saturday", date="Oct 17, 2026", subject="Math", hours=3, notes="", priority="high"),
            StudyPlanDay(day="Sunday", date="Oct 18, 2026", subject="Art", hours=1, notes="", priority="low"),
        ],
        motivational_tip="tip",
    )

    summary = study_plan_service.summarize_plan(result)

    assert summary.total_hours == 6
    assert summary.unique_subjects == 2
    assert summary.session_count == 3
