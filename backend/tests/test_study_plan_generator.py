from __future__ import annotations

import json
from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from studyplanner.api.schemas.study_plan import Subject
from studyplanner.services.completion_client import MalformedCompletionError
from studyplanner.services.study_plan_generator import (
    SYSTEM_PROMPT,
    StudyPlanGenerator,
    build_study_plan_prompt,
    extract_json_object,
    parse_study_plan,
)

TODAY = date(2026, 10, 16)

PLAN_PAYLOAD = {
    "studyPlan": [
        {
            "day": "Friday",
            "date": "Oct 16, 2026",
            "subject": "Math, Physics",
            "hours": 3,
            "notes": "Work through {braced} derivations",
            "priority": "high",
            "resources": "Desmos",
        },
        {
            "day": "Saturday",
            "date": "Oct 17, 2026",
            "subject": "Physics",
            "hours": 2,
            "notes": "Review",
            "priority": "medium",
        },
    ],
    "motivationalTip": "Keep going!",
}


class _RecordingClient:
    def __init__(self, reply: str):
        self.reply = reply
        self.calls: list[tuple[str, str | None]] = []

    def complete(self, user_prompt: str, system_prompt: str | None = None) -> str:
        self.calls.append((user_prompt, system_prompt))
        return self.reply


def test_prompt_lists_subjects_by_deadline_and_all_days():
    subjects = [
        Subject(id="a", name="History", deadline=None),
        Subject(id="b", name="Physics", deadline=TODAY + timedelta(days=12)),
        Subject(id="c", name="Math", deadline=TODAY + timedelta(days=3)),
    ]

    prompt = build_study_plan_prompt(subjects, 5, TODAY)

    math_line = "- Math: deadline in 3 days (2026-10-19)"
    physics_line = "- Physics: deadline in 12 days (2026-10-28)"
    history_line = "- History: no specific deadline"
    assert prompt.index(math_line) < prompt.index(physics_line) < prompt.index(history_line)
    assert "The student can study 5 hours per day." in prompt
    for label in ("Friday, Oct 16, 2026", "Saturday, Oct 17, 2026", "Tuesday, Oct 20, 2026"):
        assert label in prompt
    assert '"studyPlan"' in prompt
    assert '"motivationalTip"' in prompt
    assert '"day": "Friday"' in prompt


def test_prompt_reports_passed_deadline_as_zero_days():
    subjects = [Subject(id="a", name="Chemistry", deadline=TODAY - timedelta(days=2))]

    prompt = build_study_plan_prompt(subjects, 2, TODAY)

    assert "- Chemistry: deadline in 0 days (2026-10-14)" in prompt


def test_parse_study_plan_ignores_prose_around_json():
    content = "Sure! Here is your plan:\n```json\n" + json.dumps(PLAN_PAYLOAD) + "\n```\nGood luck."

    result = parse_study_plan(content)

    assert len(result.study_plan) == 2
    assert result.study_plan[0].notes == "Work through {braced} derivations"
    assert result.study_plan[1].resources is None
    assert result.motivational_tip == "Keep going!"


def test_extract_json_object_spans_first_to_last_brace():
    content = 'prefix {"a": {"b": 1}} suffix'

    assert extract_json_object(content) == '{"a": {"b": 1}}'


def test_parse_without_braces_raises_malformed():
    with pytest.raises(MalformedCompletionError):
        parse_study_plan("I could not build a plan today, sorry.")


def test_parse_invalid_json_raises():
    with pytest.raises(json.JSONDecodeError):
        parse_study_plan("{ studyPlan: [ }")


def test_parse_missing_field_raises_validation_error():
    payload = {"studyPlan": PLAN_PAYLOAD["studyPlan"]}

    with pytest.raises(ValidationError):
        parse_study_plan(json.dumps(payload))


def test_parse_rejects_unknown_priority():
    payload = json.loads(json.dumps(PLAN_PAYLOAD))
    payload["studyPlan"][0]["priority"] = "urgent"

    with pytest.raises(ValidationError):
        parse_study_plan(json.dumps(payload))


def test_generate_plan_sends_system_prompt_and_parses_reply():
    client = _RecordingClient("Plan follows " + json.dumps(PLAN_PAYLOAD))
    generator = StudyPlanGenerator(client)

    result = generator.generate_plan([Subject(id="m", name="Math")], 3, today=TODAY)

    assert result.study_plan[0].subject == "Math, Physics"
    assert len(client.calls) == 1
    user_prompt, system_prompt = client.calls[0]
    assert system_prompt == SYSTEM_PROMPT
    assert "- Math: no specific deadline" in user_prompt
