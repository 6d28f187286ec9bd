"""LLM-backed study plan generation: prompt rendering and response parsing."""
from __future__ import annotations

import json
import re
from datetime import date
from typing import List, Sequence

from studyplanner.api.schemas.study_plan import StudyPlanResult, Subject
from studyplanner.services.completion_client import CompletionClient, MalformedCompletionError
from studyplanner.services.plan_calendar import (
    DayLabel,
    PLAN_LENGTH_DAYS,
    days_until_deadline,
    next_plan_days,
    sort_subjects_by_deadline,
)

SYSTEM_PROMPT = "You are an expert study planner and academic advisor."

# First "{" through the last "}"; nested objects stay intact.
JSON_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)


class StudyPlanGenerator:
    """Turns subjects and an hour budget into a plan via the completion service.

    Failures are not handled here: transport errors, empty replies and
    unparsable output all propagate so the caller can decide to fall back.
    """

    def __init__(self, client: CompletionClient) -> None:
        self.client = client

    def generate_plan(
        self,
        subjects: Sequence[Subject],
        daily_hours: int,
        today: date | None = None,
    ) -> StudyPlanResult:
        today = today or date.today()
        prompt = build_study_plan_prompt(subjects, daily_hours, today)
        content = self.client.complete(prompt, system_prompt=SYSTEM_PROMPT)
        return parse_study_plan(content)


def describe_subjects(subjects: Sequence[Subject], today: date) -> str:
    lines: List[str] = []
    for subject in sort_subjects_by_deadline(subjects, today):
        if subject.deadline:
            days = days_until_deadline(subject.deadline, today)
            deadline_info = f"deadline in {days} days ({subject.deadline.isoformat()})"
        else:
            deadline_info = "no specific deadline"
        lines.append(f"- {subject.name}: {deadline_info}")
    return "\n".join(lines) if lines else "- General Study: no specific deadline"


def _example_schema(days: List[DayLabel]) -> str:
    example_day = {
        "day": days[0].day,
        "date": days[0].date,
        "subject": "Subject Name",
        "hours": 2,
        "notes": "Detailed study notes with specific techniques",
        "priority": "high",
        "resources": "Recommended tools and resources",
    }
    rendered_day = json.dumps(example_day, indent=2).replace("\n", "\n    ")
    return (
        "{\n"
        '  "studyPlan": [\n'
        f"    {rendered_day},\n"
        "    // More days...\n"
        "  ],\n"
        '  "motivationalTip": "A motivational message for the student"\n'
        "}"
    )


def build_study_plan_prompt(subjects: Sequence[Subject], daily_hours: int, today: date) -> str:
    days = next_plan_days(today)
    day_labels = "\n".join(f"- Day {index + 1}: {label.day}, {label.date}" for index, label in enumerate(days))
    return (
        f"Create a detailed {PLAN_LENGTH_DAYS}-day study plan for a student with the following subjects:\n"
        f"{describe_subjects(subjects, today)}\n\n"
        f"The student can study {daily_hours} hours per day.\n\n"
        f"Plan exactly these days, in order:\n{day_labels}\n\n"
        "For each day, provide the following:\n"
        "1. Assign multiple subjects per day when appropriate (comma-separated)\n"
        "2. Allocate study hours (not exceeding daily limit)\n"
        "3. Create detailed, subject-specific study notes with actionable techniques\n"
        "4. Assign priority (high/medium/low) based on deadline proximity\n"
        "5. Include specific learning strategies tailored to each subject type (math, science, language, etc.)\n\n"
        "Prioritize subjects with closer deadlines. Distribute study time effectively across all subjects, "
        "with more time for subjects with closer deadlines.\n\n"
        "Format your response as a JSON object with this structure:\n"
        f"{_example_schema(days)}"
    )


def extract_json_object(content: str) -> str:
    match = JSON_OBJECT_PATTERN.search(content)
    if not match:
        raise MalformedCompletionError("Could not find a JSON object in the completion text")
    return match.group(0)


def parse_study_plan(content: str) -> StudyPlanResult:
    """Parse the JSON object embedded in ``content``; raises on any mismatch."""
    payload = json.loads(extract_json_object(content))
    return StudyPlanResult.model_validate(payload)
