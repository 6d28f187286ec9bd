"""Deterministic study plan used whenever the LLM path is unavailable."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Sequence, Tuple

from studyplanner.api.schemas.study_plan import Priority, StudyPlanDay, StudyPlanResult, Subject
from studyplanner.services.plan_calendar import days_until_deadline, next_plan_days, sort_subjects_by_deadline

PLACEHOLDER_SUBJECT_NAME = "General Study"
ASSESSMENT_SUFFIX = " - prepare for assessment"
FINAL_DAY_INDEX = 4

HIGH_PRIORITY_SHARE = 80
DEFAULT_SHARE = 50

PRIORITY_RANK = {"low": 0, "medium": 1, "high": 2}

MOTIVATIONAL_TIP = (
    "Remember, consistency beats intensity! Study a little every day rather than cramming. "
    "Your future self will thank you for the disciplined effort you put in today. "
    "Stay focused and believe in yourself!"
)


@dataclass(frozen=True)
class CategoryTemplate:
    keywords: Tuple[str, ...]
    notes: str
    resources: str


class SubjectCategory(Enum):
    """Subject families with canned notes and tool suggestions.

    Declaration order is match order; GENERAL has no keywords and is the default.
    """

    MATH = CategoryTemplate(
        ("math",),
        "Practice equations using spaced repetition, solve problem sets with increasing difficulty, "
        "and create concept maps for formulas and theorems",
        "Wolfram Alpha for equation solving, Khan Academy for tutorials, Desmos for graphing",
    )
    PHYSICS = CategoryTemplate(
        ("physics",),
        "Review key concepts through visual diagrams, solve numerical problems, "
        "and watch simulations of physical phenomena",
        "PhET simulations, Brilliant.org physics courses, Gemini for problem-solving assistance",
    )
    CHEMISTRY = CategoryTemplate(
        ("chemistry",),
        "Create flashcards for chemical reactions, practice balancing equations, "
        "and review periodic table relationships",
        "Periodic Table apps, Molecular modeling tools, ChemCollective virtual labs",
    )
    BIOLOGY = CategoryTemplate(
        ("biology",),
        "Draw detailed diagrams of biological systems, create concept maps for processes, "
        "and review key terminology",
        "BioDigital Human for 3D models, Labster for virtual labs, Quizlet for terminology",
    )
    HISTORY = CategoryTemplate(
        ("history", "social"),
        "Create timeline charts, practice active recall of key events, "
        "and analyze primary sources using the Cornell note-taking method",
        "Timeline JS for visual timelines, Google Arts & Culture for primary sources, "
        "Gemini for historical context",
    )
    LANGUAGE = CategoryTemplate(
        ("english", "literature", "lang"),
        "Read assigned texts using active reading techniques, practice writing essays with clear thesis "
        "statements, and build vocabulary through contextual learning",
        "Grammarly for writing assistance, ThesaurusAI for vocabulary, Gemini models for essay feedback",
    )
    COMPUTER_SCIENCE = CategoryTemplate(
        ("computer", "programming", "coding"),
        "Work on coding projects with test-driven development, debug exercises systematically, "
        "and document your learning process in a coding journal",
        "GitHub Copilot for coding assistance, LeetCode for practice, Stack Overflow for problem-solving",
    )
    GENERAL = CategoryTemplate(
        (),
        "Review course materials using the Feynman technique, create summary notes with mind maps, "
        "and practice retrieval with self-quizzing",
        "Notion AI for note organization, Anki for flashcards, Gemini for concept explanations",
    )

    @property
    def notes(self) -> str:
        return self.value.notes

    @property
    def resources(self) -> str:
        return self.value.resources

    @classmethod
    def for_subject(cls, name: str) -> "SubjectCategory":
        lowered = name.lower()
        for category in cls:
            if any(keyword in lowered for keyword in category.value.keywords):
                return category
        return cls.GENERAL


def priority_for(subject: Subject, today: date) -> Priority:
    days = days_until_deadline(subject.deadline, today)
    if days <= 7:
        return "high"
    if days <= 14:
        return "medium"
    return "low"


def highest_priority(*priorities: Priority) -> Priority:
    return max(priorities, key=PRIORITY_RANK.__getitem__)


def share_of_budget(daily_hours: int, percent: int) -> int:
    """ceil(daily_hours * percent / 100) in integer arithmetic."""
    return -(-daily_hours * percent // 100)


def fallback_plan(subjects: Sequence[Subject], daily_hours: int, today: date | None = None) -> StudyPlanResult:
    """Build a five-day plan from static templates. Budgets below one hour count as one."""
    daily_hours = max(daily_hours, 1)
    today = today or date.today()
    ordered = sort_subjects_by_deadline(subjects, today) or [
        Subject(id="1", name=PLACEHOLDER_SUBJECT_NAME, deadline=today)
    ]

    days: List[StudyPlanDay] = []
    for index, label in enumerate(next_plan_days(today)):
        suffix = ASSESSMENT_SUFFIX if index == FINAL_DAY_INDEX else ""
        if index % 2 == 0 and len(ordered) > 1:
            first = ordered[index % len(ordered)]
            second = ordered[(index + 1) % len(ordered)]
            first_category = SubjectCategory.for_subject(first.name)
            second_category = SubjectCategory.for_subject(second.name)
            days.append(
                StudyPlanDay(
                    day=label.day,
                    date=label.date,
                    subject=f"{first.name}, {second.name}",
                    # Each paired subject gets the full share; the day total may exceed daily_hours.
                    hours=daily_hours,
                    notes=f"{first.name}: {first_category.notes}. {second.name}: {second_category.notes}{suffix}",
                    priority=highest_priority(priority_for(first, today), priority_for(second, today)),
                    resources=f"{first.name}: {first_category.resources}. {second.name}: {second_category.resources}",
                )
            )
            continue

        subject = ordered[index % len(ordered)]
        category = SubjectCategory.for_subject(subject.name)
        priority = priority_for(subject, today)
        share = HIGH_PRIORITY_SHARE if priority == "high" else DEFAULT_SHARE
        days.append(
            StudyPlanDay(
                day=label.day,
                date=label.date,
                subject=subject.name,
                hours=share_of_budget(daily_hours, share),
                notes=f"{category.notes}{suffix}",
                priority=priority,
                resources=category.resources,
            )
        )

    return StudyPlanResult(study_plan=days, motivational_tip=MOTIVATIONAL_TIP)
