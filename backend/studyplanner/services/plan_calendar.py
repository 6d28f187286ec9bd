"""Date helpers shared by the LLM adapter and the fallback planner."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List

from studyplanner.api.schemas.study_plan import Subject

PLAN_LENGTH_DAYS = 5

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass(frozen=True)
class DayLabel:
    day: str
    date: str


def days_until_deadline(deadline: date | None, today: date | None = None) -> float:
    """Whole days left; ``inf`` without a deadline and 0 once it has passed."""
    if deadline is None:
        return math.inf
    remaining = (deadline - (today or date.today())).days
    return remaining if remaining > 0 else 0


def sort_subjects_by_deadline(subjects: Iterable[Subject], today: date | None = None) -> List[Subject]:
    today = today or date.today()
    return sorted(subjects, key=lambda subject: days_until_deadline(subject.deadline, today))


def format_plan_date(value: date) -> str:
    """Render ``Oct 16, 2026``, independent of the process locale."""
    return f"{MONTH_ABBREVIATIONS[value.month - 1]} {value.day}, {value.year}"


def next_plan_days(today: date | None = None, count: int = PLAN_LENGTH_DAYS) -> List[DayLabel]:
    start = today or date.today()
    labels: List[DayLabel] = []
    for offset in range(count):
        current = start + timedelta(days=offset)
        labels.append(DayLabel(day=DAY_NAMES[current.weekday()], date=format_plan_date(current)))
    return labels
