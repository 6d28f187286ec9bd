"""Study plan orchestration: LLM generation with fallback, plus saved-plan storage."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Sequence
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.orm import Session

from studyplanner.api.schemas.study_plan import (
    PlanSource,
    SavedStudyPlan,
    StudyPlanResult,
    StudyPlanSummary,
    Subject,
)
from studyplanner.core.config import settings
from studyplanner.db.models.study_plan import StudyPlan
from studyplanner.observability.metrics import log_metric
from studyplanner.observability.tracing import annotate, trace
from studyplanner.services.completion_client import CompletionFailure, classify_completion_error
from studyplanner.services.fallback_planner import fallback_plan
from studyplanner.services.retry import retry_with_backoff
from studyplanner.services.study_plan_generator import StudyPlanGenerator

logger = logging.getLogger(__name__)


@dataclass
class PlanOutcome:
    result: StudyPlanResult
    source: PlanSource
    failure: CompletionFailure | None = None


class StudyPlanNotFound(LookupError):
    pass


class StudyPlanAccessDenied(PermissionError):
    pass


def generate_study_plan(
    subjects: Sequence[Subject],
    daily_hours: int,
    *,
    generator: StudyPlanGenerator | None = None,
    today: date | None = None,
    sleep: Callable[[float], None] = time.sleep,
    request_id: str | None = None,
) -> PlanOutcome:
    """
    Produce a plan, preferring the LLM and silently falling back to templates.

    Rate-limited calls are retried with exponential backoff before giving up.
    Every other failure, including unparsable output, goes straight to the
    fallback planner, so callers always get a usable plan.
    """
    today = today or date.today()
    metadata = {"subject_count": len(subjects), "daily_hours": daily_hours}

    if generator is None:
        log_metric("study_plan.fallback.used", 1, metadata={"reason": "no_client"})
        return PlanOutcome(result=fallback_plan(subjects, daily_hours, today), source="fallback")

    with trace("study_plan.generate", metadata=metadata, request_id=request_id) as span:
        try:
            result = retry_with_backoff(
                lambda: generator.generate_plan(subjects, daily_hours, today),
                max_attempts=settings.llm_retry_attempts,
                initial_delay=settings.llm_retry_initial_delay,
                sleep=sleep,
            )
        except Exception as exc:
            failure = classify_completion_error(exc)
            logger.warning("Study plan generation failed (%s); using fallback plan: %s", failure.kind, exc)
            annotate(span, **metadata, source="fallback", failure=failure.kind)
            log_metric("study_plan.fallback.used", 1, metadata={"reason": failure.kind})
            return PlanOutcome(
                result=fallback_plan(subjects, daily_hours, today),
                source="fallback",
                failure=failure,
            )

        annotate(span, **metadata, source="llm", days=len(result.study_plan))

    log_metric("study_plan.llm.success", 1, metadata=metadata)
    return PlanOutcome(result=result, source="llm")


def summarize_plan(result: StudyPlanResult) -> StudyPlanSummary:
    sessions = result.study_plan
    return StudyPlanSummary(
        total_hours=sum(day.hours for day in sessions),
        unique_subjects=len({day.subject for day in sessions}),
        session_count=len(sessions),
    )


def save_study_plan(
    db: Session,
    *,
    user_id: UUID,
    subjects: Sequence[Subject],
    daily_hours: int,
    outcome: PlanOutcome,
    title: str | None = None,
) -> StudyPlan:
    """Insert one snapshot row. Commits, and leaves rollback to the caller on failure."""
    record = StudyPlan(
        user_id=user_id,
        title=(title or "").strip() or settings.default_plan_title,
        subjects=[subject.model_dump(mode="json") for subject in subjects],
        daily_hours=daily_hours,
        plan_data=[day.model_dump(mode="json") for day in outcome.result.study_plan],
        motivational_tip=outcome.result.motivational_tip,
        source=outcome.source,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def list_study_plans(db: Session, user_id: UUID, limit: int = 50) -> List[StudyPlan]:
    return (
        db.query(StudyPlan)
        .filter(StudyPlan.user_id == user_id)
        .order_by(desc(StudyPlan.created_at), desc(StudyPlan.id))
        .limit(limit)
        .all()
    )


def get_study_plan(db: Session, plan_id: UUID, user_id: UUID) -> StudyPlan:
    record = db.get(StudyPlan, plan_id)
    if not record:
        raise StudyPlanNotFound(str(plan_id))
    if record.user_id != user_id:
        raise StudyPlanAccessDenied(str(plan_id))
    return record


def delete_study_plan(db: Session, plan_id: UUID, user_id: UUID) -> None:
    record = get_study_plan(db, plan_id, user_id)
    db.delete(record)
    db.commit()


def to_saved_plan(record: StudyPlan) -> SavedStudyPlan:
    return SavedStudyPlan(
        id=record.id,
        user_id=record.user_id,
        title=record.title,
        subjects=[Subject.model_validate(entry) for entry in record.subjects or []],
        daily_hours=record.daily_hours,
        plan=StudyPlanResult(
            study_plan=record.plan_data,
            motivational_tip=record.motivational_tip or "",
        ),
        source=record.source or "fallback",
        created_at=record.created_at,
    )
