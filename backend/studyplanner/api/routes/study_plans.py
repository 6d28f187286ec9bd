"""Study plan generation and saved-plan routes."""
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studyplanner.api.deps import get_plan_generator
from studyplanner.api.schemas.study_plan import (
    SavedStudyPlan,
    SavedStudyPlanListResponse,
    StudyPlanGenerateRequest,
    StudyPlanGenerateResponse,
)
from studyplanner.db.deps import get_db
from studyplanner.observability.metrics import log_metric, timed
from studyplanner.observability.tracing import annotate, trace
from studyplanner.services.study_plan_generator import StudyPlanGenerator
from studyplanner.services.study_plan_service import (
    StudyPlanAccessDenied,
    StudyPlanNotFound,
    delete_study_plan,
    generate_study_plan,
    get_study_plan,
    list_study_plans,
    save_study_plan,
    summarize_plan,
    to_saved_plan,
)
from studyplanner.services.user_service import ensure_user

logger = logging.getLogger(__name__)

router = APIRouter()

SAVE_FAILED_MESSAGE = "The plan was generated but could not be saved. Please try again."


@router.post("/study-plans/generate", response_model=StudyPlanGenerateResponse, tags=["study-plans"])
def generate_plan(
    payload: StudyPlanGenerateRequest,
    request: Request,
    db: Session = Depends(get_db),
    generator: Optional[StudyPlanGenerator] = Depends(get_plan_generator),
) -> StudyPlanGenerateResponse:
    """Generate a five-day plan and, unless ``save`` is false, store a snapshot of it."""
    request_id = getattr(request.state, "request_id", None)
    user_id = payload.user_id
    subjects = [subject for subject in payload.subjects if subject.name.strip()]
    metadata = {
        "route": "/study-plans/generate",
        "subject_count": len(subjects),
        "daily_hours": payload.daily_hours,
        "save": payload.save,
    }

    with timed("study_plan.generate", metadata={"user_id": str(user_id)}):
        with trace("study_plan.request", metadata=metadata, user_id=str(user_id), request_id=request_id) as span:
            outcome = generate_study_plan(
                subjects,
                payload.daily_hours,
                generator=generator,
                request_id=request_id,
            )
            annotate(span, **metadata, source=outcome.source)

    saved_plan_id: UUID | None = None
    save_error: str | None = None
    if payload.save:
        try:
            ensure_user(db, user_id, display_name=payload.display_name)
            record = save_study_plan(
                db,
                user_id=user_id,
                subjects=subjects,
                daily_hours=payload.daily_hours,
                outcome=outcome,
                title=payload.title,
            )
            saved_plan_id = record.id
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to save study plan for user %s", user_id)
            save_error = SAVE_FAILED_MESSAGE
        log_metric("study_plan.save.success", 0 if save_error else 1, metadata={"user_id": str(user_id)})

    log_metric(
        "study_plan.generate.source_llm",
        1 if outcome.source == "llm" else 0,
        metadata={"user_id": str(user_id)},
    )
    return StudyPlanGenerateResponse(
        user_id=user_id,
        plan=outcome.result,
        source=outcome.source,
        summary=summarize_plan(outcome.result),
        saved_plan_id=saved_plan_id,
        save_error=save_error,
        request_id=request_id or "",
    )


@router.get("/study-plans", response_model=SavedStudyPlanListResponse, tags=["study-plans"])
def list_plans(
    request: Request,
    user_id: UUID = Query(..., description="User ID owning the plans"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
) -> SavedStudyPlanListResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("study_plan.list", metadata={"limit": limit}, user_id=str(user_id), request_id=request_id):
        records = list_study_plans(db, user_id, limit=limit)

    log_metric("study_plan.list.count", len(records), metadata={"user_id": str(user_id)})
    return SavedStudyPlanListResponse(
        user_id=user_id,
        items=[to_saved_plan(record) for record in records],
        request_id=request_id or "",
    )


@router.get("/study-plans/{plan_id}", response_model=SavedStudyPlan, tags=["study-plans"])
def get_plan(
    plan_id: UUID,
    request: Request,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    db: Session = Depends(get_db),
) -> SavedStudyPlan:
    request_id = getattr(request.state, "request_id", None)
    with trace("study_plan.get", metadata={"plan_id": str(plan_id)}, user_id=str(user_id), request_id=request_id):
        record = _load_owned_plan(db, plan_id, user_id)
    return to_saved_plan(record)


@router.delete("/study-plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["study-plans"])
def delete_plan(
    plan_id: UUID,
    request: Request,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    db: Session = Depends(get_db),
) -> Response:
    request_id = getattr(request.state, "request_id", None)
    with trace("study_plan.delete", metadata={"plan_id": str(plan_id)}, user_id=str(user_id), request_id=request_id):
        try:
            delete_study_plan(db, plan_id, user_id)
        except StudyPlanNotFound:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Study plan not found")
        except StudyPlanAccessDenied:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Study plan does not belong to user")
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Failed to delete study plan %s", plan_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete the study plan",
            ) from exc

    log_metric("study_plan.delete.success", 1, metadata={"user_id": str(user_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _load_owned_plan(db: Session, plan_id: UUID, user_id: UUID):
    try:
        return get_study_plan(db, plan_id, user_id)
    except StudyPlanNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Study plan not found")
    except StudyPlanAccessDenied:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Study plan does not belong to user")
