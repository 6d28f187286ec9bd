"""Pydantic schemas for study plan generation and history."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

Priority = Literal["high", "medium", "low"]
PlanSource = Literal["llm", "fallback"]


class Subject(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(..., min_length=1, max_length=200)
    deadline: Optional[date] = None

    model_config = ConfigDict(frozen=True)


class StudyPlanDay(BaseModel):
    day: str
    date: str
    subject: str
    hours: int = Field(..., gt=0)
    notes: str
    priority: Priority
    resources: Optional[str] = None


class StudyPlanResult(BaseModel):
    """Wire format shared with the completion service, hence the camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)

    study_plan: List[StudyPlanDay] = Field(..., alias="studyPlan", min_length=1)
    motivational_tip: str = Field(..., alias="motivationalTip")


class StudyPlanSummary(BaseModel):
    total_hours: int
    unique_subjects: int
    session_count: int


class StudyPlanGenerateRequest(BaseModel):
    user_id: UUID
    subjects: List[Subject] = Field(default_factory=list, max_length=20)
    daily_hours: int = Field(4, ge=1, le=16)
    title: Optional[str] = Field(default=None, max_length=200)
    display_name: Optional[str] = Field(default=None, max_length=200)
    save: bool = True


class StudyPlanGenerateResponse(BaseModel):
    user_id: UUID
    plan: StudyPlanResult
    source: PlanSource
    summary: StudyPlanSummary
    saved_plan_id: Optional[UUID] = None
    save_error: Optional[str] = None
    request_id: str


class SavedStudyPlan(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    subjects: List[Subject]
    daily_hours: int
    plan: StudyPlanResult
    source: PlanSource
    created_at: Optional[datetime] = None


class SavedStudyPlanListResponse(BaseModel):
    user_id: UUID
    items: List[SavedStudyPlan]
    request_id: str
