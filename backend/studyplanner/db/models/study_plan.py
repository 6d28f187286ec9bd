"""Saved study plan ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from studyplanner.db.base import Base
from studyplanner.db.types import JSONBCompat


class StudyPlan(Base):
    """Append-only snapshot of one generation: its inputs and the full result."""

    __tablename__ = "study_plans"
    __table_args__ = (
        Index("ix_study_plans_user_id", "user_id"),
        Index("ix_study_plans_user_created", "user_id", "created_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False, server_default=sa_text("'My Study Plan'"))
    subjects = Column(JSONBCompat, nullable=False, default=list)
    daily_hours = Column(Integer, nullable=False)
    plan_data = Column(JSONBCompat, nullable=False, default=list)
    motivational_tip = Column(Text, nullable=True)
    # "llm" or "fallback"
    source = Column(String(length=20), nullable=False, server_default=sa_text("'fallback'"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
