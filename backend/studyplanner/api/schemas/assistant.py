"""Schemas for the study assistant endpoints."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

AssistantMode = Literal["explanation", "practice", "summary", "flashcards", "strategy"]


class AssistantQueryRequest(BaseModel):
    mode: AssistantMode = "explanation"
    query: str = Field(..., min_length=1, max_length=4000)
    subject: Optional[str] = Field(default=None, max_length=200)


class AssistantQueryResponse(BaseModel):
    mode: AssistantMode
    title: str
    content: str
    request_id: str


class AssistantModeItem(BaseModel):
    mode: AssistantMode
    title: str


class AssistantModesResponse(BaseModel):
    items: List[AssistantModeItem]


class AssistantStatusResponse(BaseModel):
    valid: bool
    error: Optional[str] = None
