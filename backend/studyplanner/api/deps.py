"""FastAPI dependencies for the completion service."""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends

from studyplanner.core.config import settings
from studyplanner.services.completion_client import CompletionClient, build_completion_client
from studyplanner.services.study_plan_generator import StudyPlanGenerator


@lru_cache
def get_completion_client() -> Optional[CompletionClient]:
    """Shared client built from settings; None when no usable API key is configured."""
    return build_completion_client(settings)


def get_plan_generator(
    client: Optional[CompletionClient] = Depends(get_completion_client),
) -> Optional[StudyPlanGenerator]:
    if client is None:
        return None
    return StudyPlanGenerator(client)
