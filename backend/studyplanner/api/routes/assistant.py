"""Study assistant routes."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from studyplanner.api.deps import get_completion_client
from studyplanner.api.schemas.assistant import (
    AssistantModeItem,
    AssistantModesResponse,
    AssistantQueryRequest,
    AssistantQueryResponse,
    AssistantStatusResponse,
)
from studyplanner.core.config import settings
from studyplanner.observability.metrics import log_metric, timed
from studyplanner.observability.tracing import trace
from studyplanner.services.completion_client import CompletionClient, validate_api_key
from studyplanner.services.study_assistant import MODE_TEMPLATES, AssistantError, ask_assistant, mode_title

router = APIRouter()

FAILURE_STATUS = {
    "rate_limit": status.HTTP_429_TOO_MANY_REQUESTS,
    "network_error": status.HTTP_504_GATEWAY_TIMEOUT,
}


@router.get("/assistant/modes", response_model=AssistantModesResponse, tags=["assistant"])
def assistant_modes() -> AssistantModesResponse:
    return AssistantModesResponse(
        items=[AssistantModeItem(mode=mode, title=template.title) for mode, template in MODE_TEMPLATES.items()]
    )


@router.get("/assistant/status", response_model=AssistantStatusResponse, tags=["assistant"])
def assistant_status() -> AssistantStatusResponse:
    """Report whether a usable completion API key is configured."""
    key_status = validate_api_key(settings.llm_api_key)
    return AssistantStatusResponse(valid=key_status.valid, error=key_status.error)


@router.post("/assistant/query", response_model=AssistantQueryResponse, tags=["assistant"])
def assistant_query(
    payload: AssistantQueryRequest,
    request: Request,
    client: Optional[CompletionClient] = Depends(get_completion_client),
) -> AssistantQueryResponse:
    request_id = getattr(request.state, "request_id", None)
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Please enter a query")
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The completion service API key is not configured.",
        )

    metadata = {"mode": payload.mode, "subject": payload.subject, "query_length": len(query)}
    with timed("assistant.query", metadata={"mode": payload.mode}):
        with trace("assistant.query", metadata=metadata, request_id=request_id):
            try:
                content = ask_assistant(
                    client,
                    query,
                    payload.mode,
                    payload.subject,
                    max_attempts=settings.llm_retry_attempts,
                    initial_delay=settings.llm_retry_initial_delay,
                )
            except AssistantError as exc:
                log_metric("assistant.query.failure", 1, metadata={"kind": exc.failure.kind})
                raise HTTPException(
                    status_code=FAILURE_STATUS.get(exc.failure.kind, status.HTTP_502_BAD_GATEWAY),
                    detail=exc.user_message,
                ) from exc

    log_metric("assistant.query.success", 1, metadata={"mode": payload.mode})
    return AssistantQueryResponse(
        mode=payload.mode,
        title=mode_title(payload.mode),
        content=content,
        request_id=request_id or "",
    )
