"""Main FastAPI application for the study planner backend."""
from fastapi import FastAPI, Request

from studyplanner.api.routes.assistant import router as assistant_router
from studyplanner.api.routes.study_plans import router as study_plans_router
from studyplanner.core.config import settings
from studyplanner.core.logging import configure_logging
from studyplanner.core.middleware import RequestIDMiddleware
from studyplanner.observability.client import init_opik
from studyplanner.observability.tracing import trace

configure_logging(log_level=settings.log_level, debug=settings.debug)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(study_plans_router)
app.include_router(assistant_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
