"""Main FastAPI application for the Stoa planner backend."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from stoa.api.routes.conversations import router as conversations_router
from stoa.api.routes.plans import router as plans_router
from stoa.core.config import settings
from stoa.core.errors import AuthenticationMissing, UpstreamFailure
from stoa.core.logging import configure_logging
from stoa.core.middleware import RequestIDMiddleware
from stoa.observability.client import init_opik
from stoa.observability.tracing import trace

configure_logging(log_level=settings.log_level, debug=settings.debug)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(conversations_router)
app.include_router(plans_router)


@app.exception_handler(AuthenticationMissing)
async def authentication_missing_handler(request: Request, exc: AuthenticationMissing) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)})


@app.exception_handler(UpstreamFailure)
async def upstream_failure_handler(request: Request, exc: UpstreamFailure) -> JSONResponse:
    logger.error("Upstream failure during %s: %s", exc.operation, exc)
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": "Failed to process message"})


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
