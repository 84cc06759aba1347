"""Custom FastAPI middleware."""
from __future__ import annotations

from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from stoa.core.context import bound_request_id

USER_ID_HEADER = "X-User-Id"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Populate request.state.request_id and request.state.user_id; echo X-Request-Id."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        request.state.user_id = (request.headers.get(USER_ID_HEADER) or "").strip() or None
        with bound_request_id(request_id):
            response = await call_next(request)

        response.headers["X-Request-Id"] = request_id
        return response
