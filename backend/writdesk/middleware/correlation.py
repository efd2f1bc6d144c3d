"""
Correlation ID middleware
=========================
Injects a unique X-Correlation-ID into every request so that all log lines
for a single HTTP call share the same identifier, and forwards it to the
remote case service on every outbound call made while handling the request.

Also echoes X-Tab-ID back in the response if the client sent one; the tab id
scopes debounced writ searches.
"""
from __future__ import annotations

import uuid
import logging
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def current_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


class CorrelationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        # Accept from client or generate fresh
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        tab_id = request.headers.get("X-Tab-ID", "")

        request.state.correlation_id = correlation_id
        request.state.tab_id = tab_id
        token = correlation_id_var.set(correlation_id)

        logger.info(
            "request",
            extra={
                "correlation_id": correlation_id,
                "tab_id": tab_id or None,
                "method": request.method,
                "path": request.url.path,
            },
        )

        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)

        response.headers["X-Correlation-ID"] = correlation_id
        if tab_id:
            response.headers["X-Tab-ID"] = tab_id

        return response
