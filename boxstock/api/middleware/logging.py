"""
Per-request log context.

Every event logged while a request is served carries its request id, and
the acting user when the request names one, so a sale, its ledger
movements and any audit decision can be traced back to one call.
"""

import secrets
import time
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from boxstock.config import get_logger, get_settings

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Bind request context and log one summary event per request."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or secrets.token_hex(6)
        request.state.request_id = request_id
        context = {"request_id": request_id}
        actor = request.headers.get(get_settings().api.actor_header)
        if actor:
            context["actor"] = actor

        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(**context):
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(
                    "request_failed",
                    method=request.method,
                    path=request.url.path,
                    elapsed_ms=_elapsed_ms(started),
                )
                raise

            # Mutations and failures at INFO; routine reads at DEBUG
            quiet = request.method == "GET" and response.status_code < 400
            log = logger.debug if quiet else logger.info
            elapsed_ms = _elapsed_ms(started)
            log(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                elapsed_ms=elapsed_ms,
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms}ms"
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
