"""Observability middleware for FastAPI.

Provides:
- Request ID generation and propagation
- Request/response timing

Usage:
    from libs.common.middleware import add_observability_middleware

    app = FastAPI()
    add_observability_middleware(app, service_name="payout")
"""
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Sets the request context for log correlation and logs each request."""

    def __init__(self, app, service_name: str = "api"):
        super().__init__(app)
        self.service_name = service_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get("X-Request-ID"),
            path=request.url.path,
            method=request.method,
        )
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request failed with unhandled exception",
                extra={
                    "extra_fields": {
                        "service": self.service_name,
                        "duration_ms": round(
                            (time.perf_counter() - start_time) * 1000, 2
                        ),
                    }
                },
            )
            clear_request_context()
            raise

        if request.url.path != "/health":
            duration_ms = (time.perf_counter() - start_time) * 1000
            log = logger.warning if response.status_code >= 400 else logger.info
            log(
                "%s %s -> %d",
                request.method,
                request.url.path,
                response.status_code,
                extra={
                    "extra_fields": {
                        "service": self.service_name,
                        "status_code": response.status_code,
                        "duration_ms": round(duration_ms, 2),
                    }
                },
            )

        response.headers["X-Request-ID"] = request_id
        clear_request_context()
        return response


def add_observability_middleware(app: FastAPI, service_name: str = "api") -> None:
    """Configure logging and install the request context middleware."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware, service_name=service_name)
