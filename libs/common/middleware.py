"""Request tracing middleware shared by the FastAPI apps.

Every request gets an id (taken from ``X-Request-ID`` when the caller sends
one) that is bound to the logging context and echoed back on the response.

Usage:
    from libs.common.middleware import add_observability_middleware

    app = FastAPI()
    add_observability_middleware(app, service_name="lessons")
"""
import time
from typing import Callable, Iterable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request context for logging and times each request."""

    def __init__(self, app, service_name: str, quiet_paths: Iterable[str] = ("/health",)):
        super().__init__(app)
        self.service_name = service_name
        self.quiet_paths = frozenset(quiet_paths)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get(REQUEST_ID_HEADER),
            path=request.url.path,
            method=request.method,
            service=self.service_name,
        )
        quiet = request.url.path in self.quiet_paths
        started = time.perf_counter()

        try:
            response = await call_next(request)

            if not quiet:
                # Domain rejections (4xx) log at INFO
                level = "warning" if response.status_code >= 500 else "info"
                getattr(logger, level)(
                    "%s %s -> %s",
                    request.method,
                    request.url.path,
                    response.status_code,
                    extra={
                        "extra_fields": {
                            "status_code": response.status_code,
                            "duration_ms": _elapsed(started),
                        }
                    },
                )

            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        except Exception as e:
            logger.exception(
                "Unhandled error in %s %s",
                request.method,
                request.url.path,
                extra={"extra_fields": {"error": str(e), "duration_ms": _elapsed(started)}},
            )
            raise

        finally:
            clear_request_context()


def _elapsed(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def add_observability_middleware(app: FastAPI, service_name: str) -> None:
    """Configure logging and install request tracing on ``app``."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware, service_name=service_name)
    logger.info("Observability middleware initialized for %s", service_name)
