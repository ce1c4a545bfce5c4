"""Request middleware: request/trace IDs in the log context, access logging."""

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from edutrack.core.context import clear_context, set_request_id, set_trace_id


logger = structlog.get_logger(__name__)

# Each open player writes progress every 30 seconds
HIGH_FREQUENCY_PATHS = ("/v1/progress/video",)

_TRACEPARENT_FIELDS = 4


def trace_id_from_traceparent(header: str | None) -> str | None:
    """Trace ID of a W3C ``traceparent`` (version-traceid-parentid-flags)."""
    if not header:
        return None
    fields = header.strip().split("-")
    if len(fields) != _TRACEPARENT_FIELDS or not fields[1]:
        return None
    return fields[1]


def client_ip(request: Request) -> str | None:
    """First hop of X-Forwarded-For, else the socket peer."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request context for structlog and logs each request once.

    Requests to ``exclude_paths`` are not logged; successful progress writes
    are logged at debug level so syncs do not drown everything else.
    """

    REQUEST_ID_HEADER = "X-Request-ID"
    TRACE_ID_HEADER = "X-Trace-ID"

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.exclude_paths = tuple(exclude_paths or ["/health"])

    def _should_log(self, path: str) -> bool:
        return self.log_requests and not path.startswith(self.exclude_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        started = time.perf_counter()
        path = request.url.path

        request_id = set_request_id(request.headers.get(self.REQUEST_ID_HEADER))
        request.state.request_id = request_id
        trace_id = request.headers.get(self.TRACE_ID_HEADER) or trace_id_from_traceparent(
            request.headers.get("traceparent")
        )
        if trace_id:
            set_trace_id(trace_id)

        try:
            response = await call_next(request)
            if self._should_log(path):
                self._log_completed(request, response, started)
        except Exception as e:
            logger.exception(
                "request_failed",
                method=request.method,
                path=path,
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        finally:
            clear_context()

        response.headers[self.REQUEST_ID_HEADER] = request_id
        return response

    @staticmethod
    def _log_completed(request: Request, response: Response, started: float) -> None:
        path = request.url.path
        if response.status_code >= 400:  # noqa: PLR2004
            log = logger.warning
        elif path in HIGH_FREQUENCY_PATHS:
            log = logger.debug
        else:
            log = logger.info
        log(
            "request_completed",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            client_ip=client_ip(request),
        )


__all__ = ["RequestContextMiddleware", "client_ip", "trace_id_from_traceparent"]
