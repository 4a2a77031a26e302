"""One structured log line per HTTP request."""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


def _is_probe(path: str) -> bool:
    return path == "/health" or path.endswith("/health/ready")


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("http_request_failed", elapsed_ms=_elapsed_ms(started))
            raise

        # Probes are polled constantly
        emit = logger.debug if _is_probe(request.url.path) else logger.info
        emit("http_request", status=response.status_code, elapsed_ms=_elapsed_ms(started))
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)
