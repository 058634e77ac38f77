from __future__ import annotations

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging import get_logger
from app.core.metrics import normalize_path, record_request_metrics


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Record request latency, tag responses with a request id and log failures."""

    def __init__(self, app, *, log_4xx: bool = True) -> None:
        super().__init__(app)
        self.logger = get_logger("app.requests")
        self.log_4xx = log_4xx

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start
            record_request_metrics(request, 500, duration)
            self._log(request, request_id, 500, duration, "Unhandled server error", "error")
            raise

        duration = time.perf_counter() - start
        record_request_metrics(request, response.status_code, duration)
        response.headers["X-Request-ID"] = request_id

        if response.status_code >= 500:
            # 502/503 here usually mean Payconiq failed or is not configured
            self._log(request, request_id, response.status_code, duration, "Server error response", "error")
        elif response.status_code >= 400 and self.log_4xx:
            self._log(request, request_id, response.status_code, duration, "Client error response", "warning")

        return response

    def _log(
        self,
        request: Request,
        request_id: str,
        status_code: int,
        duration: float,
        message: str,
        level: str,
    ) -> None:
        payload = {
            "method": request.method,
            "path": normalize_path(request),
            "status_code": status_code,
            "duration_ms": round(duration * 1000, 3),
            "request_id": request_id,
        }
        log_func = getattr(self.logger, level, self.logger.error)
        log_func(message, extra=payload)
