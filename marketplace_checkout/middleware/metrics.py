# marketplace_checkout/middleware/metrics.py
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from marketplace_checkout.core.logging import get_logger

logger = get_logger(__name__)

SLOW_REQUEST_MS = 500.0


def new_metrics() -> dict:
    return {
        "requests": 0,
        "total_response_ms": 0.0,
        "client_errors": 0,
        "server_errors": 0,
    }


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Collects in-process metrics:
      - total requests and total response time (ms)
      - 4xx / 5xx response counts
    Checkout code may add its own counters to app.state.metrics
    (e.g. orders_placed).
    NOTE: do NOT touch app.state in __init__; it may not be available yet while middleware stack builds.
    """

    def __init__(self, app, dispatch: Callable = None):
        super().__init__(app, dispatch=dispatch)

    async def dispatch(self, request: Request, call_next):
        metrics = getattr(request.app.state, "metrics", None)
        if metrics is None:
            metrics = request.app.state.metrics = new_metrics()

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        metrics["requests"] = metrics.get("requests", 0) + 1
        metrics["total_response_ms"] = metrics.get("total_response_ms", 0.0) + elapsed_ms
        if 400 <= response.status_code < 500:
            metrics["client_errors"] = metrics.get("client_errors", 0) + 1
        elif response.status_code >= 500:
            metrics["server_errors"] = metrics.get("server_errors", 0) + 1

        if elapsed_ms > SLOW_REQUEST_MS:
            logger.warning(
                "%s %s took %.2f ms", request.method, request.url.path, elapsed_ms
            )

        return response
