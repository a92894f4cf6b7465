"""Prometheus metrics for the API and the vote engine."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_LATENCY_SECONDS = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests in seconds.",
    labelnames=("method", "path"),
)
REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests processed.",
    labelnames=("method", "path", "status"),
)
REQUEST_ERROR_COUNTER = Counter(
    "http_request_errors_total",
    "Total number of HTTP requests that resulted in server errors.",
    labelnames=("method", "path", "status"),
)
BALLOTS_CAST_COUNTER = Counter(
    "ballots_cast_total",
    "Ballots accepted by the engine.",
    labelnames=("proxy",),
)
BALLOT_REJECTIONS_COUNTER = Counter(
    "ballot_rejections_total",
    "Ballots refused by the acceptance guard, by error code.",
    labelnames=("code",),
)
OFFICIAL_RESULTS_COUNTER = Counter(
    "official_results_total",
    "Official motion results written by consolidation.",
    labelnames=("source", "decision"),
)
PROXY_DELEGATIONS_COUNTER = Counter(
    "proxy_delegations_total",
    "Proxy delegation changes.",
    labelnames=("action",),
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware that records request metrics for Prometheus scraping."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        method = request.method
        path = request.url.path
        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            status = str(response.status_code)
            if response.status_code >= 500:
                REQUEST_ERROR_COUNTER.labels(method=method, path=path, status=status).inc()
            return response
        except Exception:
            REQUEST_ERROR_COUNTER.labels(method=method, path=path, status="500").inc()
            raise
        finally:
            latency = time.perf_counter() - start_time
            REQUEST_LATENCY_SECONDS.labels(method=method, path=path).observe(latency)
            REQUEST_COUNTER.labels(method=method, path=path, status=status).inc()


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Expose Prometheus metrics for scraping."""
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


def record_ballot_cast(*, proxy: bool) -> None:
    BALLOTS_CAST_COUNTER.labels(proxy="true" if proxy else "false").inc()


def record_ballot_rejection(code: str) -> None:
    BALLOT_REJECTIONS_COUNTER.labels(code=code).inc()


def record_official_result(*, source: str, decision: str) -> None:
    OFFICIAL_RESULTS_COUNTER.labels(source=source, decision=decision).inc()


def record_delegation_change(action: str) -> None:
    PROXY_DELEGATIONS_COUNTER.labels(action=action).inc()


__all__ = [
    "BALLOTS_CAST_COUNTER",
    "BALLOT_REJECTIONS_COUNTER",
    "OFFICIAL_RESULTS_COUNTER",
    "PROXY_DELEGATIONS_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "metrics_endpoint",
    "metrics_router",
    "record_ballot_cast",
    "record_ballot_rejection",
    "record_delegation_change",
    "record_official_result",
]
