"""Observability utilities."""

from .metrics import (
    BALLOTS_CAST_COUNTER,
    BALLOT_REJECTIONS_COUNTER,
    OFFICIAL_RESULTS_COUNTER,
    PROXY_DELEGATIONS_COUNTER,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    PrometheusMiddleware,
    metrics_router,
    record_ballot_cast,
    record_ballot_rejection,
    record_delegation_change,
    record_official_result,
)
from .tracing import (
    engine_span,
    initialise_tracing,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
)

__all__ = [
    "BALLOTS_CAST_COUNTER",
    "BALLOT_REJECTIONS_COUNTER",
    "OFFICIAL_RESULTS_COUNTER",
    "PROXY_DELEGATIONS_COUNTER",
    "PrometheusMiddleware",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "engine_span",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "metrics_router",
    "record_ballot_cast",
    "record_ballot_rejection",
    "record_delegation_change",
    "record_official_result",
]
