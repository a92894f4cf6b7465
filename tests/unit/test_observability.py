from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
from opentelemetry import trace

from assembly.obs import (
    BALLOT_REJECTIONS_COUNTER,
    OFFICIAL_RESULTS_COUNTER,
    PrometheusMiddleware,
    engine_span,
    initialise_tracing,
    metrics_router,
    record_ballot_rejection,
    record_official_result,
)


def _sample_value(counter, **labels: str) -> float:  # type: ignore[no-untyped-def]
    family = next(iter(counter.collect()))
    for sample in family.samples:
        if sample.name.endswith("_total") and all(sample.labels.get(k) == v for k, v in labels.items()):
            return sample.value
    return 0.0


def test_metrics_endpoint_exposes_counters() -> None:
    app = FastAPI()
    app.add_middleware(PrometheusMiddleware)
    app.include_router(metrics_router)

    client = TestClient(app)
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text
    assert "ballots_cast_total" in response.text


def test_ballot_rejection_counter_is_labelled_by_code() -> None:
    before = _sample_value(BALLOT_REJECTIONS_COUNTER, code="voter_not_present")

    record_ballot_rejection("voter_not_present")

    assert _sample_value(BALLOT_REJECTIONS_COUNTER, code="voter_not_present") == before + 1


def test_official_result_counter_is_labelled_by_source_and_decision() -> None:
    before = _sample_value(OFFICIAL_RESULTS_COUNTER, source="manual", decision="adopted")

    record_official_result(source="manual", decision="adopted")

    assert _sample_value(OFFICIAL_RESULTS_COUNTER, source="manual", decision="adopted") == before + 1


def test_engine_span_sets_identifier_attributes() -> None:
    initialise_tracing(service_name="unit-test-service", instrument_logging=False)

    with engine_span("ballot.cast", motion_id="motion-1", proxy=None) as span:
        assert span.get_span_context().trace_id == trace.get_current_span().get_span_context().trace_id
        assert span.is_recording()
