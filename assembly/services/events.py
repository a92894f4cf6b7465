"""Domain events emitted after engine writes commit."""
from __future__ import annotations

import json
import logging
from collections import deque
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Protocol
from uuid import uuid4

from pydantic import BaseModel, Field

from assembly.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

BALLOT_RECORDED = "ballot_recorded"
PROXY_DELEGATED = "proxy_delegated"
PROXY_REVOKED = "proxy_revoked"
MOTION_OPENED = "motion_opened"
MOTION_CLOSED = "motion_closed"
RESULT_CONSOLIDATED = "result_consolidated"
MEETING_STATUS_CHANGED = "meeting_status_changed"
READINESS_CHANGED = "readiness_changed"
ATTENDANCE_CHANGED = "attendance_changed"


class VoteEvent(BaseModel):
    """Serializable notification of an engine state change."""

    event_id: str = Field(default_factory=lambda: uuid4().hex)
    event_type: str
    tenant_id: str
    meeting_id: str | None = None
    motion_id: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventSink(Protocol):
    """Anything able to publish a domain event."""

    def publish(self, event: VoteEvent) -> None:
        """Publish ``event``; may raise on transport failure."""


class InMemoryEventSink:
    """Thread-safe in-memory sink used for tests and local development.

    With ``maxlen`` set, only the most recent events are retained.
    """

    def __init__(self, maxlen: int | None = None) -> None:
        self._events: deque[VoteEvent] = deque(maxlen=maxlen)
        self._lock = Lock()

    @property
    def maxlen(self) -> int | None:
        return self._events.maxlen

    def publish(self, event: VoteEvent) -> None:
        with self._lock:
            self._events.append(event)

    def list_events(self, event_type: str | None = None) -> list[VoteEvent]:
        with self._lock:
            if event_type is None:
                return list(self._events)
            return [event for event in self._events if event.event_type == event_type]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class KafkaEventSink:
    """Publishes vote events to a Kafka topic."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        producer_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._producer_factory = producer_factory or self._default_factory
        self._producer: Any | None = None

    def _default_factory(self) -> Any:
        from kafka import KafkaProducer

        return KafkaProducer(
            bootstrap_servers=self._settings.kafka_bootstrap_servers.split(","),
            value_serializer=lambda value: json.dumps(value).encode("utf-8"),
        )

    def _get_producer(self) -> Any:
        if self._producer is None:
            self._producer = self._producer_factory()
        return self._producer

    def publish(self, event: VoteEvent) -> None:
        producer = self._get_producer()
        logger.debug(
            "publishing vote event",
            extra={"event_type": event.event_type, "motion_id": event.motion_id},
        )
        key = (event.meeting_id or event.tenant_id).encode("utf-8")
        producer.send(self._settings.vote_events_topic, key=key, value=event.model_dump(mode="json"))
        producer.flush()


vote_event_queue = InMemoryEventSink(maxlen=get_settings().memory_event_buffer)
_kafka_sink: KafkaEventSink | None = None


def build_event_sink(settings: Settings | None = None) -> EventSink:
    """Return the sink selected by ``event_sink`` in the settings."""

    global _kafka_sink
    settings = settings or get_settings()
    if settings.event_sink == "kafka":
        if _kafka_sink is None:
            _kafka_sink = KafkaEventSink(settings=settings)
        return _kafka_sink
    return vote_event_queue


def publish_all(sink: EventSink, events: Iterable[VoteEvent]) -> None:
    """Publish committed events; transport failures are logged, never raised."""

    for event in events:
        try:
            sink.publish(event)
        except Exception:
            logger.exception(
                "failed to publish vote event",
                extra={"event_type": event.event_type, "event_id": event.event_id},
            )


__all__ = [
    "ATTENDANCE_CHANGED",
    "BALLOT_RECORDED",
    "EventSink",
    "InMemoryEventSink",
    "KafkaEventSink",
    "MEETING_STATUS_CHANGED",
    "MOTION_CLOSED",
    "MOTION_OPENED",
    "PROXY_DELEGATED",
    "PROXY_REVOKED",
    "READINESS_CHANGED",
    "RESULT_CONSOLIDATED",
    "VoteEvent",
    "build_event_sink",
    "publish_all",
    "vote_event_queue",
]
