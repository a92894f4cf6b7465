"""Motion lifecycle and meeting status workflow."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable

from sqlalchemy.orm import Session

from assembly.db.transactions import serializable_transaction
from assembly.models import MEETING_STATUS_ORDER, Meeting, MeetingStatus, Motion
from assembly.repositories import (
    MeetingReader,
    MotionReader,
    SqlMeetingRepository,
    SqlMotionRepository,
)
from assembly.services.audit import record_audit
from assembly.services.ballots import ensure_meeting_mutable, load_motion_and_meeting
from assembly.services.errors import EligibilityError, InputValidationError, NotFoundError, require_identifier
from assembly.services.events import (
    MEETING_STATUS_CHANGED,
    MOTION_CLOSED,
    MOTION_OPENED,
    READINESS_CHANGED,
    EventSink,
    VoteEvent,
    build_event_sink,
    publish_all,
)
from assembly.services.readiness import MeetingReadinessEvaluator, Readiness, diff_violations
from assembly.services.results import MotionResult, OfficialResultConsolidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ManualTallyInput:
    total: Decimal
    for_weight: Decimal
    against_weight: Decimal
    abstain_weight: Decimal


@dataclass(frozen=True, slots=True)
class CloseResult:
    motion: Motion
    result: MotionResult


def _to_decimal(value: Decimal | int | float | str, name: str) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InputValidationError("invalid_tally", f"{name} is not a number") from exc
    if not number.is_finite() or number < 0:
        raise InputValidationError("invalid_tally", f"{name} must be a non-negative number")
    return number


class MeetingWorkflow:
    """Opens and closes motions, records manual tallies and moves meetings along."""

    def __init__(
        self,
        session: Session,
        *,
        motions: MotionReader | None = None,
        meetings: MeetingReader | None = None,
        consolidator: OfficialResultConsolidator | None = None,
        readiness: MeetingReadinessEvaluator | None = None,
        events: EventSink | None = None,
    ) -> None:
        self._session = session
        self._motions = motions or SqlMotionRepository(session)
        self._meetings = meetings or SqlMeetingRepository(session)
        self._events = events or build_event_sink()
        self._consolidator = consolidator or OfficialResultConsolidator(session, events=self._events)
        self._readiness = readiness or MeetingReadinessEvaluator(session)

    def _load_meeting(self, tenant_id: str, meeting_id: str, *, lock: bool = False) -> Meeting:
        meeting = self._meetings.get(tenant_id, meeting_id, lock=lock)
        if meeting is None:
            raise NotFoundError("meeting_not_found", f"Meeting '{meeting_id}' was not found for tenant '{tenant_id}'")
        return meeting

    def open_motion(self, *, tenant_id: str, motion_id: str, actor: str | None = None) -> Motion:
        motion_id = require_identifier(motion_id, "motion_id")
        with serializable_transaction(self._session):
            motion, meeting = load_motion_and_meeting(
                self._motions, self._meetings, tenant_id=tenant_id, motion_id=motion_id, lock=True
            )
            ensure_meeting_mutable(meeting)
            if meeting.status is not MeetingStatus.LIVE:
                raise EligibilityError("meeting_not_live", f"Meeting '{meeting.id}' is not live")
            if motion.opened_at is not None:
                raise EligibilityError("motion_already_opened", f"Motion '{motion.id}' was already opened")
            if self._motions.open_motion_ids(meeting.id):
                raise EligibilityError("another_motion_open", "Another motion of this meeting is open")
            motion.opened_at = datetime.now(timezone.utc)
            record_audit(
                self._session,
                tenant_id=tenant_id,
                action="motion.open",
                resource_type="Motion",
                resource_id=motion.id,
                actor=actor,
            )
            event = VoteEvent(event_type=MOTION_OPENED, tenant_id=tenant_id, meeting_id=meeting.id, motion_id=motion.id)

        publish_all(self._events, [event])
        return motion

    def close_motion(self, *, tenant_id: str, motion_id: str, actor: str | None = None) -> CloseResult:
        """Close an open motion, then consolidate its official result."""

        motion_id = require_identifier(motion_id, "motion_id")
        with serializable_transaction(self._session):
            motion, meeting = load_motion_and_meeting(
                self._motions, self._meetings, tenant_id=tenant_id, motion_id=motion_id, lock=True
            )
            ensure_meeting_mutable(meeting)
            if not motion.is_open:
                raise EligibilityError("motion_not_open", f"Motion '{motion.id}' is not open")
            motion.closed_at = datetime.now(timezone.utc)
            record_audit(
                self._session,
                tenant_id=tenant_id,
                action="motion.close",
                resource_type="Motion",
                resource_id=motion.id,
                actor=actor,
            )
            event = VoteEvent(event_type=MOTION_CLOSED, tenant_id=tenant_id, meeting_id=meeting.id, motion_id=motion.id)

        publish_all(self._events, [event])
        result = self._consolidator.consolidate_motion(tenant_id=tenant_id, motion_id=motion_id, actor=actor)
        return CloseResult(motion=motion, result=result)

    def record_manual_tally(
        self,
        *,
        tenant_id: str,
        motion_id: str,
        total: Decimal | int | float | str,
        for_weight: Decimal | int | float | str,
        against_weight: Decimal | int | float | str,
        abstain_weight: Decimal | int | float | str,
        actor: str | None = None,
    ) -> Motion:
        """Store a hand count as entered; consistency is judged at consolidation."""

        motion_id = require_identifier(motion_id, "motion_id")
        tally = ManualTallyInput(
            total=_to_decimal(total, "total"),
            for_weight=_to_decimal(for_weight, "for"),
            against_weight=_to_decimal(against_weight, "against"),
            abstain_weight=_to_decimal(abstain_weight, "abstain"),
        )
        with serializable_transaction(self._session):
            motion, meeting = load_motion_and_meeting(
                self._motions, self._meetings, tenant_id=tenant_id, motion_id=motion_id, lock=True
            )
            ensure_meeting_mutable(meeting)
            motion.manual_total = tally.total
            motion.manual_for = tally.for_weight
            motion.manual_against = tally.against_weight
            motion.manual_abstain = tally.abstain_weight
            record_audit(
                self._session,
                tenant_id=tenant_id,
                action="motion.manual_tally",
                resource_type="Motion",
                resource_id=motion.id,
                payload={
                    "total": str(tally.total),
                    "for": str(tally.for_weight),
                    "against": str(tally.against_weight),
                    "abstain": str(tally.abstain_weight),
                },
                actor=actor,
            )
        if tally.for_weight + tally.against_weight + tally.abstain_weight != tally.total:
            logger.warning("manual tally does not add up", extra={"motion_id": motion_id})
        return motion

    def transition_meeting(
        self,
        *,
        tenant_id: str,
        meeting_id: str,
        to_status: MeetingStatus | str,
        actor: str | None = None,
    ) -> Meeting:
        """Advance the meeting exactly one status along its linear lifecycle."""

        meeting_id = require_identifier(meeting_id, "meeting_id")
        try:
            target = MeetingStatus(to_status)
        except ValueError as exc:
            raise InputValidationError("invalid_status", f"Unknown meeting status '{to_status}'") from exc

        with serializable_transaction(self._session):
            meeting = self._load_meeting(tenant_id, meeting_id, lock=True)
            current = meeting.status
            position = MEETING_STATUS_ORDER.index(current)
            if position + 1 >= len(MEETING_STATUS_ORDER) or MEETING_STATUS_ORDER[position + 1] is not target:
                raise EligibilityError(
                    "invalid_transition", f"Cannot move meeting from '{current.value}' to '{target.value}'"
                )
            if target is MeetingStatus.CLOSED and self._motions.open_motion_ids(meeting.id):
                raise EligibilityError("open_motions", "Close every open motion before closing the meeting")
            if target is MeetingStatus.VALIDATED:
                readiness = self._readiness.evaluate_readiness(tenant_id=tenant_id, meeting_id=meeting.id)
                if not readiness.can_validate:
                    raise EligibilityError(
                        "meeting_not_ready",
                        f"Meeting cannot be validated: {', '.join(readiness.violations)}",
                    )
                meeting.validated_at = datetime.now(timezone.utc)
            meeting.status = target
            record_audit(
                self._session,
                tenant_id=tenant_id,
                action="meeting.transition",
                resource_type="Meeting",
                resource_id=meeting.id,
                payload={"from": current.value, "to": target.value},
                actor=actor,
            )
            event = VoteEvent(
                event_type=MEETING_STATUS_CHANGED,
                tenant_id=tenant_id,
                meeting_id=meeting.id,
                payload={"from": current.value, "to": target.value},
            )

        logger.info(
            "meeting status changed",
            extra={"meeting_id": meeting_id, "from": current.value, "to": target.value},
        )
        publish_all(self._events, [event])
        return meeting

    def check_readiness(
        self, *, tenant_id: str, meeting_id: str, previous: Iterable[str] | None = None
    ) -> Readiness:
        """Evaluate readiness; emits ``readiness_changed`` when it differs from ``previous``."""

        readiness = self._readiness.evaluate_readiness(tenant_id=tenant_id, meeting_id=meeting_id)
        if previous is not None:
            diff = diff_violations(previous, readiness.violations)
            if diff.changed:
                publish_all(
                    self._events,
                    [
                        VoteEvent(
                            event_type=READINESS_CHANGED,
                            tenant_id=tenant_id,
                            meeting_id=readiness.meeting_id,
                            payload={
                                "appeared": list(diff.appeared),
                                "resolved": list(diff.resolved),
                                "can_validate": readiness.can_validate,
                            },
                        )
                    ],
                )
        return readiness


__all__ = ["CloseResult", "ManualTallyInput", "MeetingWorkflow"]
