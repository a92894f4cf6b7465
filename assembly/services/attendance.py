"""Attendance collaborator: check-in and check-out of members."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from assembly.db.transactions import serializable_transaction
from assembly.models import Attendance, Meeting, PresenceMode
from assembly.repositories import SqlAttendanceRepository, SqlMeetingRepository, SqlMemberRoster
from assembly.services.audit import record_audit
from assembly.services.ballots import ensure_meeting_mutable
from assembly.services.errors import EligibilityError, InputValidationError, NotFoundError, require_identifier
from assembly.services.events import ATTENDANCE_CHANGED, EventSink, VoteEvent, build_event_sink, publish_all


def _load_meeting(session: Session, *, tenant_id: str, meeting_id: str) -> Meeting:
    meeting = SqlMeetingRepository(session).get(tenant_id, meeting_id)
    if meeting is None:
        raise NotFoundError("meeting_not_found", f"Meeting '{meeting_id}' was not found for tenant '{tenant_id}'")
    ensure_meeting_mutable(meeting)
    return meeting


def mark_attendance(
    session: Session,
    *,
    tenant_id: str,
    meeting_id: str,
    member_id: str,
    mode: PresenceMode | str,
    actor: str | None = None,
    events: EventSink | None = None,
) -> Attendance:
    """Check a member in under ``mode``; re-marking updates the existing row."""

    meeting_id = require_identifier(meeting_id, "meeting_id")
    member_id = require_identifier(member_id, "member_id")
    try:
        presence = PresenceMode(mode)
    except ValueError as exc:
        raise InputValidationError("invalid_mode", f"Unknown presence mode '{mode}'") from exc

    with serializable_transaction(session):
        meeting = _load_meeting(session, tenant_id=tenant_id, meeting_id=meeting_id)
        member = SqlMemberRoster(session).get(meeting.tenant_id, member_id)
        if member is None:
            raise NotFoundError("member_not_found", f"Member '{member_id}' was not found")
        if not member.is_active:
            raise EligibilityError("member_inactive", f"Member '{member_id}' is inactive")
        attendance = SqlAttendanceRepository(session).upsert(
            tenant_id=tenant_id,
            meeting_id=meeting.id,
            member_id=member_id,
            mode=presence,
            at=datetime.now(timezone.utc),
        )
        record_audit(
            session,
            tenant_id=tenant_id,
            action="attendance.mark",
            resource_type="Attendance",
            resource_id=attendance.id,
            payload={"meeting_id": meeting.id, "member_id": member_id, "mode": presence.value},
            actor=actor,
        )

    publish_all(
        events or build_event_sink(),
        [
            VoteEvent(
                event_type=ATTENDANCE_CHANGED,
                tenant_id=tenant_id,
                meeting_id=meeting_id,
                payload={"member_id": member_id, "mode": presence.value},
            )
        ],
    )
    return attendance


def check_out(
    session: Session,
    *,
    tenant_id: str,
    meeting_id: str,
    member_id: str,
    actor: str | None = None,
    events: EventSink | None = None,
) -> Attendance:
    meeting_id = require_identifier(meeting_id, "meeting_id")
    member_id = require_identifier(member_id, "member_id")

    with serializable_transaction(session):
        meeting = _load_meeting(session, tenant_id=tenant_id, meeting_id=meeting_id)
        repository = SqlAttendanceRepository(session)
        attendance = repository.get(meeting.id, member_id)
        if attendance is None or attendance.checked_out_at is not None:
            raise EligibilityError("not_checked_in", f"Member '{member_id}' is not checked in")
        repository.check_out(attendance, at=datetime.now(timezone.utc))
        record_audit(
            session,
            tenant_id=tenant_id,
            action="attendance.check_out",
            resource_type="Attendance",
            resource_id=attendance.id,
            payload={"meeting_id": meeting.id, "member_id": member_id},
            actor=actor,
        )

    publish_all(
        events or build_event_sink(),
        [
            VoteEvent(
                event_type=ATTENDANCE_CHANGED,
                tenant_id=tenant_id,
                meeting_id=meeting_id,
                payload={"member_id": member_id, "mode": None},
            )
        ],
    )
    return attendance


__all__ = ["check_out", "mark_attendance"]
