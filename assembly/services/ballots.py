"""Ballot acceptance: eligibility checks and the single ballot write path."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from assembly.db.transactions import serializable_transaction
from assembly.models import Ballot, BallotChoice, Meeting, MeetingStatus, Member, Motion
from assembly.obs import engine_span, record_ballot_cast, record_ballot_rejection
from assembly.repositories import (
    AttendanceReader,
    BallotStore,
    DelegationStore,
    MeetingReader,
    MemberRoster,
    MotionReader,
    SqlAttendanceRepository,
    SqlBallotStore,
    SqlDelegationStore,
    SqlMeetingRepository,
    SqlMemberRoster,
    SqlMotionRepository,
)
from assembly.services.audit import record_audit
from assembly.services.errors import (
    EligibilityError,
    EngineError,
    InputValidationError,
    NotFoundError,
    require_identifier,
)
from assembly.services.events import BALLOT_RECORDED, EventSink, VoteEvent, build_event_sink, publish_all

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CastResult:
    ballot: Ballot
    created: bool


def parse_choice(value: BallotChoice | str | None) -> BallotChoice:
    if isinstance(value, BallotChoice):
        return value
    try:
        return BallotChoice((value or "").strip().lower().replace("-", "_"))
    except ValueError as exc:
        raise InputValidationError("invalid_choice", f"Unsupported ballot choice '{value}'") from exc


def ensure_meeting_mutable(meeting: Meeting) -> None:
    """Refuse any write once the meeting has been validated."""

    if meeting.validated_at is not None or meeting.status in (MeetingStatus.VALIDATED, MeetingStatus.ARCHIVED):
        raise EligibilityError("meeting_validated", f"Meeting '{meeting.id}' is validated")


def load_motion_and_meeting(
    motions: MotionReader,
    meetings: MeetingReader,
    *,
    tenant_id: str,
    motion_id: str,
    lock: bool = False,
) -> tuple[Motion, Meeting]:
    motion = motions.get(tenant_id, motion_id, lock=lock)
    if motion is None:
        raise NotFoundError("motion_not_found", f"Motion '{motion_id}' was not found for tenant '{tenant_id}'")
    meeting = meetings.get(tenant_id, motion.meeting_id)
    if meeting is None:
        raise NotFoundError("meeting_not_found", f"Meeting '{motion.meeting_id}' was not found")
    return motion, meeting


class BallotAcceptanceGuard:
    """Validates a proposed ballot and writes it when every rule passes."""

    def __init__(
        self,
        session: Session,
        *,
        motions: MotionReader | None = None,
        meetings: MeetingReader | None = None,
        members: MemberRoster | None = None,
        attendance: AttendanceReader | None = None,
        delegations: DelegationStore | None = None,
        ballots: BallotStore | None = None,
        events: EventSink | None = None,
    ) -> None:
        self._session = session
        self._motions = motions or SqlMotionRepository(session)
        self._meetings = meetings or SqlMeetingRepository(session)
        self._members = members or SqlMemberRoster(session)
        self._attendance = attendance or SqlAttendanceRepository(session)
        self._delegations = delegations or SqlDelegationStore(session)
        self._ballots = ballots or SqlBallotStore(session)
        self._events = events or build_event_sink()

    def cast_ballot(
        self,
        *,
        tenant_id: str,
        motion_id: str,
        member_id: str,
        choice: BallotChoice | str,
        proxy_voter_id: str | None = None,
        actor: str | None = None,
    ) -> CastResult:
        """Accept and store a ballot, or raise the first violated rule."""

        try:
            motion_id = require_identifier(motion_id, "motion_id")
            member_id = require_identifier(member_id, "member_id")
            parsed_choice = parse_choice(choice)
            proxy_voter_id = (proxy_voter_id or "").strip() or None
            with engine_span("ballot.cast", motion_id=motion_id, proxy=proxy_voter_id is not None):
                with serializable_transaction(self._session):
                    result, event = self._accept(
                        tenant_id=tenant_id,
                        motion_id=motion_id,
                        member_id=member_id,
                        choice=parsed_choice,
                        proxy_voter_id=proxy_voter_id,
                        actor=actor,
                    )
        except EngineError as exc:
            record_ballot_rejection(exc.code)
            logger.info(
                "ballot refused",
                extra={"motion_id": motion_id, "member_id": member_id, "code": exc.code},
            )
            raise

        record_ballot_cast(proxy=proxy_voter_id is not None)
        publish_all(self._events, [event])
        return result

    def _accept(
        self,
        *,
        tenant_id: str,
        motion_id: str,
        member_id: str,
        choice: BallotChoice,
        proxy_voter_id: str | None,
        actor: str | None,
    ) -> tuple[CastResult, VoteEvent]:
        motion, meeting = load_motion_and_meeting(
            self._motions, self._meetings, tenant_id=tenant_id, motion_id=motion_id, lock=True
        )
        ensure_meeting_mutable(meeting)
        if meeting.status is not MeetingStatus.LIVE:
            raise EligibilityError("meeting_not_live", f"Meeting '{meeting.id}' is not live")
        if not motion.is_open:
            raise EligibilityError("motion_not_open", f"Motion '{motion.id}' is not open for voting")

        member = self._members.get(meeting.tenant_id, member_id)
        if member is None:
            raise NotFoundError("member_not_found", f"Member '{member_id}' was not found")
        if not member.is_active:
            raise EligibilityError("member_inactive", f"Member '{member_id}' is inactive")

        if proxy_voter_id is None:
            if not self._attendance.is_present_direct(meeting.id, member.id):
                raise EligibilityError("voter_not_present", f"Member '{member_id}' is not present")
        else:
            self._check_proxy_voter(meeting, giver=member, proxy_voter_id=proxy_voter_id)

        weight = max(Decimal(member.voting_weight or 0), Decimal("0"))
        now = datetime.now(timezone.utc)
        ballot, created = self._ballots.upsert(
            tenant_id=tenant_id,
            meeting_id=meeting.id,
            motion_id=motion.id,
            member_id=member.id,
            choice=choice,
            weight=weight,
            proxy_voter_id=proxy_voter_id,
            at=now,
        )
        payload = {
            "member_id": member.id,
            "choice": choice.value,
            "weight": str(weight),
            "is_proxy": proxy_voter_id is not None,
            "proxy_voter_id": proxy_voter_id,
            "created": created,
        }
        record_audit(
            self._session,
            tenant_id=tenant_id,
            action="ballot.cast",
            resource_type="Ballot",
            resource_id=ballot.id,
            payload={"motion_id": motion.id, **payload},
            actor=actor,
        )
        event = VoteEvent(
            event_type=BALLOT_RECORDED,
            tenant_id=tenant_id,
            meeting_id=meeting.id,
            motion_id=motion.id,
            payload=payload,
        )
        return CastResult(ballot=ballot, created=created), event

    def _check_proxy_voter(self, meeting: Meeting, *, giver: Member, proxy_voter_id: str) -> None:
        proxy_voter = self._members.get(meeting.tenant_id, proxy_voter_id)
        if proxy_voter is None:
            raise NotFoundError("proxy_voter_not_found", f"Proxy voter '{proxy_voter_id}' was not found")
        if not proxy_voter.is_active:
            raise EligibilityError("proxy_voter_inactive", f"Proxy voter '{proxy_voter_id}' is inactive")
        if not self._attendance.is_present_direct(meeting.id, proxy_voter.id):
            raise EligibilityError(
                "proxy_voter_not_present", f"Proxy voter '{proxy_voter_id}' is not present"
            )
        if not self._delegations.has_active(meeting.id, giver.id, proxy_voter.id):
            raise EligibilityError(
                "no_active_proxy",
                f"No active delegation from '{giver.id}' to '{proxy_voter_id}' in this meeting",
            )


__all__ = [
    "BallotAcceptanceGuard",
    "CastResult",
    "ensure_meeting_mutable",
    "load_motion_and_meeting",
    "parse_choice",
]
