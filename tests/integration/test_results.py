from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from assembly.core.config import Settings
from assembly.models import (
    AuditLog,
    BallotChoice,
    Decision,
    MajorityBase,
    MeetingStatus,
    Motion,
    PresenceMode,
    ResultSource,
)
from assembly.repositories import SqlAttendanceRepository, SqlMotionRepository
from assembly.services.errors import EligibilityError
from assembly.services.events import RESULT_CONSOLIDATED, InMemoryEventSink
from assembly.services.results import LATE_ARRIVALS_NOTE, OfficialResultConsolidator

TENANT_ID = "tenant-demo"


def _consolidator(db_session: Session, events: InMemoryEventSink, **settings: object) -> OfficialResultConsolidator:
    return OfficialResultConsolidator(db_session, settings=Settings(**settings), events=events)


def _closed_motion_with_votes(factory, *, eligible: int, choices: list[BallotChoice], **meeting_kwargs: object):  # type: ignore[no-untyped-def]
    members = factory.members(eligible)
    meeting = factory.meeting(**meeting_kwargs)
    motion = factory.motion(meeting, closed=True)
    for member, choice in zip(members, choices):
        factory.ballot(motion, member, choice)
    return meeting, motion, members


def test_quorum_shortfall_yields_no_quorum(db_session: Session, factory, events: InMemoryEventSink) -> None:
    quorum_policy = factory.quorum_policy(threshold="0.5")
    vote_policy = factory.vote_policy()
    _, motion, _ = _closed_motion_with_votes(
        factory,
        eligible=10,
        choices=[BallotChoice.FOR] * 4,
        quorum_policy=quorum_policy,
        vote_policy=vote_policy,
    )

    result = _consolidator(db_session, events).consolidate_motion(tenant_id=TENANT_ID, motion_id=motion.id)

    assert result.quorum.ratio == Decimal("0.4")
    assert result.quorum.verdict.met is False
    assert result.outcome.decision is Decision.NO_QUORUM
    assert result.outcome.reason == "Quorum not reached (40% < 50% of eligible members)"
    db_session.refresh(motion)
    assert motion.decision is Decision.NO_QUORUM
    assert motion.official_source is ResultSource.EVOTE


def test_majority_adopts_motion(db_session: Session, factory, events: InMemoryEventSink) -> None:
    quorum_policy = factory.quorum_policy(threshold="0.5")
    vote_policy = factory.vote_policy(threshold="0.5", base=MajorityBase.EXPRESSED)
    _, motion, _ = _closed_motion_with_votes(
        factory,
        eligible=10,
        choices=[BallotChoice.FOR] * 4 + [BallotChoice.AGAINST] * 2,
        quorum_policy=quorum_policy,
        vote_policy=vote_policy,
    )

    result = _consolidator(db_session, events).consolidate_motion(tenant_id=TENANT_ID, motion_id=motion.id)

    assert result.quorum.ratio == Decimal("0.6")
    assert result.majority.adopted is True
    assert result.outcome.decision is Decision.ADOPTED
    assert result.outcome.reason == "Majority reached (66.7% >= 50% of expressed votes)"
    db_session.refresh(motion)
    assert Decimal(motion.official_for) == Decimal("4")
    assert Decimal(motion.official_against) == Decimal("2")
    assert Decimal(motion.official_total) == Decimal("6")
    assert motion.decided_at is not None
    assert [event.event_type for event in events.list_events()] == [RESULT_CONSOLIDATED]


def test_consistent_manual_tally_overrides_ballots(db_session: Session, factory, events: InMemoryEventSink) -> None:
    quorum_policy = factory.quorum_policy(threshold="0.5")
    vote_policy = factory.vote_policy()
    _, motion, _ = _closed_motion_with_votes(
        factory,
        eligible=10,
        choices=[BallotChoice.FOR] * 8,
        quorum_policy=quorum_policy,
        vote_policy=vote_policy,
    )
    motion.manual_total = Decimal("50")
    motion.manual_for = Decimal("20")
    motion.manual_against = Decimal("20")
    motion.manual_abstain = Decimal("10")
    db_session.commit()

    result = _consolidator(db_session, events).consolidate_motion(tenant_id=TENANT_ID, motion_id=motion.id)

    assert result.source is ResultSource.MANUAL
    assert result.expressed_members == 50
    assert result.figures.for_weight == Decimal("20")
    assert result.outcome.decision is Decision.REJECTED
    assert result.tally is None
    db_session.refresh(motion)
    assert motion.official_source is ResultSource.MANUAL
    assert Decimal(motion.official_total) == Decimal("50")


def test_inconsistent_manual_tally_falls_back_to_ballots(
    db_session: Session, factory, events: InMemoryEventSink
) -> None:
    _, motion, _ = _closed_motion_with_votes(factory, eligible=3, choices=[BallotChoice.FOR] * 2)
    motion.manual_total = Decimal("50")
    motion.manual_for = Decimal("20")
    motion.manual_against = Decimal("20")
    db_session.commit()

    result = _consolidator(db_session, events).consolidate_motion(tenant_id=TENANT_ID, motion_id=motion.id)

    assert result.source is ResultSource.EVOTE
    assert result.total == Decimal("2")


def test_no_ballots_yields_no_votes(db_session: Session, factory, events: InMemoryEventSink) -> None:
    quorum_policy = factory.quorum_policy()
    _, motion, _ = _closed_motion_with_votes(factory, eligible=5, choices=[], quorum_policy=quorum_policy)

    result = _consolidator(db_session, events).consolidate_motion(tenant_id=TENANT_ID, motion_id=motion.id)

    assert result.outcome.decision is Decision.NO_VOTES


def test_missing_policies_yield_no_policy(db_session: Session, factory, events: InMemoryEventSink) -> None:
    _, motion, _ = _closed_motion_with_votes(
        factory, eligible=6, choices=[BallotChoice.FOR] * 4 + [BallotChoice.AGAINST] * 2
    )

    result = _consolidator(db_session, events).consolidate_motion(tenant_id=TENANT_ID, motion_id=motion.id)

    assert result.quorum.verdict.applied is False
    assert result.outcome.decision is Decision.NO_POLICY
    assert result.outcome.reason == "No vote policy defined (for: 4 / against: 2)"


def test_motion_policy_overrides_meeting_policy(db_session: Session, factory, events: InMemoryEventSink) -> None:
    lenient = factory.vote_policy(threshold="0.5")
    strict = factory.vote_policy(threshold="0.75")
    members = factory.members(6)
    meeting = factory.meeting(vote_policy=lenient)
    motion = factory.motion(meeting, closed=True, vote_policy_id=strict.id)
    for member, choice in zip(members, [BallotChoice.FOR] * 4 + [BallotChoice.AGAINST] * 2):
        factory.ballot(motion, member, choice)

    result = _consolidator(db_session, events).consolidate_motion(tenant_id=TENANT_ID, motion_id=motion.id)

    assert result.majority.threshold == Decimal("0.75")
    assert result.outcome.decision is Decision.REJECTED


def test_present_base_can_follow_attendance(db_session: Session, factory, events: InMemoryEventSink) -> None:
    vote_policy = factory.vote_policy(base=MajorityBase.PRESENT)
    members = factory.members(6)
    meeting = factory.meeting(vote_policy=vote_policy)
    motion = factory.motion(meeting, closed=True)
    for member in members:
        factory.attend(meeting, member)
    factory.ballot(motion, members[0], BallotChoice.FOR)
    factory.ballot(motion, members[1], BallotChoice.FOR)
    factory.ballot(motion, members[2], BallotChoice.AGAINST)

    expressed = _consolidator(db_session, events).compute_motion_result(tenant_id=TENANT_ID, motion_id=motion.id)
    attendance = _consolidator(db_session, events, majority_present_base="attendance").compute_motion_result(
        tenant_id=TENANT_ID, motion_id=motion.id
    )

    assert expressed.majority.base_total == Decimal("3")
    assert expressed.outcome.decision is Decision.ADOPTED
    assert attendance.majority.base_total == Decimal("6")
    assert attendance.outcome.decision is Decision.REJECTED


def test_reconsolidation_keeps_decided_at(db_session: Session, factory, events: InMemoryEventSink) -> None:
    _, motion, _ = _closed_motion_with_votes(factory, eligible=3, choices=[BallotChoice.FOR] * 2)
    consolidator = _consolidator(db_session, events)

    consolidator.consolidate_motion(tenant_id=TENANT_ID, motion_id=motion.id)
    db_session.refresh(motion)
    first_decided_at = motion.decided_at
    consolidator.consolidate_motion(tenant_id=TENANT_ID, motion_id=motion.id)
    db_session.refresh(motion)

    assert motion.decided_at == first_decided_at
    assert len(events.list_events(RESULT_CONSOLIDATED)) == 1
    audits = db_session.scalars(select(AuditLog).where(AuditLog.action == "motion.consolidate")).all()
    assert len(audits) == 1


def test_open_motion_cannot_be_consolidated(db_session: Session, factory, events: InMemoryEventSink) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)

    with pytest.raises(EligibilityError) as excinfo:
        _consolidator(db_session, events).consolidate_motion(tenant_id=TENANT_ID, motion_id=motion.id)

    assert excinfo.value.code == "motion_not_closed"


def test_validated_meeting_results_are_frozen(db_session: Session, factory, events: InMemoryEventSink) -> None:
    meeting = factory.meeting(status=MeetingStatus.VALIDATED)
    meeting.validated_at = datetime.now(timezone.utc)
    db_session.commit()
    motion = factory.motion(meeting, closed=True)

    with pytest.raises(EligibilityError) as excinfo:
        _consolidator(db_session, events).consolidate_motion(tenant_id=TENANT_ID, motion_id=motion.id)

    assert excinfo.value.code == "meeting_validated"


def test_consolidate_meeting_processes_closed_motions_only(
    db_session: Session, factory, events: InMemoryEventSink
) -> None:
    members = factory.members(4)
    meeting = factory.meeting()
    first = factory.motion(meeting, closed=True, title="First")
    second = factory.motion(meeting, closed=True, title="Second")
    still_open = factory.motion(meeting, title="Open")
    factory.ballot(first, members[0], BallotChoice.FOR)
    factory.ballot(second, members[1], BallotChoice.AGAINST)

    outcome = _consolidator(db_session, events).consolidate_meeting(tenant_id=TENANT_ID, meeting_id=meeting.id)

    assert outcome.updated == 2
    assert outcome.failed == []
    db_session.refresh(first)
    db_session.refresh(second)
    db_session.refresh(still_open)
    assert first.official_source is ResultSource.EVOTE
    assert second.official_source is ResultSource.EVOTE
    assert still_open.official_source is None
    assert len(events.list_events(RESULT_CONSOLIDATED)) == 2


def test_meeting_quorum_reads_live_attendance(db_session: Session, factory, events: InMemoryEventSink) -> None:
    quorum_policy = factory.quorum_policy(threshold="0.5")
    members = factory.members(4)
    meeting = factory.meeting(quorum_policy=quorum_policy)
    factory.attend(meeting, members[0])
    factory.attend(meeting, members[1], PresenceMode.REMOTE)

    evaluation = _consolidator(db_session, events).compute_meeting_quorum(tenant_id=TENANT_ID, meeting_id=meeting.id)

    assert evaluation.ratio == Decimal("0.5")
    assert evaluation.verdict.met is True


def test_inactive_attendees_do_not_count_toward_quorum(
    db_session: Session, factory, events: InMemoryEventSink
) -> None:
    quorum_policy = factory.quorum_policy(threshold="0.5")
    active = factory.members(4)
    inactive = [factory.member(f"Former {index}", active=False) for index in range(3)]
    meeting = factory.meeting(quorum_policy=quorum_policy)
    factory.attend(meeting, active[0])
    for member in inactive:
        factory.attend(meeting, member)

    evaluation = _consolidator(db_session, events).compute_meeting_quorum(tenant_id=TENANT_ID, meeting_id=meeting.id)

    assert evaluation.numerator.members == 1
    assert evaluation.ratio == Decimal("0.25")
    assert evaluation.verdict.met is False
    assert SqlAttendanceRepository(db_session).present_weight(meeting.id) == Decimal("1")


def test_motion_attendance_quorum_leaves_out_late_arrivals(
    db_session: Session, factory, events: InMemoryEventSink
) -> None:
    quorum_policy = factory.quorum_policy(threshold="0.75")
    members = factory.members(4)
    meeting = factory.meeting(quorum_policy=quorum_policy)
    motion = factory.motion(meeting)
    now = datetime.now(timezone.utc)
    factory.attend(meeting, members[0], present_from=now - timedelta(hours=1))
    factory.attend(meeting, members[1], PresenceMode.REMOTE, present_from=now - timedelta(hours=1))
    factory.attend(meeting, members[2], present_from=now + timedelta(hours=1))
    factory.attend(meeting, members[3], present_from=now + timedelta(hours=1))
    consolidator = _consolidator(db_session, events)

    motion_quorum = consolidator.compute_motion_attendance_quorum(tenant_id=TENANT_ID, motion_id=motion.id)
    meeting_quorum = consolidator.compute_meeting_quorum(tenant_id=TENANT_ID, meeting_id=meeting.id)

    assert motion_quorum.numerator.members == 2
    assert motion_quorum.verdict.met is False
    assert motion_quorum.justification.endswith(LATE_ARRIVALS_NOTE)
    assert meeting_quorum.numerator.members == 4
    assert meeting_quorum.verdict.met is True
    assert LATE_ARRIVALS_NOTE not in meeting_quorum.justification


def test_motion_not_yet_opened_counts_every_attendee(
    db_session: Session, factory, events: InMemoryEventSink
) -> None:
    quorum_policy = factory.quorum_policy(threshold="0.5")
    members = factory.members(2)
    meeting = factory.meeting(quorum_policy=quorum_policy)
    motion = factory.motion(meeting, opened=False)
    factory.attend(meeting, members[0], present_from=datetime.now(timezone.utc) + timedelta(hours=1))

    evaluation = _consolidator(db_session, events).compute_motion_attendance_quorum(
        tenant_id=TENANT_ID, motion_id=motion.id
    )

    assert evaluation.numerator.members == 1
    assert evaluation.verdict.met is True
    assert LATE_ARRIVALS_NOTE not in evaluation.justification


class FailingMotionWriter(SqlMotionRepository):
    def __init__(self, session: Session, failing_motion_id: str) -> None:
        super().__init__(session)
        self.failing_motion_id = failing_motion_id

    def write_official_result(self, motion, values, *, at):  # type: ignore[no-untyped-def]
        if motion.id == self.failing_motion_id:
            raise SQLAlchemyError("write failed")
        return super().write_official_result(motion, values, at=at)


def test_consolidate_meeting_keeps_other_motions_when_one_fails(
    db_session: Session, factory, events: InMemoryEventSink
) -> None:
    members = factory.members(2)
    meeting = factory.meeting()
    healthy = factory.motion(meeting, closed=True, title="Healthy")
    broken = factory.motion(meeting, closed=True, title="Broken")
    factory.ballot(healthy, members[0], BallotChoice.FOR)
    factory.ballot(broken, members[1], BallotChoice.FOR)
    consolidator = OfficialResultConsolidator(
        db_session,
        settings=Settings(),
        motion_writer=FailingMotionWriter(db_session, broken.id),
        events=events,
    )

    outcome = consolidator.consolidate_meeting(tenant_id=TENANT_ID, meeting_id=meeting.id)

    assert outcome.updated == 1
    assert outcome.failed == [broken.id]
    db_session.expire_all()
    assert db_session.get(Motion, healthy.id).official_source is ResultSource.EVOTE
    assert db_session.get(Motion, broken.id).official_source is None
    assert [event.motion_id for event in events.list_events(RESULT_CONSOLIDATED)] == [healthy.id]
