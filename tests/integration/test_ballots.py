from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from assembly.models import AuditLog, Ballot, BallotChoice, MeetingStatus, PresenceMode
from assembly.services.ballots import BallotAcceptanceGuard
from assembly.services.errors import EligibilityError, InputValidationError, NotFoundError
from assembly.services.events import BALLOT_RECORDED, InMemoryEventSink

TENANT_ID = "tenant-demo"


def _ballot_count(db_session: Session) -> int:
    return int(db_session.scalar(select(func.count(Ballot.id))) or 0)


def test_present_member_ballot_is_stored_with_member_weight(
    db_session: Session, factory, events: InMemoryEventSink
) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    member = factory.member("Alice", weight="120")
    factory.attend(meeting, member)

    result = BallotAcceptanceGuard(db_session, events=events).cast_ballot(
        tenant_id=TENANT_ID, motion_id=motion.id, member_id=member.id, choice="FOR", actor="alice"
    )

    assert result.created is True
    assert result.ballot.choice is BallotChoice.FOR
    assert Decimal(result.ballot.weight) == Decimal("120")
    assert result.ballot.is_proxy is False
    assert [event.event_type for event in events.list_events()] == [BALLOT_RECORDED]
    audit = db_session.scalars(select(AuditLog).where(AuditLog.action == "ballot.cast")).one()
    assert audit.actor == "alice"


def test_recast_replaces_the_single_ballot(db_session: Session, factory, events: InMemoryEventSink) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    member = factory.member()
    factory.attend(meeting, member, PresenceMode.REMOTE)
    guard = BallotAcceptanceGuard(db_session, events=events)

    guard.cast_ballot(tenant_id=TENANT_ID, motion_id=motion.id, member_id=member.id, choice="for")
    second = guard.cast_ballot(tenant_id=TENANT_ID, motion_id=motion.id, member_id=member.id, choice="against")

    assert second.created is False
    assert second.ballot.choice is BallotChoice.AGAINST
    assert _ballot_count(db_session) == 1


def test_proxy_ballot_uses_giver_weight(db_session: Session, factory, events: InMemoryEventSink) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    giver = factory.member("Giver", weight="250")
    receiver = factory.member("Receiver", weight="10")
    factory.attend(meeting, receiver)
    factory.delegation(meeting, giver, receiver)

    result = BallotAcceptanceGuard(db_session, events=events).cast_ballot(
        tenant_id=TENANT_ID,
        motion_id=motion.id,
        member_id=giver.id,
        choice=BallotChoice.FOR,
        proxy_voter_id=receiver.id,
    )

    assert result.ballot.is_proxy is True
    assert result.ballot.proxy_voter_id == receiver.id
    assert result.ballot.member_id == giver.id
    assert Decimal(result.ballot.weight) == Decimal("250")


def test_validated_meeting_refuses_any_ballot(db_session: Session, factory, events: InMemoryEventSink) -> None:
    meeting = factory.meeting(status=MeetingStatus.VALIDATED)
    meeting.validated_at = datetime.now(timezone.utc)
    db_session.commit()
    motion = factory.motion(meeting)
    member = factory.member()
    factory.attend(meeting, member)

    with pytest.raises(EligibilityError) as excinfo:
        BallotAcceptanceGuard(db_session, events=events).cast_ballot(
            tenant_id=TENANT_ID, motion_id=motion.id, member_id=member.id, choice="for"
        )

    assert excinfo.value.code == "meeting_validated"
    assert _ballot_count(db_session) == 0
    assert events.list_events() == []


@pytest.mark.parametrize(
    ("status", "opened", "closed", "code"),
    [
        (MeetingStatus.SCHEDULED, True, False, "meeting_not_live"),
        (MeetingStatus.LIVE, False, False, "motion_not_open"),
        (MeetingStatus.LIVE, True, True, "motion_not_open"),
    ],
)
def test_ballot_requires_live_meeting_and_open_motion(
    db_session: Session, factory, events: InMemoryEventSink, status, opened, closed, code
) -> None:
    meeting = factory.meeting(status=status)
    motion = factory.motion(meeting, opened=opened, closed=closed)
    member = factory.member()
    factory.attend(meeting, member)

    with pytest.raises(EligibilityError) as excinfo:
        BallotAcceptanceGuard(db_session, events=events).cast_ballot(
            tenant_id=TENANT_ID, motion_id=motion.id, member_id=member.id, choice="for"
        )

    assert excinfo.value.code == code


def test_absent_member_cannot_vote(db_session: Session, factory, events: InMemoryEventSink) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    member = factory.member()

    with pytest.raises(EligibilityError) as excinfo:
        BallotAcceptanceGuard(db_session, events=events).cast_ballot(
            tenant_id=TENANT_ID, motion_id=motion.id, member_id=member.id, choice="for"
        )

    assert excinfo.value.code == "voter_not_present"


def test_member_represented_by_proxy_cannot_vote_directly(
    db_session: Session, factory, events: InMemoryEventSink
) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    member = factory.member()
    factory.attend(meeting, member, PresenceMode.PROXY)

    with pytest.raises(EligibilityError) as excinfo:
        BallotAcceptanceGuard(db_session, events=events).cast_ballot(
            tenant_id=TENANT_ID, motion_id=motion.id, member_id=member.id, choice="for"
        )

    assert excinfo.value.code == "voter_not_present"


def test_inactive_member_is_refused(db_session: Session, factory, events: InMemoryEventSink) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    member = factory.member(active=False)
    factory.attend(meeting, member)

    with pytest.raises(EligibilityError) as excinfo:
        BallotAcceptanceGuard(db_session, events=events).cast_ballot(
            tenant_id=TENANT_ID, motion_id=motion.id, member_id=member.id, choice="for"
        )

    assert excinfo.value.code == "member_inactive"


def test_proxy_without_active_delegation_is_refused(
    db_session: Session, factory, events: InMemoryEventSink
) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    giver = factory.member("Giver")
    receiver = factory.member("Receiver")
    factory.attend(meeting, receiver)

    with pytest.raises(EligibilityError) as excinfo:
        BallotAcceptanceGuard(db_session, events=events).cast_ballot(
            tenant_id=TENANT_ID,
            motion_id=motion.id,
            member_id=giver.id,
            choice="for",
            proxy_voter_id=receiver.id,
        )

    assert excinfo.value.code == "no_active_proxy"


def test_absent_proxy_voter_is_refused(db_session: Session, factory, events: InMemoryEventSink) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    giver = factory.member("Giver")
    receiver = factory.member("Receiver")
    factory.delegation(meeting, giver, receiver)

    with pytest.raises(EligibilityError) as excinfo:
        BallotAcceptanceGuard(db_session, events=events).cast_ballot(
            tenant_id=TENANT_ID,
            motion_id=motion.id,
            member_id=giver.id,
            choice="for",
            proxy_voter_id=receiver.id,
        )

    assert excinfo.value.code == "proxy_voter_not_present"


def test_unknown_choice_and_missing_ids_are_input_errors(
    db_session: Session, factory, events: InMemoryEventSink
) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    member = factory.member()
    guard = BallotAcceptanceGuard(db_session, events=events)

    with pytest.raises(InputValidationError) as choice_error:
        guard.cast_ballot(tenant_id=TENANT_ID, motion_id=motion.id, member_id=member.id, choice="maybe")
    with pytest.raises(InputValidationError) as id_error:
        guard.cast_ballot(tenant_id=TENANT_ID, motion_id="  ", member_id=member.id, choice="for")

    assert choice_error.value.code == "invalid_choice"
    assert id_error.value.code == "missing_identifier"


def test_motion_of_another_tenant_is_not_found(db_session: Session, factory, events: InMemoryEventSink) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    member = factory.member()

    with pytest.raises(NotFoundError) as excinfo:
        BallotAcceptanceGuard(db_session, events=events).cast_ballot(
            tenant_id="tenant-other", motion_id=motion.id, member_id=member.id, choice="for"
        )

    assert excinfo.value.code == "motion_not_found"


def test_hyphenated_no_opinion_choice_is_accepted(
    db_session: Session, factory, events: InMemoryEventSink
) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    member = factory.member()
    factory.attend(meeting, member)

    result = BallotAcceptanceGuard(db_session, events=events).cast_ballot(
        tenant_id=TENANT_ID, motion_id=motion.id, member_id=member.id, choice="no-opinion"
    )

    assert result.ballot.choice is BallotChoice.NO_OPINION


def test_unknown_proxy_voter_is_not_found(db_session: Session, factory, events: InMemoryEventSink) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    giver = factory.member("Giver")

    with pytest.raises(NotFoundError) as excinfo:
        BallotAcceptanceGuard(db_session, events=events).cast_ballot(
            tenant_id=TENANT_ID,
            motion_id=motion.id,
            member_id=giver.id,
            choice="for",
            proxy_voter_id="missing-member",
        )

    assert excinfo.value.code == "proxy_voter_not_found"


def test_inactive_proxy_voter_is_refused(db_session: Session, factory, events: InMemoryEventSink) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting)
    giver = factory.member("Giver")
    receiver = factory.member("Receiver", active=False)
    factory.attend(meeting, receiver)
    factory.delegation(meeting, giver, receiver)

    with pytest.raises(EligibilityError) as excinfo:
        BallotAcceptanceGuard(db_session, events=events).cast_ballot(
            tenant_id=TENANT_ID,
            motion_id=motion.id,
            member_id=giver.id,
            choice="for",
            proxy_voter_id=receiver.id,
        )

    assert excinfo.value.code == "proxy_voter_inactive"
    assert _ballot_count(db_session) == 0
