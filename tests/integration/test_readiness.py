from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from assembly.models import BallotChoice, ResultSource
from assembly.services.errors import NotFoundError
from assembly.services.readiness import MeetingReadinessEvaluator

TENANT_ID = "tenant-demo"


def test_clean_meeting_can_be_validated(db_session: Session, factory) -> None:
    meeting = factory.meeting()
    motion = factory.motion(meeting, closed=True, official_source=ResultSource.EVOTE)
    factory.ballot(motion, factory.member(), BallotChoice.FOR)

    readiness = MeetingReadinessEvaluator(db_session).evaluate_readiness(tenant_id=TENANT_ID, meeting_id=meeting.id)

    assert readiness.can_validate is True
    assert readiness.violations == ()
    assert readiness.counts.closed_motions == 1


def test_every_violation_is_reported_in_order(db_session: Session, factory) -> None:
    meeting = factory.meeting(president_name="   ")
    factory.motion(meeting)
    factory.motion(meeting, closed=True)

    readiness = MeetingReadinessEvaluator(db_session).evaluate_readiness(tenant_id=TENANT_ID, meeting_id=meeting.id)

    assert readiness.can_validate is False
    assert readiness.violations == (
        "missing_president",
        "open_motions",
        "bad_closed_results",
        "consolidation_missing",
    )
    assert readiness.counts.open_motions == 1
    assert readiness.counts.bad_closed_motions == 1
    assert readiness.counts.unconsolidated_motions == 1


def test_consistent_manual_tally_counts_as_a_result(db_session: Session, factory) -> None:
    meeting = factory.meeting()
    factory.motion(
        meeting,
        closed=True,
        manual_total=Decimal("10"),
        manual_for=Decimal("6"),
        manual_against=Decimal("4"),
        official_source=ResultSource.MANUAL,
    )

    readiness = MeetingReadinessEvaluator(db_session).evaluate_readiness(tenant_id=TENANT_ID, meeting_id=meeting.id)

    assert readiness.counts.bad_closed_motions == 0
    assert readiness.can_validate is True


def test_inconsistent_manual_tally_without_ballots_is_bad(db_session: Session, factory) -> None:
    meeting = factory.meeting()
    factory.motion(
        meeting,
        closed=True,
        manual_total=Decimal("10"),
        manual_for=Decimal("6"),
        official_source=ResultSource.EVOTE,
    )

    readiness = MeetingReadinessEvaluator(db_session).evaluate_readiness(tenant_id=TENANT_ID, meeting_id=meeting.id)

    assert readiness.violations == ("bad_closed_results",)


def test_unknown_meeting_is_not_found(db_session: Session) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        MeetingReadinessEvaluator(db_session).evaluate_readiness(tenant_id=TENANT_ID, meeting_id="missing")

    assert excinfo.value.code == "meeting_not_found"
