"""Official result consolidation: source choice, resolvers and persistence."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from assembly.core.config import Settings, get_settings
from assembly.db.transactions import serializable_transaction
from assembly.engine import (
    MajorityEvaluation,
    MajorityRule,
    ModeTotals,
    Outcome,
    Participation,
    QuorumEvaluation,
    QuorumRule,
    VoteFigures,
    decide,
    evaluate_majority,
    evaluate_quorum,
)
from assembly.models import Meeting, Motion, ResultSource
from assembly.obs import engine_span, record_official_result
from assembly.repositories import (
    AttendanceReader,
    MeetingReader,
    MemberRoster,
    MotionReader,
    MotionWriter,
    PolicyReader,
    SqlAttendanceRepository,
    SqlMeetingRepository,
    SqlMemberRoster,
    SqlMotionRepository,
    SqlPolicyReader,
)
from assembly.services.audit import record_audit
from assembly.services.ballots import ensure_meeting_mutable, load_motion_and_meeting
from assembly.services.errors import EligibilityError, EngineError, NotFoundError, require_identifier
from assembly.services.events import RESULT_CONSOLIDATED, EventSink, VoteEvent, build_event_sink, publish_all
from assembly.services.tally import MotionTally, TallyAggregator

logger = logging.getLogger(__name__)

_WEIGHT_QUANTUM = Decimal("0.0001")

LATE_ARRIVALS_NOTE = "Late arrivals excluded (present after the motion opened)."


def _q(value: Decimal) -> Decimal:
    return Decimal(value).quantize(_WEIGHT_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class ManualTally:
    total: Decimal
    for_weight: Decimal
    against_weight: Decimal
    abstain_weight: Decimal

    @classmethod
    def from_motion(cls, motion: Motion) -> "ManualTally | None":
        if motion.manual_total is None:
            return None
        return cls(
            total=Decimal(motion.manual_total),
            for_weight=Decimal(motion.manual_for or 0),
            against_weight=Decimal(motion.manual_against or 0),
            abstain_weight=Decimal(motion.manual_abstain or 0),
        )

    @property
    def is_consistent(self) -> bool:
        return self.total > 0 and self.for_weight + self.against_weight + self.abstain_weight == self.total

    @property
    def figures(self) -> VoteFigures:
        return VoteFigures(
            for_weight=self.for_weight,
            against_weight=self.against_weight,
            abstain_weight=self.abstain_weight,
        )


@dataclass(frozen=True, slots=True)
class MotionResult:
    """Everything decided for one motion, before or after persistence."""

    motion_id: str
    source: ResultSource
    figures: VoteFigures
    total: Decimal
    expressed_members: int
    quorum: QuorumEvaluation
    majority: MajorityEvaluation
    outcome: Outcome
    tally: MotionTally | None = None

    def official_values(self) -> dict[str, object]:
        return {
            "official_source": self.source,
            "official_for": _q(self.figures.for_weight),
            "official_against": _q(self.figures.against_weight),
            "official_abstain": _q(self.figures.abstain_weight),
            "official_total": _q(self.total),
            "decision": self.outcome.decision,
            "decision_reason": self.outcome.reason,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "motion_id": self.motion_id,
            "source": self.source.value,
            "for": str(self.figures.for_weight),
            "against": str(self.figures.against_weight),
            "abstain": str(self.figures.abstain_weight),
            "total": str(self.total),
            "expressed_members": self.expressed_members,
            "decision": self.outcome.decision.value,
            "reason": self.outcome.reason,
            "quorum": self.quorum.to_dict(),
            "majority": self.majority.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class MeetingConsolidation:
    meeting_id: str
    updated: int
    failed: list[str] = field(default_factory=list)


class OfficialResultConsolidator:
    """Chooses the tally source, runs both resolvers and persists the result."""

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        motions: MotionReader | None = None,
        motion_writer: MotionWriter | None = None,
        meetings: MeetingReader | None = None,
        policies: PolicyReader | None = None,
        members: MemberRoster | None = None,
        attendance: AttendanceReader | None = None,
        tally: TallyAggregator | None = None,
        events: EventSink | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        motion_repository = SqlMotionRepository(session)
        self._motions = motions or motion_repository
        self._motion_writer = motion_writer or motion_repository
        self._meetings = meetings or SqlMeetingRepository(session)
        self._policies = policies or SqlPolicyReader(session)
        self._members = members or SqlMemberRoster(session)
        self._attendance = attendance or SqlAttendanceRepository(session)
        self._tally = tally or TallyAggregator(session)
        self._events = events or build_event_sink()

    def _rules(self, motion: Motion, meeting: Meeting) -> tuple[QuorumRule | None, MajorityRule | None]:
        quorum_policy = self._policies.quorum_policy(
            meeting.tenant_id, motion.quorum_policy_id or meeting.quorum_policy_id
        )
        vote_policy = self._policies.vote_policy(meeting.tenant_id, motion.vote_policy_id or meeting.vote_policy_id)
        return (
            QuorumRule.from_model(quorum_policy) if quorum_policy is not None else None,
            MajorityRule.from_model(vote_policy) if vote_policy is not None else None,
        )

    def _compute(self, motion: Motion, meeting: Meeting) -> MotionResult:
        manual = ManualTally.from_motion(motion)
        tally: MotionTally | None = None
        if manual is not None and manual.is_consistent:
            source = ResultSource.MANUAL
            figures = manual.figures
            total = manual.total
            expressed_members = int(manual.total.to_integral_value(rounding=ROUND_HALF_UP))
            participation = Participation(present=ModeTotals(members=expressed_members, weight=total))
        else:
            if manual is not None:
                logger.warning(
                    "inconsistent manual tally, falling back to electronic ballots",
                    extra={"motion_id": motion.id, "manual_total": str(manual.total)},
                )
            tally = self._tally.tally(tenant_id=meeting.tenant_id, motion_id=motion.id)
            source = ResultSource.EVOTE
            figures = tally.figures
            total = tally.expressed_weight
            expressed_members = tally.expressed_members
            participation = tally.participation

        quorum_rule, majority_rule = self._rules(motion, meeting)
        roster = self._members.eligible_roster(meeting.tenant_id)
        quorum = evaluate_quorum(
            quorum_rule, participation, roster, convocation_no=int(meeting.convocation_no or 1)
        )
        present_weight = None
        if self._settings.majority_present_base == "attendance":
            present_weight = self._attendance.present_weight(meeting.id)
        majority = evaluate_majority(
            majority_rule,
            figures,
            eligible_weight=roster.eligible_weight,
            present_weight=present_weight,
            quorum=quorum.verdict,
        )
        outcome = decide(
            expressed_members=expressed_members, figures=figures, quorum=quorum, majority=majority
        )
        return MotionResult(
            motion_id=motion.id,
            source=source,
            figures=figures,
            total=total,
            expressed_members=expressed_members,
            quorum=quorum,
            majority=majority,
            outcome=outcome,
            tally=tally,
        )

    def compute_motion_result(self, *, tenant_id: str, motion_id: str) -> MotionResult:
        """Compute the official result without writing it."""

        motion, meeting = load_motion_and_meeting(
            self._motions, self._meetings, tenant_id=tenant_id, motion_id=require_identifier(motion_id, "motion_id")
        )
        return self._compute(motion, meeting)

    def _consolidate(self, motion: Motion, meeting: Meeting, *, actor: str | None) -> tuple[MotionResult, bool]:
        if not motion.is_closed:
            raise EligibilityError("motion_not_closed", f"Motion '{motion.id}' is not closed")
        result = self._compute(motion, meeting)
        changed = self._motion_writer.write_official_result(
            motion, result.official_values(), at=datetime.now(timezone.utc)
        )
        if changed:
            record_audit(
                self._session,
                tenant_id=meeting.tenant_id,
                action="motion.consolidate",
                resource_type="Motion",
                resource_id=motion.id,
                payload={
                    "source": result.source.value,
                    "decision": result.outcome.decision.value,
                    "reason": result.outcome.reason,
                },
                actor=actor,
            )
        return result, changed

    def _result_event(self, meeting: Meeting, result: MotionResult) -> VoteEvent:
        return VoteEvent(
            event_type=RESULT_CONSOLIDATED,
            tenant_id=meeting.tenant_id,
            meeting_id=meeting.id,
            motion_id=result.motion_id,
            payload={"source": result.source.value, "decision": result.outcome.decision.value},
        )

    def consolidate_motion(self, *, tenant_id: str, motion_id: str, actor: str | None = None) -> MotionResult:
        """Compute and persist the official result of a closed motion."""

        motion_id = require_identifier(motion_id, "motion_id")
        with engine_span("motion.consolidate", motion_id=motion_id):
            with serializable_transaction(self._session):
                motion, meeting = load_motion_and_meeting(
                    self._motions, self._meetings, tenant_id=tenant_id, motion_id=motion_id, lock=True
                )
                ensure_meeting_mutable(meeting)
                result, changed = self._consolidate(motion, meeting, actor=actor)
                event = self._result_event(meeting, result)

        if changed:
            record_official_result(source=result.source.value, decision=result.outcome.decision.value)
            publish_all(self._events, [event])
        return result

    def consolidate_meeting(
        self, *, tenant_id: str, meeting_id: str, actor: str | None = None
    ) -> MeetingConsolidation:
        """Consolidate every closed motion, each in its own savepoint.

        A failing motion is logged and reported in ``failed``; the others
        still commit.
        """

        meeting_id = require_identifier(meeting_id, "meeting_id")
        updated = 0
        failed: list[str] = []
        written: list[MotionResult] = []
        events: list[VoteEvent] = []
        with engine_span("meeting.consolidate", meeting_id=meeting_id):
            with serializable_transaction(self._session):
                meeting = self._meetings.get(tenant_id, meeting_id)
                if meeting is None:
                    raise NotFoundError(
                        "meeting_not_found", f"Meeting '{meeting_id}' was not found for tenant '{tenant_id}'"
                    )
                ensure_meeting_mutable(meeting)
                for motion in self._motions.list_closed(tenant_id, meeting.id):
                    motion_id = motion.id
                    try:
                        with self._session.begin_nested():
                            result, changed = self._consolidate(motion, meeting, actor=actor)
                    except (EngineError, SQLAlchemyError, ArithmeticError):
                        logger.exception(
                            "failed to consolidate motion",
                            extra={"meeting_id": meeting.id, "motion_id": motion_id},
                        )
                        failed.append(motion_id)
                        continue
                    updated += 1
                    if changed:
                        written.append(result)
                        events.append(self._result_event(meeting, result))

        for result in written:
            record_official_result(source=result.source.value, decision=result.outcome.decision.value)
        publish_all(self._events, events)
        logger.info(
            "meeting consolidated",
            extra={"meeting_id": meeting_id, "updated": updated, "failed": len(failed)},
        )
        return MeetingConsolidation(meeting_id=meeting_id, updated=updated, failed=failed)

    def _attendance_quorum(
        self, meeting: Meeting, policy_id: str | None, *, present_before: datetime | None = None
    ) -> QuorumEvaluation:
        policy = self._policies.quorum_policy(meeting.tenant_id, policy_id)
        rule = QuorumRule.from_model(policy) if policy is not None else None
        evaluation = evaluate_quorum(
            rule,
            self._attendance.participation(meeting.id, present_before=present_before),
            self._members.eligible_roster(meeting.tenant_id),
            convocation_no=int(meeting.convocation_no or 1),
        )
        if rule is not None and present_before is not None:
            evaluation = replace(evaluation, justification=f"{evaluation.justification} {LATE_ARRIVALS_NOTE}")
        return evaluation

    def compute_meeting_quorum(self, *, tenant_id: str, meeting_id: str) -> QuorumEvaluation:
        """Live quorum of a meeting from current attendance and its default policy."""

        meeting = self._meetings.get(tenant_id, require_identifier(meeting_id, "meeting_id"))
        if meeting is None:
            raise NotFoundError("meeting_not_found", f"Meeting '{meeting_id}' was not found for tenant '{tenant_id}'")
        return self._attendance_quorum(meeting, meeting.quorum_policy_id)

    def compute_motion_attendance_quorum(self, *, tenant_id: str, motion_id: str) -> QuorumEvaluation:
        """Attendance quorum for one motion; members arriving after it opened are left out."""

        motion, meeting = load_motion_and_meeting(
            self._motions, self._meetings, tenant_id=tenant_id, motion_id=require_identifier(motion_id, "motion_id")
        )
        return self._attendance_quorum(
            meeting,
            motion.quorum_policy_id or meeting.quorum_policy_id,
            present_before=motion.opened_at,
        )


__all__ = [
    "LATE_ARRIVALS_NOTE",
    "ManualTally",
    "MeetingConsolidation",
    "MotionResult",
    "OfficialResultConsolidator",
]
