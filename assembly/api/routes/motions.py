"""Motion endpoints: ballots, lifecycle, tallies and official results."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from assembly.api.deps import get_actor, get_db_session, get_event_sink, get_tenant_id
from assembly.schemas import (
    BallotCreate,
    BallotRead,
    ManualTallyUpdate,
    MotionRead,
    MotionResultRead,
    QuorumRead,
    TallyRead,
)
from assembly.services.ballots import BallotAcceptanceGuard
from assembly.services.events import EventSink
from assembly.services.results import OfficialResultConsolidator
from assembly.services.tally import TallyAggregator
from assembly.services.workflow import MeetingWorkflow

router = APIRouter()


@router.post("/{motion_id}/ballots", response_model=BallotRead, status_code=status.HTTP_201_CREATED)
def cast_ballot(
    payload: BallotCreate,
    motion_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    actor: str | None = Depends(get_actor),
    events: EventSink = Depends(get_event_sink),
) -> BallotRead:
    result = BallotAcceptanceGuard(session, events=events).cast_ballot(
        tenant_id=tenant_id,
        motion_id=motion_id,
        member_id=payload.member_id,
        choice=payload.choice,
        proxy_voter_id=payload.proxy_voter_id,
        actor=actor,
    )
    return BallotRead.model_validate(result.ballot)


@router.get("/{motion_id}/tally", response_model=TallyRead)
def motion_tally(
    motion_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
) -> TallyRead:
    tally = TallyAggregator(session).tally(tenant_id=tenant_id, motion_id=motion_id)
    return TallyRead.model_validate(tally.to_dict())


@router.get("/{motion_id}/result", response_model=MotionResultRead)
def motion_result(
    motion_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    events: EventSink = Depends(get_event_sink),
) -> MotionResultRead:
    result = OfficialResultConsolidator(session, events=events).compute_motion_result(
        tenant_id=tenant_id, motion_id=motion_id
    )
    return MotionResultRead.model_validate(result.to_dict())


@router.get("/{motion_id}/attendance-quorum", response_model=QuorumRead)
def motion_attendance_quorum(
    motion_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    events: EventSink = Depends(get_event_sink),
) -> QuorumRead:
    evaluation = OfficialResultConsolidator(session, events=events).compute_motion_attendance_quorum(
        tenant_id=tenant_id, motion_id=motion_id
    )
    return QuorumRead.model_validate(evaluation.to_dict())


@router.post("/{motion_id}/consolidate", response_model=MotionResultRead)
def consolidate_motion(
    motion_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    actor: str | None = Depends(get_actor),
    events: EventSink = Depends(get_event_sink),
) -> MotionResultRead:
    result = OfficialResultConsolidator(session, events=events).consolidate_motion(
        tenant_id=tenant_id, motion_id=motion_id, actor=actor
    )
    return MotionResultRead.model_validate(result.to_dict())


@router.post("/{motion_id}/open", response_model=MotionRead)
def open_motion(
    motion_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    actor: str | None = Depends(get_actor),
    events: EventSink = Depends(get_event_sink),
) -> MotionRead:
    motion = MeetingWorkflow(session, events=events).open_motion(
        tenant_id=tenant_id, motion_id=motion_id, actor=actor
    )
    return MotionRead.model_validate(motion)


@router.post("/{motion_id}/close", response_model=MotionRead)
def close_motion(
    motion_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    actor: str | None = Depends(get_actor),
    events: EventSink = Depends(get_event_sink),
) -> MotionRead:
    closed = MeetingWorkflow(session, events=events).close_motion(
        tenant_id=tenant_id, motion_id=motion_id, actor=actor
    )
    return MotionRead.model_validate(closed.motion)


@router.put("/{motion_id}/manual-tally", response_model=MotionRead)
def record_manual_tally(
    payload: ManualTallyUpdate,
    motion_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    actor: str | None = Depends(get_actor),
    events: EventSink = Depends(get_event_sink),
) -> MotionRead:
    motion = MeetingWorkflow(session, events=events).record_manual_tally(
        tenant_id=tenant_id,
        motion_id=motion_id,
        total=payload.total,
        for_weight=payload.for_weight,
        against_weight=payload.against_weight,
        abstain_weight=payload.abstain_weight,
        actor=actor,
    )
    return MotionRead.model_validate(motion)


__all__ = ["router"]
