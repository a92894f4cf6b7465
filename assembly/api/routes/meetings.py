"""Meeting endpoints: delegations, attendance, quorum, consolidation and workflow."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from assembly.api.deps import get_actor, get_db_session, get_event_sink, get_tenant_id
from assembly.schemas import (
    AttendanceCreate,
    AttendanceRead,
    ConsolidationRead,
    DelegationCreate,
    DelegationRead,
    MeetingRead,
    MeetingTransition,
    QuorumRead,
    ReadinessRead,
    RevocationRead,
)
from assembly.services import attendance as attendance_service
from assembly.services.events import EventSink
from assembly.services.proxies import ProxyDelegationRegistry
from assembly.services.results import OfficialResultConsolidator
from assembly.services.workflow import MeetingWorkflow

router = APIRouter()


@router.post(
    "/{meeting_id}/proxies", response_model=DelegationRead, status_code=status.HTTP_201_CREATED
)
def delegate_proxy(
    payload: DelegationCreate,
    meeting_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    actor: str | None = Depends(get_actor),
    events: EventSink = Depends(get_event_sink),
) -> DelegationRead:
    result = ProxyDelegationRegistry(session, events=events).delegate(
        tenant_id=tenant_id,
        meeting_id=meeting_id,
        giver_id=payload.giver_member_id,
        receiver_id=payload.receiver_member_id,
        actor=actor,
    )
    return DelegationRead.model_validate(result.delegation)


@router.delete("/{meeting_id}/proxies/{giver_member_id}", response_model=RevocationRead)
def revoke_proxy(
    meeting_id: str,
    giver_member_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    actor: str | None = Depends(get_actor),
    events: EventSink = Depends(get_event_sink),
) -> RevocationRead:
    revoked = ProxyDelegationRegistry(session, events=events).revoke(
        tenant_id=tenant_id, meeting_id=meeting_id, giver_id=giver_member_id, actor=actor
    )
    return RevocationRead(meeting_id=meeting_id, giver_member_id=giver_member_id, revoked=revoked)


@router.get("/{meeting_id}/proxies", response_model=list[DelegationRead])
def list_proxies(
    meeting_id: str,
    include_revoked: bool = Query(default=False),
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    events: EventSink = Depends(get_event_sink),
) -> list[DelegationRead]:
    delegations = ProxyDelegationRegistry(session, events=events).list_for_meeting(
        tenant_id=tenant_id, meeting_id=meeting_id, include_revoked=include_revoked
    )
    return [DelegationRead.model_validate(delegation) for delegation in delegations]


@router.post(
    "/{meeting_id}/attendance", response_model=AttendanceRead, status_code=status.HTTP_201_CREATED
)
def mark_attendance(
    payload: AttendanceCreate,
    meeting_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    actor: str | None = Depends(get_actor),
    events: EventSink = Depends(get_event_sink),
) -> AttendanceRead:
    attendance = attendance_service.mark_attendance(
        session,
        tenant_id=tenant_id,
        meeting_id=meeting_id,
        member_id=payload.member_id,
        mode=payload.mode,
        actor=actor,
        events=events,
    )
    return AttendanceRead.model_validate(attendance)


@router.delete("/{meeting_id}/attendance/{member_id}", response_model=AttendanceRead)
def check_out(
    meeting_id: str,
    member_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    actor: str | None = Depends(get_actor),
    events: EventSink = Depends(get_event_sink),
) -> AttendanceRead:
    attendance = attendance_service.check_out(
        session,
        tenant_id=tenant_id,
        meeting_id=meeting_id,
        member_id=member_id,
        actor=actor,
        events=events,
    )
    return AttendanceRead.model_validate(attendance)


@router.get("/{meeting_id}/quorum", response_model=QuorumRead)
def meeting_quorum(
    meeting_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    events: EventSink = Depends(get_event_sink),
) -> QuorumRead:
    evaluation = OfficialResultConsolidator(session, events=events).compute_meeting_quorum(
        tenant_id=tenant_id, meeting_id=meeting_id
    )
    return QuorumRead.model_validate(evaluation.to_dict())


@router.post("/{meeting_id}/consolidate", response_model=ConsolidationRead)
def consolidate_meeting(
    meeting_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    actor: str | None = Depends(get_actor),
    events: EventSink = Depends(get_event_sink),
) -> ConsolidationRead:
    outcome = OfficialResultConsolidator(session, events=events).consolidate_meeting(
        tenant_id=tenant_id, meeting_id=meeting_id, actor=actor
    )
    return ConsolidationRead(meeting_id=outcome.meeting_id, updated=outcome.updated, failed=outcome.failed)


@router.get("/{meeting_id}/readiness", response_model=ReadinessRead)
def meeting_readiness(
    meeting_id: str,
    previous: list[str] | None = Query(default=None),
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    events: EventSink = Depends(get_event_sink),
) -> ReadinessRead:
    readiness = MeetingWorkflow(session, events=events).check_readiness(
        tenant_id=tenant_id, meeting_id=meeting_id, previous=previous
    )
    return ReadinessRead.model_validate(readiness.to_dict())


@router.post("/{meeting_id}/transition", response_model=MeetingRead)
def transition_meeting(
    payload: MeetingTransition,
    meeting_id: str,
    session: Session = Depends(get_db_session),
    tenant_id: str = Depends(get_tenant_id),
    actor: str | None = Depends(get_actor),
    events: EventSink = Depends(get_event_sink),
) -> MeetingRead:
    meeting = MeetingWorkflow(session, events=events).transition_meeting(
        tenant_id=tenant_id, meeting_id=meeting_id, to_status=payload.to_status, actor=actor
    )
    return MeetingRead.model_validate(meeting)


__all__ = ["router"]
