"""Proxy delegation registry: who may vote for whom during a meeting."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from assembly.core.config import Settings, get_settings
from assembly.db.transactions import serializable_transaction
from assembly.models import Meeting, ProxyDelegation
from assembly.obs import record_delegation_change
from assembly.repositories import (
    DelegationStore,
    MeetingReader,
    MemberRoster,
    SqlDelegationStore,
    SqlMeetingRepository,
    SqlMemberRoster,
)
from assembly.services.audit import record_audit
from assembly.services.ballots import ensure_meeting_mutable
from assembly.services.errors import EligibilityError, NotFoundError, require_identifier
from assembly.services.events import (
    PROXY_DELEGATED,
    PROXY_REVOKED,
    EventSink,
    VoteEvent,
    build_event_sink,
    publish_all,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DelegationResult:
    delegation: ProxyDelegation
    replaced: ProxyDelegation | None = None
    changed: bool = True


class ProxyDelegationRegistry:
    """Owns the delegation relation and its cap and no-chain invariants.

    Every check and write runs inside one serializable transaction; the
    partial unique index on active (meeting, giver) rows backs it up.
    """

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        meetings: MeetingReader | None = None,
        members: MemberRoster | None = None,
        delegations: DelegationStore | None = None,
        events: EventSink | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._meetings = meetings or SqlMeetingRepository(session)
        self._members = members or SqlMemberRoster(session)
        self._delegations = delegations or SqlDelegationStore(session)
        self._events = events or build_event_sink()

    def _load_meeting(self, tenant_id: str, meeting_id: str) -> Meeting:
        meeting = self._meetings.get(tenant_id, meeting_id)
        if meeting is None:
            raise NotFoundError("meeting_not_found", f"Meeting '{meeting_id}' was not found for tenant '{tenant_id}'")
        ensure_meeting_mutable(meeting)
        return meeting

    def delegate(
        self,
        *,
        tenant_id: str,
        meeting_id: str,
        giver_id: str,
        receiver_id: str,
        actor: str | None = None,
    ) -> DelegationResult:
        meeting_id = require_identifier(meeting_id, "meeting_id")
        giver_id = require_identifier(giver_id, "giver_id")
        receiver_id = require_identifier(receiver_id, "receiver_id")
        if giver_id == receiver_id:
            raise EligibilityError("self_delegation", "A member cannot delegate to themselves")

        events: list[VoteEvent] = []
        try:
            with serializable_transaction(self._session):
                result = self._delegate(
                    tenant_id=tenant_id,
                    meeting_id=meeting_id,
                    giver_id=giver_id,
                    receiver_id=receiver_id,
                    actor=actor,
                    events=events,
                )
        except IntegrityError as exc:
            raise EligibilityError(
                "delegation_conflict", "A concurrent delegation for this giver was recorded"
            ) from exc

        if result.changed:
            record_delegation_change("replace" if result.replaced is not None else "delegate")
            logger.info(
                "proxy delegated",
                extra={"meeting_id": meeting_id, "giver_id": giver_id, "receiver_id": receiver_id},
            )
        publish_all(self._events, events)
        return result

    def _delegate(
        self,
        *,
        tenant_id: str,
        meeting_id: str,
        giver_id: str,
        receiver_id: str,
        actor: str | None,
        events: list[VoteEvent],
    ) -> DelegationResult:
        meeting = self._load_meeting(tenant_id, meeting_id)
        for member_id in (giver_id, receiver_id):
            if self._members.get(meeting.tenant_id, member_id) is None:
                raise NotFoundError("member_not_found", f"Member '{member_id}' was not found")

        current = self._delegations.active_for_giver(meeting.id, giver_id, lock=True)
        if current is not None and current.receiver_member_id == receiver_id:
            return DelegationResult(delegation=current, changed=False)

        if self._delegations.active_for_giver(meeting.id, receiver_id, lock=True) is not None:
            raise EligibilityError(
                "delegation_chain", f"Receiver '{receiver_id}' has already delegated their vote"
            )
        if self._delegations.is_active_receiver(meeting.id, giver_id, lock=True):
            raise EligibilityError(
                "delegation_chain", f"Giver '{giver_id}' already holds delegations in this meeting"
            )
        held = self._delegations.count_active_for_receiver(meeting.id, receiver_id, lock=True)
        if held >= self._settings.proxy_max_per_receiver:
            raise EligibilityError(
                "delegation_cap_exceeded",
                f"Receiver '{receiver_id}' already holds {held} delegations",
            )

        now = datetime.now(timezone.utc)
        if current is not None:
            self._delegations.revoke(current, at=now)
        delegation = self._delegations.add(
            tenant_id=tenant_id, meeting_id=meeting.id, giver_id=giver_id, receiver_id=receiver_id
        )
        payload = {
            "giver_id": giver_id,
            "receiver_id": receiver_id,
            "replaced_id": current.id if current is not None else None,
        }
        record_audit(
            self._session,
            tenant_id=tenant_id,
            action="proxy.delegate",
            resource_type="ProxyDelegation",
            resource_id=delegation.id,
            payload={"meeting_id": meeting.id, **payload},
            actor=actor,
        )
        events.append(
            VoteEvent(event_type=PROXY_DELEGATED, tenant_id=tenant_id, meeting_id=meeting.id, payload=payload)
        )
        return DelegationResult(delegation=delegation, replaced=current)

    def revoke(
        self,
        *,
        tenant_id: str,
        meeting_id: str,
        giver_id: str,
        actor: str | None = None,
    ) -> bool:
        """Revoke the giver's active delegation; ``False`` when none was active."""

        meeting_id = require_identifier(meeting_id, "meeting_id")
        giver_id = require_identifier(giver_id, "giver_id")

        events: list[VoteEvent] = []
        with serializable_transaction(self._session):
            meeting = self._load_meeting(tenant_id, meeting_id)
            current = self._delegations.active_for_giver(meeting.id, giver_id, lock=True)
            if current is not None:
                self._delegations.revoke(current, at=datetime.now(timezone.utc))
                payload = {"giver_id": giver_id, "receiver_id": current.receiver_member_id}
                record_audit(
                    self._session,
                    tenant_id=tenant_id,
                    action="proxy.revoke",
                    resource_type="ProxyDelegation",
                    resource_id=current.id,
                    payload={"meeting_id": meeting.id, **payload},
                    actor=actor,
                )
                events.append(
                    VoteEvent(event_type=PROXY_REVOKED, tenant_id=tenant_id, meeting_id=meeting.id, payload=payload)
                )

        if not events:
            return False
        record_delegation_change("revoke")
        publish_all(self._events, events)
        return True

    def has_active_proxy(self, *, meeting_id: str, giver_id: str, receiver_id: str) -> bool:
        return self._delegations.has_active(meeting_id, giver_id, receiver_id)

    def list_for_meeting(
        self, *, tenant_id: str, meeting_id: str, include_revoked: bool = False
    ) -> list[ProxyDelegation]:
        meeting = self._meetings.get(tenant_id, require_identifier(meeting_id, "meeting_id"))
        if meeting is None:
            raise NotFoundError("meeting_not_found", f"Meeting '{meeting_id}' was not found for tenant '{tenant_id}'")
        return self._delegations.list_for_meeting(tenant_id, meeting.id, include_revoked=include_revoked)


__all__ = ["DelegationResult", "ProxyDelegationRegistry"]
