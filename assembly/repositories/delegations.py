"""Proxy delegation storage backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from assembly.models import ProxyDelegation


class SqlDelegationStore:
    def __init__(self, session: Session) -> None:
        self._session = session

    def _active(self, meeting_id: str):
        return select(ProxyDelegation).where(
            ProxyDelegation.meeting_id == meeting_id, ProxyDelegation.revoked_at.is_(None)
        )

    def active_for_giver(
        self, meeting_id: str, giver_id: str, *, lock: bool = False
    ) -> ProxyDelegation | None:
        statement = self._active(meeting_id).where(ProxyDelegation.giver_member_id == giver_id)
        if lock:
            statement = statement.with_for_update()
        return self._session.scalars(statement).first()

    def has_active(self, meeting_id: str, giver_id: str, receiver_id: str) -> bool:
        statement = self._active(meeting_id).where(
            ProxyDelegation.giver_member_id == giver_id,
            ProxyDelegation.receiver_member_id == receiver_id,
        )
        return self._session.scalars(statement).first() is not None

    def is_active_receiver(self, meeting_id: str, member_id: str, *, lock: bool = False) -> bool:
        statement = self._active(meeting_id).where(ProxyDelegation.receiver_member_id == member_id)
        if lock:
            statement = statement.with_for_update()
        return self._session.scalars(statement).first() is not None

    def count_active_for_receiver(self, meeting_id: str, receiver_id: str, *, lock: bool = False) -> int:
        # Aggregates cannot be selected FOR UPDATE.
        statement = select(ProxyDelegation.id).where(
            ProxyDelegation.meeting_id == meeting_id,
            ProxyDelegation.receiver_member_id == receiver_id,
            ProxyDelegation.revoked_at.is_(None),
        )
        if lock:
            statement = statement.with_for_update()
        return len(self._session.scalars(statement).all())

    def add(self, *, tenant_id: str, meeting_id: str, giver_id: str, receiver_id: str) -> ProxyDelegation:
        delegation = ProxyDelegation(
            tenant_id=tenant_id,
            meeting_id=meeting_id,
            giver_member_id=giver_id,
            receiver_member_id=receiver_id,
        )
        self._session.add(delegation)
        self._session.flush()
        return delegation

    def revoke(self, delegation: ProxyDelegation, *, at: datetime) -> None:
        delegation.revoked_at = at
        self._session.flush()

    def list_for_meeting(
        self, tenant_id: str, meeting_id: str, *, include_revoked: bool = False
    ) -> list[ProxyDelegation]:
        statement = select(ProxyDelegation).where(
            ProxyDelegation.tenant_id == tenant_id, ProxyDelegation.meeting_id == meeting_id
        )
        if not include_revoked:
            statement = statement.where(ProxyDelegation.revoked_at.is_(None))
        statement = statement.order_by(ProxyDelegation.created_at, ProxyDelegation.id)
        return list(self._session.scalars(statement))


__all__ = ["SqlDelegationStore"]
