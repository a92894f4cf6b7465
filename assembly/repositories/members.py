"""Member roster backed by SQLAlchemy."""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from assembly.engine.inputs import Roster
from assembly.models import Member


class SqlMemberRoster:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, tenant_id: str, member_id: str) -> Member | None:
        member = self._session.get(Member, member_id)
        if member is None or member.tenant_id != tenant_id:
            return None
        return member

    def eligible_roster(self, tenant_id: str) -> Roster:
        statement = select(
            func.count(Member.id), func.coalesce(func.sum(Member.voting_weight), 0)
        ).where(Member.tenant_id == tenant_id, Member.is_active.is_(True))
        count, weight = self._session.execute(statement).one()
        return Roster(eligible_members=int(count or 0), eligible_weight=Decimal(str(weight or 0)))


__all__ = ["SqlMemberRoster"]
