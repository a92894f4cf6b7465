"""Meeting reads and readiness counts backed by SQLAlchemy."""
from __future__ import annotations

from sqlalchemy import and_, exists, func, not_, or_, select
from sqlalchemy.orm import Session

from assembly.models import Ballot, Meeting, Motion
from assembly.repositories.ports import ReadinessCounts


class SqlMeetingRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, tenant_id: str, meeting_id: str, *, lock: bool = False) -> Meeting | None:
        statement = select(Meeting).where(Meeting.id == meeting_id, Meeting.tenant_id == tenant_id)
        if lock:
            statement = statement.with_for_update()
        return self._session.scalars(statement).one_or_none()

    def readiness_counts(self, meeting_id: str) -> ReadinessCounts:
        closed = and_(Motion.meeting_id == meeting_id, Motion.closed_at.is_not(None))
        manual_sum = (
            func.coalesce(Motion.manual_for, 0)
            + func.coalesce(Motion.manual_against, 0)
            + func.coalesce(Motion.manual_abstain, 0)
        )
        consistent_manual = and_(Motion.manual_total > 0, manual_sum == Motion.manual_total)
        has_ballot = exists().where(Ballot.motion_id == Motion.id)

        def _count(*criteria) -> int:
            statement = select(func.count(Motion.id)).where(*criteria)
            return int(self._session.scalar(statement) or 0)

        return ReadinessCounts(
            open_motions=_count(
                Motion.meeting_id == meeting_id,
                Motion.opened_at.is_not(None),
                Motion.closed_at.is_(None),
            ),
            bad_closed_motions=_count(closed, not_(or_(consistent_manual, has_ballot))),
            unconsolidated_motions=_count(closed, Motion.official_source.is_(None)),
            closed_motions=_count(closed),
        )


__all__ = ["SqlMeetingRepository"]
