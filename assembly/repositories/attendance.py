"""Attendance reads and writes backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.orm import Session

from assembly.engine.inputs import ModeTotals, Participation
from assembly.models import DIRECT_PRESENCE_MODES, Attendance, Member, PresenceMode


class SqlAttendanceRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, meeting_id: str, member_id: str) -> Attendance | None:
        statement = select(Attendance).where(
            Attendance.meeting_id == meeting_id, Attendance.member_id == member_id
        )
        return self._session.scalars(statement).one_or_none()

    def is_present_direct(self, meeting_id: str, member_id: str) -> bool:
        attendance = self.get(meeting_id, member_id)
        return (
            attendance is not None
            and attendance.checked_out_at is None
            and attendance.mode in DIRECT_PRESENCE_MODES
        )

    def is_present(self, meeting_id: str, member_id: str) -> bool:
        attendance = self.get(meeting_id, member_id)
        return attendance is not None and attendance.checked_out_at is None

    def _counted(self, meeting_id: str, present_before: datetime | None) -> list[ColumnElement[bool]]:
        conditions = [
            Attendance.meeting_id == meeting_id,
            Attendance.checked_out_at.is_(None),
            Member.is_active.is_(True),
        ]
        if present_before is not None:
            # Late arrivals do not count toward a motion opened before them.
            conditions.append(
                or_(Attendance.present_from_at.is_(None), Attendance.present_from_at <= present_before)
            )
        return conditions

    def participation(self, meeting_id: str, *, present_before: datetime | None = None) -> Participation:
        statement = (
            select(
                Attendance.mode,
                func.count(Attendance.id),
                func.coalesce(func.sum(Member.voting_weight), 0),
            )
            .join(Member, Member.id == Attendance.member_id)
            .where(*self._counted(meeting_id, present_before))
            .group_by(Attendance.mode)
        )
        totals = {
            PresenceMode(mode): ModeTotals(members=int(count), weight=Decimal(str(weight)))
            for mode, count, weight in self._session.execute(statement)
        }
        return Participation.from_mapping(totals)

    def present_weight(self, meeting_id: str) -> Decimal:
        statement = (
            select(func.coalesce(func.sum(Member.voting_weight), 0))
            .select_from(Attendance)
            .join(Member, Member.id == Attendance.member_id)
            .where(
                *self._counted(meeting_id, None),
                Attendance.mode.in_([PresenceMode.PRESENT, PresenceMode.REMOTE]),
            )
        )
        return Decimal(str(self._session.scalar(statement) or 0))

    def upsert(
        self, *, tenant_id: str, meeting_id: str, member_id: str, mode: PresenceMode, at: datetime
    ) -> Attendance:
        attendance = self.get(meeting_id, member_id)
        if attendance is None:
            attendance = Attendance(
                tenant_id=tenant_id,
                meeting_id=meeting_id,
                member_id=member_id,
                mode=mode,
                checked_in_at=at,
                present_from_at=at,
            )
            self._session.add(attendance)
        else:
            if attendance.checked_out_at is not None:
                attendance.present_from_at = at
            attendance.mode = mode
            attendance.checked_in_at = at
            attendance.checked_out_at = None
        self._session.flush()
        return attendance

    def check_out(self, attendance: Attendance, *, at: datetime) -> None:
        attendance.checked_out_at = at
        self._session.flush()


__all__ = ["SqlAttendanceRepository"]
