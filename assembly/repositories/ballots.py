"""Ballot storage and grouped aggregation backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, case, func, select
from sqlalchemy.orm import Session

from assembly.engine.inputs import ModeTotals
from assembly.models import EXPRESSED_CHOICES, Attendance, Ballot, BallotChoice, PresenceMode
from assembly.repositories.ports import ChoiceTotals


class SqlBallotStore:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, motion_id: str, member_id: str) -> Ballot | None:
        statement = select(Ballot).where(Ballot.motion_id == motion_id, Ballot.member_id == member_id)
        return self._session.scalars(statement).one_or_none()

    def upsert(
        self,
        *,
        tenant_id: str,
        meeting_id: str,
        motion_id: str,
        member_id: str,
        choice: BallotChoice,
        weight: Decimal,
        proxy_voter_id: str | None,
        at: datetime,
    ) -> tuple[Ballot, bool]:
        """Insert or update the (motion, member) ballot; returns ``(ballot, created)``."""

        ballot = self.get(motion_id, member_id)
        created = ballot is None
        if ballot is None:
            ballot = Ballot(
                tenant_id=tenant_id,
                meeting_id=meeting_id,
                motion_id=motion_id,
                member_id=member_id,
            )
            self._session.add(ballot)
        ballot.choice = choice
        ballot.weight = weight
        ballot.is_proxy = proxy_voter_id is not None
        ballot.proxy_voter_id = proxy_voter_id
        ballot.cast_at = at
        self._session.flush()
        return ballot, created

    def choice_totals(self, tenant_id: str, motion_id: str) -> dict[BallotChoice, ChoiceTotals]:
        statement = (
            select(Ballot.choice, func.count(Ballot.id), func.coalesce(func.sum(Ballot.weight), 0))
            .where(Ballot.tenant_id == tenant_id, Ballot.motion_id == motion_id)
            .group_by(Ballot.choice)
        )
        totals = {choice: ChoiceTotals() for choice in BallotChoice}
        for choice, count, weight in self._session.execute(statement):
            totals[BallotChoice(choice)] = ChoiceTotals(count=int(count), weight=Decimal(str(weight)))
        return totals

    def expressed_by_mode(self, tenant_id: str, motion_id: str) -> dict[PresenceMode, ModeTotals]:
        """Expressed ballots grouped by the presence mode they were cast under.

        Proxy ballots count as ``proxy``; direct ballots follow the voter's
        attendance row, ``remote`` only when the voter attends remotely.
        """

        mode = case(
            (Ballot.is_proxy.is_(True), PresenceMode.PROXY.value),
            (Attendance.mode == PresenceMode.REMOTE, PresenceMode.REMOTE.value),
            else_=PresenceMode.PRESENT.value,
        ).label("mode")
        statement = (
            select(mode, func.count(Ballot.id), func.coalesce(func.sum(Ballot.weight), 0))
            .select_from(Ballot)
            .outerjoin(
                Attendance,
                and_(
                    Attendance.meeting_id == Ballot.meeting_id,
                    Attendance.member_id == Ballot.member_id,
                ),
            )
            .where(
                Ballot.tenant_id == tenant_id,
                Ballot.motion_id == motion_id,
                Ballot.choice.in_(sorted(EXPRESSED_CHOICES, key=lambda choice: choice.value)),
            )
            .group_by(mode)
        )
        return {
            PresenceMode(row_mode): ModeTotals(members=int(count), weight=Decimal(str(weight)))
            for row_mode, count, weight in self._session.execute(statement)
        }


__all__ = ["SqlBallotStore"]
