"""Motion reads and official-result writes backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from assembly.models import Motion

OFFICIAL_RESULT_FIELDS = (
    "official_source",
    "official_for",
    "official_against",
    "official_abstain",
    "official_total",
    "decision",
    "decision_reason",
)


class SqlMotionRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, tenant_id: str, motion_id: str, *, lock: bool = False) -> Motion | None:
        statement = select(Motion).where(Motion.id == motion_id, Motion.tenant_id == tenant_id)
        if lock:
            statement = statement.with_for_update()
        return self._session.scalars(statement).one_or_none()

    def list_closed(self, tenant_id: str, meeting_id: str) -> list[Motion]:
        statement = (
            select(Motion)
            .where(
                Motion.tenant_id == tenant_id,
                Motion.meeting_id == meeting_id,
                Motion.closed_at.is_not(None),
            )
            .order_by(Motion.closed_at, Motion.position, Motion.id)
        )
        return list(self._session.scalars(statement))

    def open_motion_ids(self, meeting_id: str) -> list[str]:
        statement = select(Motion.id).where(
            Motion.meeting_id == meeting_id,
            Motion.opened_at.is_not(None),
            Motion.closed_at.is_(None),
        )
        return list(self._session.scalars(statement))

    def write_official_result(self, motion: Motion, values: dict[str, object], *, at: datetime) -> bool:
        """Apply ``values``; ``decided_at`` moves only when another field changed."""

        changed = motion.decided_at is None or any(
            getattr(motion, field) != values[field] for field in OFFICIAL_RESULT_FIELDS
        )
        if not changed:
            return False
        for field in OFFICIAL_RESULT_FIELDS:
            setattr(motion, field, values[field])
        motion.decided_at = at
        self._session.flush()
        return True


__all__ = ["OFFICIAL_RESULT_FIELDS", "SqlMotionRepository"]
