"""Attendance ORM model."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from assembly.models.base import Base, TimestampMixin, value_enum


class PresenceMode(str, enum.Enum):
    PRESENT = "present"
    REMOTE = "remote"
    PROXY = "proxy"


DIRECT_PRESENCE_MODES: frozenset[PresenceMode] = frozenset({PresenceMode.PRESENT, PresenceMode.REMOTE})


class Attendance(TimestampMixin, Base):
    """How a member attends a meeting; a checked-out row no longer counts."""

    __tablename__ = "attendances"
    __table_args__ = (
        UniqueConstraint("meeting_id", "member_id", name="uq_attendances_meeting_member"),
        Index("ix_attendances_tenant_id", "tenant_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    meeting_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False
    )
    member_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    mode: Mapped[PresenceMode] = mapped_column(value_enum(PresenceMode, "presence_mode"), nullable=False)
    checked_in_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    checked_out_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    present_from_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


__all__ = ["Attendance", "DIRECT_PRESENCE_MODES", "PresenceMode"]
