"""Meeting ORM model."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assembly.models.base import Base, TimestampMixin, value_enum


class MeetingStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    LIVE = "live"
    CLOSED = "closed"
    VALIDATED = "validated"
    ARCHIVED = "archived"


MEETING_STATUS_ORDER: tuple[MeetingStatus, ...] = tuple(MeetingStatus)


class Meeting(TimestampMixin, Base):
    """A convened session of a tenant's assembly."""

    __tablename__ = "meetings"
    __table_args__ = (
        CheckConstraint("convocation_no IN (1, 2)", name="ck_meetings_convocation_no"),
        Index("ix_meetings_tenant_id", "tenant_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[MeetingStatus] = mapped_column(
        value_enum(MeetingStatus, "meeting_status"), nullable=False, default=MeetingStatus.DRAFT
    )
    convocation_no: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    quorum_policy_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("quorum_policies.id", ondelete="SET NULL")
    )
    vote_policy_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("vote_policies.id", ondelete="SET NULL")
    )
    president_name: Mapped[str | None] = mapped_column(String(255))
    validated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    tenant = relationship("Tenant", back_populates="meetings")
    motions = relationship(
        "Motion", back_populates="meeting", cascade="all, delete-orphan", order_by="Motion.position"
    )

    @property
    def is_validated(self) -> bool:
        return self.validated_at is not None


__all__ = ["MEETING_STATUS_ORDER", "Meeting", "MeetingStatus"]
