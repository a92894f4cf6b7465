"""Motion ORM model, including its manual tally and persisted official result."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assembly.models.base import Base, TimestampMixin, value_enum


class ResultSource(str, enum.Enum):
    MANUAL = "manual"
    EVOTE = "evote"


class Decision(str, enum.Enum):
    ADOPTED = "adopted"
    REJECTED = "rejected"
    NO_QUORUM = "no_quorum"
    NO_VOTES = "no_votes"
    NO_POLICY = "no_policy"


class Motion(TimestampMixin, Base):
    """A resolution put to the vote during a meeting."""

    __tablename__ = "motions"
    __table_args__ = (
        CheckConstraint(
            "closed_at IS NULL OR opened_at IS NOT NULL", name="ck_motions_closed_after_opened"
        ),
        Index("ix_motions_tenant_id", "tenant_id"),
        Index("ix_motions_meeting_id", "meeting_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    meeting_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False
    )
    agenda_item: Mapped[str | None] = mapped_column(String(255))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    secret: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    opened_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    quorum_policy_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("quorum_policies.id", ondelete="SET NULL")
    )
    vote_policy_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("vote_policies.id", ondelete="SET NULL")
    )

    manual_total: Mapped[Decimal | None] = mapped_column(Numeric(18, 4))
    manual_for: Mapped[Decimal | None] = mapped_column(Numeric(18, 4))
    manual_against: Mapped[Decimal | None] = mapped_column(Numeric(18, 4))
    manual_abstain: Mapped[Decimal | None] = mapped_column(Numeric(18, 4))

    official_source: Mapped[ResultSource | None] = mapped_column(value_enum(ResultSource, "result_source"))
    official_for: Mapped[Decimal | None] = mapped_column(Numeric(18, 4))
    official_against: Mapped[Decimal | None] = mapped_column(Numeric(18, 4))
    official_abstain: Mapped[Decimal | None] = mapped_column(Numeric(18, 4))
    official_total: Mapped[Decimal | None] = mapped_column(Numeric(18, 4))
    decision: Mapped[Decision | None] = mapped_column(value_enum(Decision, "motion_decision"))
    decision_reason: Mapped[str | None] = mapped_column(Text)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    meeting = relationship("Meeting", back_populates="motions")
    ballots = relationship("Ballot", back_populates="motion", cascade="all, delete-orphan")

    @property
    def is_open(self) -> bool:
        return self.opened_at is not None and self.closed_at is None

    @property
    def is_closed(self) -> bool:
        return self.closed_at is not None


__all__ = ["Decision", "Motion", "ResultSource"]
