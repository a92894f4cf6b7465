"""Ballot ORM model."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assembly.models.base import Base, TimestampMixin, value_enum


class BallotChoice(str, enum.Enum):
    FOR = "for"
    AGAINST = "against"
    ABSTAIN = "abstain"
    NO_OPINION = "no_opinion"


EXPRESSED_CHOICES: frozenset[BallotChoice] = frozenset(
    {BallotChoice.FOR, BallotChoice.AGAINST, BallotChoice.ABSTAIN}
)


class Ballot(TimestampMixin, Base):
    """One member's ballot on one motion; recasting updates the row in place."""

    __tablename__ = "ballots"
    __table_args__ = (
        UniqueConstraint("motion_id", "member_id", name="uq_ballots_motion_member"),
        CheckConstraint(
            "(is_proxy AND proxy_voter_id IS NOT NULL) OR (NOT is_proxy AND proxy_voter_id IS NULL)",
            name="ck_ballots_proxy_voter",
        ),
        Index("ix_ballots_tenant_id", "tenant_id"),
        Index("ix_ballots_motion_id", "motion_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    meeting_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False
    )
    motion_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("motions.id", ondelete="CASCADE"), nullable=False
    )
    member_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    choice: Mapped[BallotChoice] = mapped_column(value_enum(BallotChoice, "ballot_choice"), nullable=False)
    weight: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    is_proxy: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    proxy_voter_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("members.id")
    )
    cast_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    motion = relationship("Motion", back_populates="ballots")


__all__ = ["Ballot", "BallotChoice", "EXPRESSED_CHOICES"]
