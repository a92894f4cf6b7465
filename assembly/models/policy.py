"""Quorum and vote policy ORM models (read-only for the engine)."""
from __future__ import annotations

import enum
import uuid
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from assembly.models.base import Base, TimestampMixin, value_enum


class QuorumMode(str, enum.Enum):
    SINGLE = "single"
    EVOLVING = "evolving"
    DOUBLE = "double"


class QuorumDenominator(str, enum.Enum):
    ELIGIBLE_MEMBERS = "eligible_members"
    ELIGIBLE_WEIGHT = "eligible_weight"


class MajorityBase(str, enum.Enum):
    EXPRESSED = "expressed"
    ELIGIBLE = "eligible"
    PRESENT = "present"


class QuorumPolicy(TimestampMixin, Base):
    """Minimum participation rule for a meeting or a motion."""

    __tablename__ = "quorum_policies"
    __table_args__ = (Index("ix_quorum_policies_tenant_id", "tenant_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    mode: Mapped[QuorumMode] = mapped_column(
        value_enum(QuorumMode, "quorum_mode"), nullable=False, default=QuorumMode.SINGLE
    )
    denominator: Mapped[QuorumDenominator] = mapped_column(
        value_enum(QuorumDenominator, "quorum_denominator"),
        nullable=False,
        default=QuorumDenominator.ELIGIBLE_MEMBERS,
    )
    threshold: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)
    threshold_call2: Mapped[Decimal | None] = mapped_column(Numeric(5, 4))
    denominator2: Mapped[QuorumDenominator | None] = mapped_column(
        value_enum(QuorumDenominator, "quorum_denominator")
    )
    threshold2: Mapped[Decimal | None] = mapped_column(Numeric(5, 4))
    include_proxies: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    count_remote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class VotePolicy(TimestampMixin, Base):
    """Majority rule: winning threshold and the base it is measured against."""

    __tablename__ = "vote_policies"
    __table_args__ = (Index("ix_vote_policies_tenant_id", "tenant_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    base: Mapped[MajorityBase] = mapped_column(
        value_enum(MajorityBase, "majority_base"), nullable=False, default=MajorityBase.EXPRESSED
    )
    threshold: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False)
    abstention_as_against: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


__all__ = ["MajorityBase", "QuorumDenominator", "QuorumMode", "QuorumPolicy", "VotePolicy"]
