"""Member ORM model."""
from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assembly.models.base import Base, TimestampMixin


class Member(TimestampMixin, Base):
    """A voting member of a tenant's assembly."""

    __tablename__ = "members"
    __table_args__ = (
        CheckConstraint("voting_weight >= 0", name="ck_members_voting_weight_positive"),
        Index("ix_members_tenant_id", "tenant_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    voting_weight: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False, default=Decimal("1"))

    tenant = relationship("Tenant", back_populates="members")


__all__ = ["Member"]
