"""Proxy delegation ORM model."""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from assembly.models.base import Base, TimestampMixin


class ProxyDelegation(TimestampMixin, Base):
    """Authorisation for a receiver to vote on behalf of a giver during one meeting.

    Rows are never deleted: revocation stamps ``revoked_at`` so the delegation
    history of a meeting stays auditable. At most one row per (meeting, giver)
    may be active, enforced by a partial unique index.
    """

    __tablename__ = "proxy_delegations"
    __table_args__ = (
        CheckConstraint("giver_member_id <> receiver_member_id", name="ck_proxy_delegations_not_self"),
        Index(
            "uq_proxy_delegations_active_giver",
            "meeting_id",
            "giver_member_id",
            unique=True,
            postgresql_where=text("revoked_at IS NULL"),
            sqlite_where=text("revoked_at IS NULL"),
        ),
        Index("ix_proxy_delegations_tenant_id", "tenant_id"),
        Index("ix_proxy_delegations_receiver", "meeting_id", "receiver_member_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    meeting_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False
    )
    giver_member_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    receiver_member_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    @property
    def is_active(self) -> bool:
        return self.revoked_at is None


__all__ = ["ProxyDelegation"]
