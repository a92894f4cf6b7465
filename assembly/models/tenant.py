"""Tenant ORM model."""
from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assembly.models.base import Base, TimestampMixin


class Tenant(TimestampMixin, Base):
    """An isolated organisation running its own assemblies."""

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    members = relationship("Member", back_populates="tenant", cascade="all, delete-orphan")
    meetings = relationship("Meeting", back_populates="tenant", cascade="all, delete-orphan")
    audit_logs = relationship("AuditLog", back_populates="tenant", cascade="all, delete-orphan")


__all__ = ["Tenant"]
