"""Common dependencies for API routes."""
from __future__ import annotations

from collections.abc import Iterator

from fastapi import Header
from sqlalchemy.orm import Session

from assembly.db.session import SessionLocal
from assembly.services.events import EventSink, build_event_sink


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies."""

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_tenant_id(x_tenant_id: str = Header(..., alias="X-Tenant-ID", min_length=1, max_length=64)) -> str:
    """Tenant scoping comes from the caller on every request."""

    return x_tenant_id.strip()


def get_actor(x_actor: str | None = Header(default=None, alias="X-Actor", max_length=128)) -> str | None:
    return x_actor


def get_event_sink() -> EventSink:
    return build_event_sink()


__all__ = ["get_actor", "get_db_session", "get_event_sink", "get_tenant_id"]
