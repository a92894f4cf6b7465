"""Audit trail rows appended inside the caller's transaction."""
from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from assembly.models import AuditLog


def record_audit(
    session: Session,
    *,
    tenant_id: str,
    action: str,
    resource_type: str,
    resource_id: str | None,
    payload: dict[str, Any] | None = None,
    actor: str | None = None,
) -> AuditLog:
    log = AuditLog(
        tenant_id=tenant_id,
        actor=actor,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        payload=payload,
    )
    session.add(log)
    return log


__all__ = ["record_audit"]
