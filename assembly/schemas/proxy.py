"""Schemas for proxy delegation endpoints."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class DelegationCreate(BaseModel):
    giver_member_id: str = Field(..., max_length=36)
    receiver_member_id: str = Field(..., max_length=36)


class DelegationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    meeting_id: str
    giver_member_id: str
    receiver_member_id: str
    revoked_at: datetime | None
    created_at: datetime


class RevocationRead(BaseModel):
    meeting_id: str
    giver_member_id: str
    revoked: bool


__all__ = ["DelegationCreate", "DelegationRead", "RevocationRead"]
