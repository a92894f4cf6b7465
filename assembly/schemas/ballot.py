"""Schemas for ballot endpoints."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from assembly.models import BallotChoice


class BallotCreate(BaseModel):
    member_id: str = Field(..., max_length=36)
    choice: str = Field(..., max_length=32)
    proxy_voter_id: str | None = Field(default=None, max_length=36)


class BallotRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    meeting_id: str
    motion_id: str
    member_id: str
    choice: BallotChoice
    weight: Decimal
    is_proxy: bool
    proxy_voter_id: str | None
    cast_at: datetime


__all__ = ["BallotCreate", "BallotRead"]
