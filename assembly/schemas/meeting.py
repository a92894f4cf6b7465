"""Schemas for meeting endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from assembly.models import MeetingStatus, PresenceMode


class MeetingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    title: str
    status: MeetingStatus
    convocation_no: int
    president_name: str | None
    validated_at: datetime | None


class MeetingTransition(BaseModel):
    to_status: MeetingStatus


class AttendanceCreate(BaseModel):
    member_id: str = Field(..., max_length=36)
    mode: PresenceMode


class AttendanceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    meeting_id: str
    member_id: str
    mode: PresenceMode
    checked_in_at: datetime
    present_from_at: datetime | None
    checked_out_at: datetime | None


class ReadinessRead(BaseModel):
    meeting_id: str
    can_validate: bool
    violations: list[str]
    metrics: dict[str, int]


class ConsolidationRead(BaseModel):
    meeting_id: str
    updated: int
    failed: list[str]


class QuorumRead(BaseModel):
    verdict: str
    applied: bool
    met: bool | None
    policy_name: str | None
    convocation_no: int
    ratio: str | None
    threshold: str | None
    basis: str | None
    primary: dict[str, Any] | None
    secondary: dict[str, Any] | None
    counted_modes: list[str]
    numerator: dict[str, Any]
    justification: str


__all__ = [
    "AttendanceCreate",
    "AttendanceRead",
    "ConsolidationRead",
    "MeetingRead",
    "MeetingTransition",
    "QuorumRead",
    "ReadinessRead",
]
