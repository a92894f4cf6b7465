"""Schemas for motion endpoints."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from assembly.models import Decision, ResultSource


class ManualTallyUpdate(BaseModel):
    total: Decimal = Field(..., ge=0)
    for_weight: Decimal = Field(..., ge=0, alias="for")
    against_weight: Decimal = Field(..., ge=0, alias="against")
    abstain_weight: Decimal = Field(..., ge=0, alias="abstain")

    model_config = ConfigDict(populate_by_name=True)


class MotionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    meeting_id: str
    title: str
    agenda_item: str | None
    position: int
    secret: bool
    opened_at: datetime | None
    closed_at: datetime | None
    manual_total: Decimal | None
    manual_for: Decimal | None
    manual_against: Decimal | None
    manual_abstain: Decimal | None
    official_source: ResultSource | None
    official_for: Decimal | None
    official_against: Decimal | None
    official_abstain: Decimal | None
    official_total: Decimal | None
    decision: Decision | None
    decision_reason: str | None
    decided_at: datetime | None


class MotionResultRead(BaseModel):
    motion_id: str
    source: ResultSource
    for_weight: str = Field(alias="for")
    against_weight: str = Field(alias="against")
    abstain_weight: str = Field(alias="abstain")
    total: str
    expressed_members: int
    decision: Decision
    reason: str
    quorum: dict[str, Any]
    majority: dict[str, Any]

    model_config = ConfigDict(populate_by_name=True)


class TallyRead(BaseModel):
    motion_id: str
    choices: dict[str, dict[str, Any]]
    ballot_count: int
    expressed_members: int
    expressed_weight: str
    by_mode: dict[str, dict[str, Any]]


__all__ = ["ManualTallyUpdate", "MotionRead", "MotionResultRead", "TallyRead"]
