"""Pydantic schemas for the HTTP adapter."""
from .ballot import BallotCreate, BallotRead
from .meeting import (
    AttendanceCreate,
    AttendanceRead,
    ConsolidationRead,
    MeetingRead,
    MeetingTransition,
    QuorumRead,
    ReadinessRead,
)
from .motion import ManualTallyUpdate, MotionRead, MotionResultRead, TallyRead
from .proxy import DelegationCreate, DelegationRead, RevocationRead

__all__ = [
    "AttendanceCreate",
    "AttendanceRead",
    "BallotCreate",
    "BallotRead",
    "ConsolidationRead",
    "DelegationCreate",
    "DelegationRead",
    "ManualTallyUpdate",
    "MeetingRead",
    "MeetingTransition",
    "MotionRead",
    "MotionResultRead",
    "QuorumRead",
    "ReadinessRead",
    "RevocationRead",
    "TallyRead",
]
