"""Persistence ports and their SQLAlchemy implementations."""
from .attendance import SqlAttendanceRepository
from .ballots import SqlBallotStore
from .delegations import SqlDelegationStore
from .meetings import SqlMeetingRepository
from .members import SqlMemberRoster
from .motions import SqlMotionRepository
from .policies import SqlPolicyReader
from .ports import (
    AttendanceReader,
    AttendanceWriter,
    BallotStore,
    ChoiceTotals,
    DelegationStore,
    MeetingReader,
    MeetingStatsReader,
    MemberRoster,
    MotionReader,
    MotionWriter,
    PolicyReader,
    ReadinessCounts,
)

__all__ = [
    "AttendanceReader",
    "AttendanceWriter",
    "BallotStore",
    "ChoiceTotals",
    "DelegationStore",
    "MeetingReader",
    "MeetingStatsReader",
    "MemberRoster",
    "MotionReader",
    "MotionWriter",
    "PolicyReader",
    "ReadinessCounts",
    "SqlAttendanceRepository",
    "SqlBallotStore",
    "SqlDelegationStore",
    "SqlMeetingRepository",
    "SqlMemberRoster",
    "SqlMotionRepository",
    "SqlPolicyReader",
]
