"""ORM models package."""
from .attendance import DIRECT_PRESENCE_MODES, Attendance, PresenceMode
from .audit_log import AuditLog
from .ballot import EXPRESSED_CHOICES, Ballot, BallotChoice
from .base import Base, TimestampMixin
from .meeting import MEETING_STATUS_ORDER, Meeting, MeetingStatus
from .member import Member
from .motion import Decision, Motion, ResultSource
from .policy import MajorityBase, QuorumDenominator, QuorumMode, QuorumPolicy, VotePolicy
from .proxy_delegation import ProxyDelegation
from .tenant import Tenant

__all__ = [
    "Attendance",
    "AuditLog",
    "Ballot",
    "BallotChoice",
    "Base",
    "DIRECT_PRESENCE_MODES",
    "Decision",
    "EXPRESSED_CHOICES",
    "MEETING_STATUS_ORDER",
    "MajorityBase",
    "Meeting",
    "MeetingStatus",
    "Member",
    "Motion",
    "PresenceMode",
    "ProxyDelegation",
    "QuorumDenominator",
    "QuorumMode",
    "QuorumPolicy",
    "ResultSource",
    "Tenant",
    "TimestampMixin",
    "VotePolicy",
]
