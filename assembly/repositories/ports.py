"""Narrow read/write ports consumed by the engine services."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from assembly.engine.inputs import ModeTotals, Participation, Roster
from assembly.models import (
    Attendance,
    Ballot,
    BallotChoice,
    Meeting,
    Member,
    Motion,
    PresenceMode,
    ProxyDelegation,
    QuorumPolicy,
    VotePolicy,
)


@dataclass(frozen=True, slots=True)
class ChoiceTotals:
    count: int = 0
    weight: Decimal = Decimal("0")


@dataclass(frozen=True, slots=True)
class ReadinessCounts:
    open_motions: int
    bad_closed_motions: int
    unconsolidated_motions: int
    closed_motions: int


class MemberRoster(Protocol):
    def get(self, tenant_id: str, member_id: str) -> Member | None: ...

    def eligible_roster(self, tenant_id: str) -> Roster: ...


class AttendanceReader(Protocol):
    def get(self, meeting_id: str, member_id: str) -> Attendance | None: ...

    def is_present_direct(self, meeting_id: str, member_id: str) -> bool: ...

    def is_present(self, meeting_id: str, member_id: str) -> bool: ...

    def participation(self, meeting_id: str, *, present_before: datetime | None = None) -> Participation: ...

    def present_weight(self, meeting_id: str) -> Decimal: ...


class AttendanceWriter(Protocol):
    def upsert(
        self, *, tenant_id: str, meeting_id: str, member_id: str, mode: PresenceMode, at: datetime
    ) -> Attendance: ...

    def check_out(self, attendance: Attendance, *, at: datetime) -> None: ...


class BallotStore(Protocol):
    def get(self, motion_id: str, member_id: str) -> Ballot | None: ...

    def upsert(
        self,
        *,
        tenant_id: str,
        meeting_id: str,
        motion_id: str,
        member_id: str,
        choice: BallotChoice,
        weight: Decimal,
        proxy_voter_id: str | None,
        at: datetime,
    ) -> tuple[Ballot, bool]: ...

    def choice_totals(self, tenant_id: str, motion_id: str) -> dict[BallotChoice, ChoiceTotals]: ...

    def expressed_by_mode(self, tenant_id: str, motion_id: str) -> dict[PresenceMode, ModeTotals]: ...


class PolicyReader(Protocol):
    def quorum_policy(self, tenant_id: str, policy_id: str | None) -> QuorumPolicy | None: ...

    def vote_policy(self, tenant_id: str, policy_id: str | None) -> VotePolicy | None: ...


class MotionReader(Protocol):
    def get(self, tenant_id: str, motion_id: str, *, lock: bool = False) -> Motion | None: ...

    def list_closed(self, tenant_id: str, meeting_id: str) -> list[Motion]: ...

    def open_motion_ids(self, meeting_id: str) -> list[str]: ...


class MotionWriter(Protocol):
    def write_official_result(self, motion: Motion, values: dict[str, object], *, at: datetime) -> bool: ...


class MeetingReader(Protocol):
    def get(self, tenant_id: str, meeting_id: str, *, lock: bool = False) -> Meeting | None: ...


class MeetingStatsReader(Protocol):
    def readiness_counts(self, meeting_id: str) -> ReadinessCounts: ...


class DelegationStore(Protocol):
    def active_for_giver(
        self, meeting_id: str, giver_id: str, *, lock: bool = False
    ) -> ProxyDelegation | None: ...

    def has_active(self, meeting_id: str, giver_id: str, receiver_id: str) -> bool: ...

    def is_active_receiver(self, meeting_id: str, member_id: str, *, lock: bool = False) -> bool: ...

    def count_active_for_receiver(self, meeting_id: str, receiver_id: str, *, lock: bool = False) -> int: ...

    def add(self, *, tenant_id: str, meeting_id: str, giver_id: str, receiver_id: str) -> ProxyDelegation: ...

    def revoke(self, delegation: ProxyDelegation, *, at: datetime) -> None: ...

    def list_for_meeting(
        self, tenant_id: str, meeting_id: str, *, include_revoked: bool = False
    ) -> list[ProxyDelegation]: ...


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
]
