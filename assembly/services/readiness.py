"""Meeting readiness: may the meeting be validated?"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from sqlalchemy.orm import Session

from assembly.repositories import (
    MeetingReader,
    MeetingStatsReader,
    ReadinessCounts,
    SqlMeetingRepository,
)
from assembly.services.errors import NotFoundError, require_identifier

MISSING_PRESIDENT = "missing_president"
OPEN_MOTIONS = "open_motions"
BAD_CLOSED_RESULTS = "bad_closed_results"
CONSOLIDATION_MISSING = "consolidation_missing"

VIOLATION_ORDER: tuple[str, ...] = (
    MISSING_PRESIDENT,
    OPEN_MOTIONS,
    BAD_CLOSED_RESULTS,
    CONSOLIDATION_MISSING,
)


@dataclass(frozen=True, slots=True)
class Readiness:
    meeting_id: str
    can_validate: bool
    violations: tuple[str, ...]
    counts: ReadinessCounts

    def to_dict(self) -> dict[str, Any]:
        return {
            "meeting_id": self.meeting_id,
            "can_validate": self.can_validate,
            "violations": list(self.violations),
            "metrics": {
                "open_motions": self.counts.open_motions,
                "bad_closed_motions": self.counts.bad_closed_motions,
                "unconsolidated_motions": self.counts.unconsolidated_motions,
                "closed_motions": self.counts.closed_motions,
            },
        }


@dataclass(frozen=True, slots=True)
class ViolationDiff:
    appeared: tuple[str, ...]
    resolved: tuple[str, ...]

    @property
    def changed(self) -> bool:
        return bool(self.appeared or self.resolved)


def _ordered(codes: Iterable[str]) -> tuple[str, ...]:
    present = set(codes)
    known = [code for code in VIOLATION_ORDER if code in present]
    return tuple(known + sorted(present.difference(VIOLATION_ORDER)))


def diff_violations(previous: Iterable[str], current: Iterable[str]) -> ViolationDiff:
    """Codes that newly appeared and codes that were resolved between two snapshots."""

    before = set(previous)
    after = set(current)
    return ViolationDiff(appeared=_ordered(after - before), resolved=_ordered(before - after))


class MeetingReadinessEvaluator:
    """Reads persisted official results and structural counts only."""

    def __init__(
        self,
        session: Session,
        *,
        meetings: MeetingReader | None = None,
        stats: MeetingStatsReader | None = None,
    ) -> None:
        repository = SqlMeetingRepository(session)
        self._meetings = meetings or repository
        self._stats = stats or repository

    def evaluate_readiness(self, *, tenant_id: str, meeting_id: str) -> Readiness:
        meeting_id = require_identifier(meeting_id, "meeting_id")
        meeting = self._meetings.get(tenant_id, meeting_id)
        if meeting is None:
            raise NotFoundError("meeting_not_found", f"Meeting '{meeting_id}' was not found for tenant '{tenant_id}'")

        counts = self._stats.readiness_counts(meeting.id)
        violations: list[str] = []
        if not (meeting.president_name or "").strip():
            violations.append(MISSING_PRESIDENT)
        if counts.open_motions > 0:
            violations.append(OPEN_MOTIONS)
        if counts.bad_closed_motions > 0:
            violations.append(BAD_CLOSED_RESULTS)
        if counts.unconsolidated_motions > 0:
            violations.append(CONSOLIDATION_MISSING)

        return Readiness(
            meeting_id=meeting.id,
            can_validate=not violations,
            violations=tuple(violations),
            counts=counts,
        )


__all__ = [
    "BAD_CLOSED_RESULTS",
    "CONSOLIDATION_MISSING",
    "MISSING_PRESIDENT",
    "MeetingReadinessEvaluator",
    "OPEN_MOTIONS",
    "Readiness",
    "VIOLATION_ORDER",
    "ViolationDiff",
    "diff_violations",
]
