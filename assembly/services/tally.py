"""Per-motion ballot aggregation."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from assembly.engine.inputs import Participation, VoteFigures
from assembly.models import EXPRESSED_CHOICES, BallotChoice
from assembly.repositories import BallotStore, ChoiceTotals, SqlBallotStore
from assembly.services.errors import require_identifier


@dataclass(frozen=True, slots=True)
class MotionTally:
    """Counts and weights of a motion's stored ballots."""

    motion_id: str
    choices: dict[BallotChoice, ChoiceTotals]
    participation: Participation

    def totals(self, choice: BallotChoice) -> ChoiceTotals:
        return self.choices.get(choice, ChoiceTotals())

    @property
    def ballot_count(self) -> int:
        return sum(totals.count for totals in self.choices.values())

    @property
    def expressed_members(self) -> int:
        return sum(self.totals(choice).count for choice in EXPRESSED_CHOICES)

    @property
    def expressed_weight(self) -> Decimal:
        return sum((self.totals(choice).weight for choice in EXPRESSED_CHOICES), Decimal("0"))

    @property
    def figures(self) -> VoteFigures:
        return VoteFigures(
            for_weight=self.totals(BallotChoice.FOR).weight,
            against_weight=self.totals(BallotChoice.AGAINST).weight,
            abstain_weight=self.totals(BallotChoice.ABSTAIN).weight,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "motion_id": self.motion_id,
            "choices": {
                choice.value: {"count": self.totals(choice).count, "weight": str(self.totals(choice).weight)}
                for choice in BallotChoice
            },
            "ballot_count": self.ballot_count,
            "expressed_members": self.expressed_members,
            "expressed_weight": str(self.expressed_weight),
            "by_mode": {
                "present": {"members": self.participation.present.members, "weight": str(self.participation.present.weight)},
                "remote": {"members": self.participation.remote.members, "weight": str(self.participation.remote.weight)},
                "proxy": {"members": self.participation.proxy.members, "weight": str(self.participation.proxy.weight)},
            },
        }


class TallyAggregator:
    """Pure read over stored ballots; safe whatever the motion state."""

    def __init__(self, session: Session, *, ballots: BallotStore | None = None) -> None:
        self._ballots = ballots or SqlBallotStore(session)

    def tally(self, *, tenant_id: str, motion_id: str) -> MotionTally:
        motion_id = require_identifier(motion_id, "motion_id")
        return MotionTally(
            motion_id=motion_id,
            choices=self._ballots.choice_totals(tenant_id, motion_id),
            participation=Participation.from_mapping(self._ballots.expressed_by_mode(tenant_id, motion_id)),
        )


__all__ = ["MotionTally", "TallyAggregator"]
