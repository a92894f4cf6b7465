"""Final decision for a motion and its human-readable reason."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from assembly.engine.inputs import VoteFigures
from assembly.engine.majority import MajorityEvaluation
from assembly.engine.quorum import MISSING_SECOND_CONDITION, QuorumEvaluation
from assembly.engine.verdicts import Verdict
from assembly.models import Decision, MajorityBase, QuorumDenominator

NO_VOTES_REASON = "No ballot recorded for this motion."

_BASIS_LABELS = {
    QuorumDenominator.ELIGIBLE_MEMBERS: "of eligible members",
    QuorumDenominator.ELIGIBLE_WEIGHT: "of eligible weight",
}
_BASE_LABELS = {
    MajorityBase.EXPRESSED: "of expressed votes",
    MajorityBase.ELIGIBLE: "of eligible votes",
    MajorityBase.PRESENT: "of present votes",
}


@dataclass(frozen=True, slots=True)
class Outcome:
    decision: Decision
    reason: str


def format_pct(value: Decimal | None) -> str:
    """``0.4`` -> ``40%``; ``0.6667`` -> ``66.7%``."""

    if value is None:
        return "0%"
    pct = Decimal(value) * 100
    rounded = pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    if abs(pct - rounded) < Decimal("0.01"):
        return f"{rounded:.0f}%"
    return f"{pct.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}%"


def format_weight(value: Decimal) -> str:
    value = Decimal(value)
    rounded = value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    if abs(value - rounded) < Decimal("0.0001"):
        return f"{rounded:.0f}"
    return f"{value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}"


def _quorum_reason(quorum: QuorumEvaluation) -> str:
    block = quorum.failing_block
    if block is None or not block.configured:
        return f"Quorum not reached ({MISSING_SECOND_CONDITION})"
    label = _BASIS_LABELS[block.basis]
    return f"Quorum not reached ({format_pct(block.ratio)} < {format_pct(block.threshold)} {label})"


def _majority_reason(majority: MajorityEvaluation) -> str:
    label = _BASE_LABELS.get(majority.base, "of votes")
    ratio = format_pct(majority.ratio)
    threshold = format_pct(majority.threshold)
    if majority.adopted:
        return f"Majority reached ({ratio} >= {threshold} {label})"
    return f"Majority not reached ({ratio} < {threshold} {label})"


def decide(
    *,
    expressed_members: int,
    figures: VoteFigures,
    quorum: QuorumEvaluation,
    majority: MajorityEvaluation,
) -> Outcome:
    """First match wins: no votes, no quorum, majority verdict, no policy."""

    if expressed_members <= 0:
        return Outcome(Decision.NO_VOTES, NO_VOTES_REASON)
    if quorum.verdict is Verdict.NOT_MET:
        return Outcome(Decision.NO_QUORUM, _quorum_reason(quorum))
    if majority.verdict.applied:
        decision = Decision.ADOPTED if majority.adopted else Decision.REJECTED
        return Outcome(decision, _majority_reason(majority))
    return Outcome(
        Decision.NO_POLICY,
        f"No vote policy defined (for: {format_weight(figures.for_weight)} / "
        f"against: {format_weight(figures.against_weight)})",
    )


__all__ = ["NO_VOTES_REASON", "Outcome", "decide", "format_pct", "format_weight"]
