"""Majority resolver: tallies against a vote policy."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from assembly.engine.inputs import ZERO, MajorityRule, VoteFigures
from assembly.engine.quorum import EPSILON
from assembly.engine.verdicts import Verdict
from assembly.models import MajorityBase


@dataclass(frozen=True, slots=True)
class MajorityEvaluation:
    verdict: Verdict
    policy_name: str | None = None
    ratio: Decimal | None = None
    threshold: Decimal | None = None
    base: MajorityBase | None = None
    base_total: Decimal | None = None
    abstention_as_against: bool = False

    @property
    def adopted(self) -> bool:
        return self.verdict is Verdict.MET

    def to_dict(self) -> dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "applied": self.verdict.applied,
            "adopted": self.verdict.met,
            "policy_name": self.policy_name,
            "ratio": None if self.ratio is None else str(self.ratio),
            "threshold": None if self.threshold is None else str(self.threshold),
            "base": self.base.value if self.base is not None else None,
            "base_total": None if self.base_total is None else str(self.base_total),
            "abstention_as_against": self.abstention_as_against,
        }


def base_total(
    base: MajorityBase,
    *,
    expressed_weight: Decimal,
    eligible_weight: Decimal,
    present_weight: Decimal | None = None,
) -> Decimal:
    if base is MajorityBase.ELIGIBLE:
        return eligible_weight
    if base is MajorityBase.PRESENT and present_weight is not None:
        return present_weight
    return expressed_weight


def evaluate_majority(
    rule: MajorityRule | None,
    figures: VoteFigures,
    *,
    eligible_weight: Decimal,
    present_weight: Decimal | None = None,
    quorum: Verdict = Verdict.UNAPPLIED,
) -> MajorityEvaluation:
    """Decide adoption for ``figures`` under ``rule``.

    ``abstention_as_against`` is reported only; the ratio is always
    ``for / base``. A not-met quorum forces rejection.
    """

    if rule is None:
        return MajorityEvaluation(verdict=Verdict.UNAPPLIED)

    expressed = figures.expressed_weight
    total = base_total(
        rule.base,
        expressed_weight=expressed,
        eligible_weight=Decimal(eligible_weight),
        present_weight=present_weight,
    )

    if total <= ZERO or expressed <= ZERO:
        ratio = ZERO
        adopted = False
    else:
        ratio = figures.for_weight / max(total, EPSILON)
        adopted = ratio >= rule.threshold

    if quorum is Verdict.NOT_MET:
        adopted = False

    return MajorityEvaluation(
        verdict=Verdict.of(adopted),
        policy_name=rule.name,
        ratio=ratio,
        threshold=rule.threshold,
        base=rule.base,
        base_total=total,
        abstention_as_against=rule.abstention_as_against,
    )


__all__ = ["MajorityEvaluation", "base_total", "evaluate_majority"]
