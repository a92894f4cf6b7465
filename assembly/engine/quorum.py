"""Quorum resolver: participation against a quorum policy."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from assembly.engine.inputs import ModeTotals, Participation, QuorumRule, Roster
from assembly.engine.verdicts import Verdict
from assembly.models import PresenceMode, QuorumDenominator, QuorumMode

EPSILON = Decimal("1e-9")

NO_POLICY_JUSTIFICATION = "No quorum policy applied."
MISSING_SECOND_CONDITION = "Double quorum: second condition not configured."


@dataclass(frozen=True, slots=True)
class RatioBlock:
    """One numerator/denominator comparison against a threshold."""

    basis: QuorumDenominator | None
    threshold: Decimal | None
    numerator: Decimal
    denominator: Decimal
    ratio: Decimal
    met: bool
    configured: bool = True

    @classmethod
    def unconfigured(cls) -> "RatioBlock":
        return cls(
            basis=None,
            threshold=None,
            numerator=Decimal("0"),
            denominator=Decimal("0"),
            ratio=Decimal("0"),
            met=False,
            configured=False,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "configured": self.configured,
            "met": self.met,
            "basis": self.basis.value if self.basis is not None else None,
            "threshold": None if self.threshold is None else str(self.threshold),
            "numerator": str(self.numerator),
            "denominator": str(self.denominator),
            "ratio": str(self.ratio),
        }


@dataclass(frozen=True, slots=True)
class QuorumEvaluation:
    verdict: Verdict
    justification: str
    convocation_no: int = 1
    policy_name: str | None = None
    primary: RatioBlock | None = None
    secondary: RatioBlock | None = None
    counted_modes: tuple[PresenceMode, ...] = ()
    numerator: ModeTotals = ModeTotals()

    @property
    def ratio(self) -> Decimal | None:
        return self.primary.ratio if self.primary is not None else None

    @property
    def threshold(self) -> Decimal | None:
        return self.primary.threshold if self.primary is not None else None

    @property
    def basis(self) -> QuorumDenominator | None:
        return self.primary.basis if self.primary is not None else None

    @property
    def failing_block(self) -> RatioBlock | None:
        """First block responsible for a not-met verdict, if any."""

        if self.verdict is not Verdict.NOT_MET:
            return None
        if self.primary is not None and not self.primary.met:
            return self.primary
        return self.secondary

    def to_dict(self) -> dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "applied": self.verdict.applied,
            "met": self.verdict.met,
            "policy_name": self.policy_name,
            "convocation_no": self.convocation_no,
            "ratio": None if self.ratio is None else str(self.ratio),
            "threshold": None if self.threshold is None else str(self.threshold),
            "basis": self.basis.value if self.basis is not None else None,
            "primary": self.primary.to_dict() if self.primary is not None else None,
            "secondary": self.secondary.to_dict() if self.secondary is not None else None,
            "counted_modes": [mode.value for mode in self.counted_modes],
            "numerator": {"members": self.numerator.members, "weight": str(self.numerator.weight)},
            "justification": self.justification,
        }


def ratio_block(
    basis: QuorumDenominator,
    threshold: Decimal,
    numerator: ModeTotals,
    roster: Roster,
) -> RatioBlock:
    """Compare the counted participation to the eligible roster on one basis."""

    if basis is QuorumDenominator.ELIGIBLE_MEMBERS:
        num = Decimal(numerator.members)
        den = Decimal(max(1, roster.eligible_members))
    else:
        num = Decimal(numerator.weight)
        den = max(Decimal(roster.eligible_weight), EPSILON)
    ratio = num / den
    return RatioBlock(
        basis=basis,
        threshold=threshold,
        numerator=num,
        denominator=den,
        ratio=ratio,
        met=ratio >= threshold,
    )


def _justification(
    rule: QuorumRule,
    convocation_no: int,
    primary: RatioBlock,
    secondary: RatioBlock | None,
    verdict: Verdict,
) -> str:
    modes = ", ".join(mode.value for mode in rule.counted_modes)
    status = "met" if verdict is Verdict.MET else "not met"
    text = (
        f"{rule.name} (convocation {convocation_no}): basis {primary.basis.value} "
        f"(ratio {primary.ratio:.4f} / threshold {primary.threshold:.4f}). "
        f"Counted: {modes}. Result: {status}."
    )
    if secondary is not None:
        if secondary.configured:
            text += (
                f" Second condition: basis {secondary.basis.value} "
                f"(ratio {secondary.ratio:.4f} / threshold {secondary.threshold:.4f})."
            )
        else:
            text += f" {MISSING_SECOND_CONDITION}"
    return text


def evaluate_quorum(
    rule: QuorumRule | None,
    participation: Participation,
    roster: Roster,
    *,
    convocation_no: int = 1,
) -> QuorumEvaluation:
    """Evaluate ``rule`` for the given participation; pure and deterministic."""

    if rule is None:
        return QuorumEvaluation(
            verdict=Verdict.UNAPPLIED,
            justification=NO_POLICY_JUSTIFICATION,
            convocation_no=convocation_no,
        )

    counted_modes = rule.counted_modes
    numerator = participation.counted(counted_modes)
    primary = ratio_block(rule.denominator, rule.effective_threshold(convocation_no), numerator, roster)
    met = primary.met

    secondary: RatioBlock | None = None
    if rule.mode is QuorumMode.DOUBLE:
        if rule.denominator2 is None or rule.threshold2 is None:
            secondary = RatioBlock.unconfigured()
            met = False
        else:
            secondary = ratio_block(rule.denominator2, rule.threshold2, numerator, roster)
            met = primary.met and secondary.met

    verdict = Verdict.of(met)
    return QuorumEvaluation(
        verdict=verdict,
        justification=_justification(rule, convocation_no, primary, secondary, verdict),
        convocation_no=convocation_no,
        policy_name=rule.name,
        primary=primary,
        secondary=secondary,
        counted_modes=counted_modes,
        numerator=numerator,
    )


__all__ = [
    "EPSILON",
    "QuorumEvaluation",
    "RatioBlock",
    "evaluate_quorum",
    "ratio_block",
]
