"""Tri-state verdict shared by the quorum and majority resolvers."""
from __future__ import annotations

import enum


class Verdict(str, enum.Enum):
    """Outcome of a policy evaluation.

    ``UNAPPLIED`` means no policy was configured; it never blocks a decision.
    """

    UNAPPLIED = "unapplied"
    MET = "met"
    NOT_MET = "not_met"

    @classmethod
    def of(cls, met: bool) -> "Verdict":
        return cls.MET if met else cls.NOT_MET

    @property
    def applied(self) -> bool:
        return self is not Verdict.UNAPPLIED

    @property
    def met(self) -> bool | None:
        if self is Verdict.UNAPPLIED:
            return None
        return self is Verdict.MET


__all__ = ["Verdict"]
