"""Immutable inputs consumed by the resolvers.

The resolvers never touch the database: services load ORM rows and convert
them into these value objects first.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from assembly.models import (
    MajorityBase,
    PresenceMode,
    QuorumDenominator,
    QuorumMode,
    QuorumPolicy,
    VotePolicy,
)

ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class ModeTotals:
    members: int = 0
    weight: Decimal = ZERO

    def __add__(self, other: "ModeTotals") -> "ModeTotals":
        return ModeTotals(members=self.members + other.members, weight=self.weight + other.weight)


@dataclass(frozen=True, slots=True)
class Participation:
    """Participating members and weights broken down by presence mode."""

    present: ModeTotals = field(default_factory=ModeTotals)
    remote: ModeTotals = field(default_factory=ModeTotals)
    proxy: ModeTotals = field(default_factory=ModeTotals)

    @classmethod
    def from_mapping(cls, totals: dict[PresenceMode, ModeTotals]) -> "Participation":
        return cls(
            present=totals.get(PresenceMode.PRESENT, ModeTotals()),
            remote=totals.get(PresenceMode.REMOTE, ModeTotals()),
            proxy=totals.get(PresenceMode.PROXY, ModeTotals()),
        )

    def for_mode(self, mode: PresenceMode) -> ModeTotals:
        if mode is PresenceMode.PRESENT:
            return self.present
        if mode is PresenceMode.REMOTE:
            return self.remote
        return self.proxy

    def counted(self, modes: Iterable[PresenceMode]) -> ModeTotals:
        total = ModeTotals()
        for mode in modes:
            total = total + self.for_mode(mode)
        return total

    @property
    def total(self) -> ModeTotals:
        return self.present + self.remote + self.proxy


@dataclass(frozen=True, slots=True)
class Roster:
    """Active members of a tenant: the eligible denominator."""

    eligible_members: int
    eligible_weight: Decimal


@dataclass(frozen=True, slots=True)
class VoteFigures:
    """Weights per expressed choice for one motion."""

    for_weight: Decimal = ZERO
    against_weight: Decimal = ZERO
    abstain_weight: Decimal = ZERO

    @property
    def expressed_weight(self) -> Decimal:
        return self.for_weight + self.against_weight + self.abstain_weight


@dataclass(frozen=True, slots=True)
class QuorumRule:
    name: str
    mode: QuorumMode
    denominator: QuorumDenominator
    threshold: Decimal
    threshold_call2: Decimal | None = None
    denominator2: QuorumDenominator | None = None
    threshold2: Decimal | None = None
    include_proxies: bool = True
    count_remote: bool = True

    @classmethod
    def from_model(cls, policy: QuorumPolicy) -> "QuorumRule":
        return cls(
            name=policy.name,
            mode=policy.mode,
            denominator=policy.denominator,
            threshold=Decimal(policy.threshold),
            threshold_call2=None if policy.threshold_call2 is None else Decimal(policy.threshold_call2),
            denominator2=policy.denominator2,
            threshold2=None if policy.threshold2 is None else Decimal(policy.threshold2),
            include_proxies=policy.include_proxies is not False,
            count_remote=policy.count_remote is not False,
        )

    @property
    def counted_modes(self) -> tuple[PresenceMode, ...]:
        modes = [PresenceMode.PRESENT]
        if self.count_remote:
            modes.append(PresenceMode.REMOTE)
        if self.include_proxies:
            modes.append(PresenceMode.PROXY)
        return tuple(modes)

    def effective_threshold(self, convocation_no: int) -> Decimal:
        if self.mode is QuorumMode.EVOLVING and convocation_no == 2 and self.threshold_call2 is not None:
            return self.threshold_call2
        return self.threshold


@dataclass(frozen=True, slots=True)
class MajorityRule:
    name: str
    base: MajorityBase
    threshold: Decimal
    abstention_as_against: bool = False

    @classmethod
    def from_model(cls, policy: VotePolicy) -> "MajorityRule":
        return cls(
            name=policy.name,
            base=policy.base,
            threshold=Decimal(policy.threshold),
            abstention_as_against=bool(policy.abstention_as_against),
        )


__all__ = [
    "MajorityRule",
    "ModeTotals",
    "Participation",
    "QuorumRule",
    "Roster",
    "VoteFigures",
    "ZERO",
]
