"""Pure decision engine: quorum and majority resolvers with no I/O."""
from .decision import Outcome, decide, format_pct, format_weight
from .inputs import MajorityRule, ModeTotals, Participation, QuorumRule, Roster, VoteFigures
from .majority import MajorityEvaluation, evaluate_majority
from .quorum import EPSILON, QuorumEvaluation, RatioBlock, evaluate_quorum
from .verdicts import Verdict

__all__ = [
    "EPSILON",
    "MajorityEvaluation",
    "MajorityRule",
    "ModeTotals",
    "Outcome",
    "Participation",
    "QuorumEvaluation",
    "QuorumRule",
    "RatioBlock",
    "Roster",
    "Verdict",
    "VoteFigures",
    "decide",
    "evaluate_majority",
    "evaluate_quorum",
    "format_pct",
    "format_weight",
]
