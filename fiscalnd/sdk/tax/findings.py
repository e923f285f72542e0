"""Ordered accumulator for the assumptions and risk flags of one run."""

from dataclasses import dataclass, field
from typing import Iterable, List

from .schemas import Assumption, RiskFlag


@dataclass
class Findings:
    """Assumptions and risk flags in the order the pipeline produced them.

    One instance per compute run; it is threaded through the stages and
    frozen into the output once at the end.
    """

    assumptions: List[Assumption] = field(default_factory=list)
    risk_flags: List[RiskFlag] = field(default_factory=list)

    def assume(self, assumption: Assumption) -> "Findings":
        self.assumptions.append(assumption)
        return self

    def flag(self, risk_flag: RiskFlag) -> "Findings":
        self.risk_flags.append(risk_flag)
        return self

    def extend(self, assumptions: Iterable[Assumption] = (), risk_flags: Iterable[RiskFlag] = ()) -> "Findings":
        self.assumptions.extend(assumptions)
        self.risk_flags.extend(risk_flags)
        return self

    def freeze(self):
        """Copies of both lists, safe to hand to the output."""
        return list(self.assumptions), list(self.risk_flags)
