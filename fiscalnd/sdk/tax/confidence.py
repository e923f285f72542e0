"""Confidence scoring - how far to trust the computed number.

Starts from the completeness score, so confidence never exceeds
completeness, then subtracts:

    INCOME_CONFIRMATION_GAP     round((0.80 - confirmed ratio) * 25)
    UNCATEGORIZED_TRANSACTIONS  round((0.85 - categorized ratio) * 35)
    STATE_RULESET_STALE         20
    HIGH_RISK_FLAGS             min(25, 8 per high-severity flag)
"""

from typing import Sequence

from ..money import clamp, round_half_up
from ..schemas import ImpactLevel, IncomeSource, Transaction
from .schemas import CompletenessResult, ConfidenceResult, Driver, RiskFlag

INCOME_CONFIRMATION_TARGET = 0.8
CATEGORIZED_TARGET = 0.85
STALE_STATE_PENALTY = 20


def evaluate_confidence(
    completeness: CompletenessResult,
    incomes: Sequence[IncomeSource],
    transactions: Sequence[Transaction],
    risk_flags: Sequence[RiskFlag],
    state_computable: bool,
) -> ConfidenceResult:
    """Score confidence 0-100 and record a driver for every penalty applied."""
    drivers = []
    score = completeness.score

    confirmed_ratio = 0.0 if not incomes else sum(1 for i in incomes if i.is_confirmed) / len(incomes)
    categorized_ratio = (
        1.0 if not transactions
        else sum(1 for t in transactions if t.is_categorized) / len(transactions)
    )

    if confirmed_ratio < INCOME_CONFIRMATION_TARGET:
        impact = round_half_up((INCOME_CONFIRMATION_TARGET - confirmed_ratio) * 25)
        score -= impact
        drivers.append(Driver(
            code="INCOME_CONFIRMATION_GAP",
            impact=-impact,
            reason="Confirmed income coverage is below 80%.",
        ))

    if categorized_ratio < CATEGORIZED_TARGET:
        impact = round_half_up((CATEGORIZED_TARGET - categorized_ratio) * 35)
        score -= impact
        drivers.append(Driver(
            code="UNCATEGORIZED_TRANSACTIONS",
            impact=-impact,
            reason="Too many transactions remain uncategorized.",
        ))

    if not state_computable:
        score -= STALE_STATE_PENALTY
        drivers.append(Driver(
            code="STATE_RULESET_STALE",
            impact=-STALE_STATE_PENALTY,
            reason="State ruleset is stale or not computable.",
        ))

    high_flags = sum(1 for flag in risk_flags if flag.severity == ImpactLevel.HIGH)
    if high_flags:
        impact = min(25, high_flags * 8)
        score -= impact
        drivers.append(Driver(
            code="HIGH_RISK_FLAGS",
            impact=-impact,
            reason=f"{high_flags} high-severity risk flags were raised.",
        ))

    if not drivers:
        drivers.append(Driver(
            code="CONFIDENCE_STABLE",
            impact=0,
            reason="Coverage, categorization and ruleset status are healthy.",
        ))

    return ConfidenceResult(score=clamp(score, 0, 100), drivers=drivers)
