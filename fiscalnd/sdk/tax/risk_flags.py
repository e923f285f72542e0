"""Risk flags derived from scope, categorization and ruleset health.

ESTIMATED_PAYMENTS_RECOMMENDED and UNDERWITHHOLDING_RISK depend on computed
tax figures and are raised by the calculator, not here.
"""

from typing import List, Sequence

from ..rulesets.schemas import StateRuleset
from ..schemas import Direction, ImpactLevel, IncomeSource, ScopeStatus, Transaction
from .schemas import RiskFlag, ScopeDecision
from .scope import OUT_OF_SCOPE_CASE_DETECTED, state_name

UNCATEGORIZED_RATIO_MEDIUM = 0.25
UNCATEGORIZED_RATIO_HIGH = 0.4
MEALS_RATIO_LIMIT = 0.35


def build_risk_flags(
    scope: ScopeDecision,
    incomes: Sequence[IncomeSource],
    transactions: Sequence[Transaction],
    state_ruleset: StateRuleset,
) -> List[RiskFlag]:
    """Build the situational risk flags that do not need computed figures."""
    flags = []

    uncategorized_count = sum(1 for t in transactions if not t.is_categorized)
    uncategorized_ratio = uncategorized_count / len(transactions) if transactions else 0.0
    if uncategorized_ratio >= UNCATEGORIZED_RATIO_MEDIUM:
        flags.append(RiskFlag(
            code="HIGH_UNCATEGORIZED_RATIO",
            severity=ImpactLevel.HIGH if uncategorized_ratio >= UNCATEGORIZED_RATIO_HIGH else ImpactLevel.MEDIUM,
            explanation="A large share of transactions is still uncategorized.",
            suggested_fix="Review the categorization queue and confirm overrides for recurring merchants.",
            evidence={
                "uncategorized_count": uncategorized_count,
                "total_transactions": len(transactions),
            },
        ))

    expenses = [t for t in transactions if t.direction == Direction.EXPENSE]
    if expenses and not incomes:
        flags.append(RiskFlag(
            code="MISSING_INCOME_SIGNAL",
            severity=ImpactLevel.HIGH,
            explanation="Business expenses are present without any matching income source.",
            suggested_fix="Add or confirm income sources before relying on the estimate.",
        ))

    # Numerator counts every MEALS transaction; denominator only expenses.
    meals = [t for t in transactions if t.category_code == "MEALS"]
    meals_ratio = len(meals) / len(expenses) if expenses else 0.0
    if meals_ratio > MEALS_RATIO_LIMIT:
        flags.append(RiskFlag(
            code="UNUSUAL_MEALS_RATIO",
            severity=ImpactLevel.MEDIUM,
            explanation="Meal expenses represent an unusually large share of business expenses.",
            suggested_fix="Review meal categorization and confirm business purpose on supporting receipts.",
            evidence={
                "meals_transactions": len(meals),
                "expense_transactions": len(expenses),
            },
        ))

    if not state_ruleset.computable:
        name = state_name(state_ruleset.state_code)
        flags.append(RiskFlag(
            code="STATE_RULESET_STALE",
            severity=ImpactLevel.HIGH,
            explanation=f"{name} ruleset is marked stale and state tax cannot be computed safely.",
            suggested_fix=(
                state_ruleset.staleness.action if state_ruleset.staleness
                else f"Validate and reload the {state_ruleset.state_code} ruleset."
            ),
        ))

    if scope.status != ScopeStatus.IN_SCOPE:
        flags.append(RiskFlag(
            code=OUT_OF_SCOPE_CASE_DETECTED,
            severity=ImpactLevel.HIGH if scope.status == ScopeStatus.OUT_OF_SCOPE else ImpactLevel.MEDIUM,
            explanation=" ".join(scope.reasons),
            suggested_fix="Escalate to manual review or a more advanced tax module.",
        ))

    return flags
