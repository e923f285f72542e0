"""Completeness scoring - how much of the required input is present.

Independent of whether the computed tax is right. Starts at 100:

    -25  filing status missing
    -25  no income sources
    -2   per uncategorized transaction (max -20)
    -15  four or more calendar months without activity
    -2   per unreviewed transaction of 1000 or more (max -10)

Income sources are annual and not dated, so any income source counts as
activity in all twelve months.
"""

from typing import Iterable, Sequence, Set

from ..money import clamp
from ..schemas import ImpactLevel, IncomeSource, TaxProfile, Transaction
from .schemas import CompletenessResult, GapItem, MissingItem

LARGE_TRANSACTION_THRESHOLD = 1000
GAP_MONTHS_THRESHOLD = 4
NO_ISSUES_ACTION = "No blocking completeness issues detected."


def months_with_activity(transactions: Iterable[Transaction], incomes: Sequence[IncomeSource]) -> Set[int]:
    """Calendar months (1-12) with any activity."""
    months = {transaction.date.month for transaction in transactions}
    if incomes:
        months.update(range(1, 13))
    return months


def evaluate_completeness(
    profile: TaxProfile,
    incomes: Sequence[IncomeSource],
    transactions: Sequence[Transaction],
) -> CompletenessResult:
    """Score input completeness 0-100 with the items and gaps behind the score."""
    score = 100
    missing_items = []
    gaps = []
    actions = []

    if profile.filing_status is None:
        score -= 25
        missing_items.append(MissingItem(
            code="MISSING_FILING_STATUS",
            description="Filing status is required to choose the correct bracket table.",
            action="Complete the tax profile filing status.",
            impact=ImpactLevel.HIGH,
        ))

    if not incomes:
        score -= 25
        missing_items.append(MissingItem(
            code="MISSING_INCOME",
            description="No income sources are loaded for the selected tax year.",
            action="Add W-2, 1099 or business income records.",
            impact=ImpactLevel.HIGH,
        ))

    uncategorized = [t for t in transactions if not t.is_categorized]
    if uncategorized:
        score -= min(20, len(uncategorized) * 2)
        missing_items.append(MissingItem(
            code="UNCATEGORIZED_TRANSACTIONS",
            description=f"{len(uncategorized)} transactions are missing a confirmed category.",
            action="Review low-confidence and uncategorized transactions.",
            impact=ImpactLevel.HIGH if len(uncategorized) > 8 else ImpactLevel.MEDIUM,
        ))

    active = months_with_activity(transactions, incomes)
    for month in range(1, 13):
        if month not in active:
            gaps.append(GapItem(code="TEMPORAL_GAP", description="No activity found for this month.", month=month))

    if len(gaps) >= GAP_MONTHS_THRESHOLD:
        score -= 15
        actions.append("Investigate temporal gaps to confirm the year is fully loaded.")

    large_unreviewed = [
        t for t in transactions
        if abs(t.amount) >= LARGE_TRANSACTION_THRESHOLD and not t.is_reviewed
    ]
    if large_unreviewed:
        score -= min(10, len(large_unreviewed) * 2)
        missing_items.append(MissingItem(
            code="LARGE_UNREVIEWED_TRANSACTIONS",
            description=f"{len(large_unreviewed)} large transactions have not been reviewed.",
            action="Confirm category and supporting documents for large transactions.",
            impact=ImpactLevel.MEDIUM,
        ))

    if not actions:
        actions.append(NO_ISSUES_ACTION)

    return CompletenessResult(
        score=clamp(score, 0, 100),
        missing_items=missing_items,
        gaps=gaps,
        actions=actions,
    )
