"""Tests for completeness and confidence scoring."""

import datetime as dt

import pytest

from builders import TEST_YEAR, make_income, make_profile, make_transaction
from fiscalnd.sdk.schemas import ImpactLevel
from fiscalnd.sdk.tax import evaluate_completeness, evaluate_confidence
from fiscalnd.sdk.tax.completeness import NO_ISSUES_ACTION
from fiscalnd.sdk.tax.schemas import CompletenessResult, RiskFlag


def monthly_transactions(months, **overrides):
    return [
        make_transaction(f"txn-{m}", date=dt.date(TEST_YEAR, m, 5), category_code="SOFTWARE", **overrides)
        for m in months
    ]


def completeness(score=100):
    return CompletenessResult(score=score)


def high_flag(code="X"):
    return RiskFlag(code=code, severity=ImpactLevel.HIGH, explanation="", suggested_fix="")


# === COMPLETENESS ===


class TestCompleteness:
    """Penalties applied to the completeness score."""

    def test_complete_inputs_score_100(self):
        result = evaluate_completeness(make_profile(), [make_income()], [])

        assert result.score == 100
        assert result.missing_items == []
        assert result.gaps == []
        assert result.actions == [NO_ISSUES_ACTION]

    def test_missing_filing_status(self):
        result = evaluate_completeness(make_profile(filing_status=None), [make_income()], [])

        assert result.score == 75
        assert [m.code for m in result.missing_items] == ["MISSING_FILING_STATUS"]

    def test_no_income_and_no_activity(self):
        """No income means every month without a transaction is a gap."""
        result = evaluate_completeness(make_profile(), [], [])

        assert result.score == 100 - 25 - 15
        assert len(result.gaps) == 12
        assert result.gaps[0].month == 1
        assert "Investigate temporal gaps" in result.actions[0]

    def test_income_covers_all_months(self):
        result = evaluate_completeness(make_profile(), [make_income()], monthly_transactions([3]))

        assert result.gaps == []

    def test_three_gap_months_not_penalized(self):
        transactions = monthly_transactions(range(1, 10))

        result = evaluate_completeness(make_profile(), [], transactions)

        assert [g.month for g in result.gaps] == [10, 11, 12]
        assert result.score == 75

    def test_four_gap_months_penalized(self):
        transactions = monthly_transactions(range(1, 9))

        result = evaluate_completeness(make_profile(), [], transactions)

        assert len(result.gaps) == 4
        assert result.score == 100 - 25 - 15

    @pytest.mark.parametrize("count,penalty,impact", [
        (1, 2, ImpactLevel.MEDIUM),
        (8, 16, ImpactLevel.MEDIUM),
        (9, 18, ImpactLevel.HIGH),
        (15, 20, ImpactLevel.HIGH),
    ])
    def test_uncategorized_penalty_capped(self, count, penalty, impact):
        transactions = [make_transaction(f"t{i}") for i in range(count)]

        result = evaluate_completeness(make_profile(), [make_income()], transactions)

        assert result.score == 100 - penalty
        [item] = result.missing_items
        assert item.code == "UNCATEGORIZED_TRANSACTIONS"
        assert item.impact == impact

    def test_large_unreviewed_transactions(self):
        transactions = [
            make_transaction(f"big-{i}", amount=-1000, category_code="TRAVEL") for i in range(7)
        ] + [
            make_transaction("reviewed", amount=-5000, category_code="TRAVEL", is_reviewed=True),
            make_transaction("small", amount=-999.99, category_code="TRAVEL"),
        ]

        result = evaluate_completeness(make_profile(), [make_income()], transactions)

        assert result.score == 90
        [item] = result.missing_items
        assert item.code == "LARGE_UNREVIEWED_TRANSACTIONS"
        assert item.description.startswith("7 ")

    def test_every_penalty_at_once(self):
        transactions = [
            make_transaction(f"t{i}", amount=-2000, date=dt.date(TEST_YEAR, 1, 1)) for i in range(20)
        ]

        result = evaluate_completeness(make_profile(filing_status=None), [], transactions)

        assert result.score == 100 - 25 - 25 - 20 - 15 - 10
        assert [m.code for m in result.missing_items] == [
            "MISSING_FILING_STATUS",
            "MISSING_INCOME",
            "UNCATEGORIZED_TRANSACTIONS",
            "LARGE_UNREVIEWED_TRANSACTIONS",
        ]


# === CONFIDENCE ===


class TestConfidence:
    """Penalties layered on top of the completeness score."""

    def test_stable_when_healthy(self):
        result = evaluate_confidence(completeness(100), [make_income()], [], [], True)

        assert result.score == 100
        [driver] = result.drivers
        assert driver.code == "CONFIDENCE_STABLE"
        assert driver.impact == 0

    def test_never_exceeds_completeness(self):
        result = evaluate_confidence(completeness(60), [make_income()], [], [], True)

        assert result.score == 60

    def test_no_income_gives_full_confirmation_penalty(self):
        result = evaluate_confidence(completeness(100), [], [], [], True)

        assert result.score == 80
        assert result.drivers[0].code == "INCOME_CONFIRMATION_GAP"
        assert result.drivers[0].impact == -20

    def test_partial_confirmation(self):
        incomes = [make_income("a"), make_income("b", is_confirmed=False)]

        result = evaluate_confidence(completeness(100), incomes, [], [], True)

        # (0.8 - 0.5) * 25 = 7.5, rounded half up
        assert result.drivers[0].impact == -8
        assert result.score == 92

    def test_uncategorized_ratio_penalty(self):
        transactions = [make_transaction("a", category_code="TRAVEL"), make_transaction("b")]

        result = evaluate_confidence(completeness(100), [make_income()], transactions, [], True)

        # (0.85 - 0.5) * 35 = 12.25
        assert result.drivers[0].code == "UNCATEGORIZED_TRANSACTIONS"
        assert result.drivers[0].impact == -12

    def test_stale_state_penalty(self):
        result = evaluate_confidence(completeness(100), [make_income()], [], [], False)

        assert result.score == 80
        assert result.drivers[0].code == "STATE_RULESET_STALE"

    @pytest.mark.parametrize("flags,penalty", [(1, 8), (3, 24), (4, 25)])
    def test_high_flag_penalty_capped(self, flags, penalty):
        risk_flags = [high_flag(str(i)) for i in range(flags)]

        result = evaluate_confidence(completeness(100), [make_income()], [], risk_flags, True)

        assert result.score == 100 - penalty
        assert result.drivers[0].code == "HIGH_RISK_FLAGS"

    def test_medium_flags_not_penalized(self):
        medium = RiskFlag(code="M", severity=ImpactLevel.MEDIUM, explanation="", suggested_fix="")

        result = evaluate_confidence(completeness(100), [make_income()], [], [medium], True)

        assert result.score == 100

    def test_clamped_at_zero(self):
        risk_flags = [high_flag(str(i)) for i in range(4)]

        result = evaluate_confidence(completeness(30), [], [make_transaction()], risk_flags, False)

        assert result.score == 0
        assert [d.code for d in result.drivers] == [
            "INCOME_CONFIRMATION_GAP",
            "UNCATEGORIZED_TRANSACTIONS",
            "STATE_RULESET_STALE",
            "HIGH_RISK_FLAGS",
        ]
