"""Tests for the categorization engine.

Covers the priority contract (override > rule > meal heuristic > income
default), amount bounds, invalid patterns and categorize_all pass-through.
"""

import logging

import pytest

from builders import make_override, make_rule, make_transaction
from fiscalnd.sdk.categorization import (
    DEFAULT_CATEGORY_RULES,
    AmountRangeMatcher,
    KeywordPatternMatcher,
    Matcher,
    VendorPatternMatcher,
    categorize,
    categorize_all,
)
from fiscalnd.sdk.schemas import CategorySource


# === MATCHERS ===


class TestMatchers:
    """Matcher kinds evaluated in isolation."""

    def test_vendor_pattern_is_case_insensitive(self):
        assert VendorPatternMatcher("staples").matches("STAPLES #1234 Fargo", -20)

    def test_keyword_pattern_is_regex(self):
        matcher = KeywordPatternMatcher(r"invoice\s+#\d+")

        assert matcher.matches("Client invoice #42 paid", 500)
        assert not matcher.matches("Client invoice pending", 500)

    def test_invalid_pattern_never_matches(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert not VendorPatternMatcher("([unclosed").matches("([unclosed", -5)

        assert "invalid category pattern" in caplog.text

    @pytest.mark.parametrize("amount,expected", [
        (-100, False),
        (10, True),
        (50, True),
        (100, True),
        (100.01, False),
    ])
    def test_amount_range_bounds_are_inclusive(self, amount, expected):
        assert AmountRangeMatcher(10, 100).matches("", amount) is expected

    def test_amount_range_unbounded_sides(self):
        assert AmountRangeMatcher(None, 0).matches("", -1_000_000)
        assert AmountRangeMatcher(0, None).matches("", 1_000_000)
        assert AmountRangeMatcher().matches("", 0)

    def test_matcher_requires_matches(self):
        class Incomplete(Matcher):
            pass

        with pytest.raises(TypeError):
            Incomplete()


# === PRIORITY ===


class TestCategorizePriority:
    """First match wins: overrides, rules, meal heuristic, income default."""

    def test_override_beats_matching_rule(self):
        transaction = make_transaction(merchant="Amazon", description="desk chair", amount=-240)
        rules = [make_rule("OFFICE_SUPPLIES", vendor_pattern="amazon", confidence_base=86)]
        overrides = [make_override("TRAVEL", vendor_pattern="amazon")]

        suggestion = categorize(transaction, rules, overrides)

        assert suggestion.category_code == "TRAVEL"
        assert suggestion.confidence == 99
        assert suggestion.source == CategorySource.USER
        assert suggestion.reason == "Matched user override."

    def test_override_keyword_pattern(self):
        transaction = make_transaction(description="Quarterly retainer")
        overrides = [make_override("GROSS_RECEIPTS", keyword_pattern="retainer")]

        assert categorize(transaction, [], overrides).category_code == "GROSS_RECEIPTS"

    def test_first_matching_override_wins(self):
        transaction = make_transaction(merchant="Delta", description="flight")
        overrides = [
            make_override("TRAVEL", vendor_pattern="delta"),
            make_override("MEALS", keyword_pattern="flight"),
        ]

        assert categorize(transaction, [], overrides).category_code == "TRAVEL"

    def test_rule_match(self):
        transaction = make_transaction(merchant="Staples", amount=-35)

        suggestion = categorize(transaction, DEFAULT_CATEGORY_RULES, [])

        assert suggestion.category_code == "OFFICE_SUPPLIES"
        assert suggestion.confidence == 86
        assert suggestion.source == CategorySource.RULE
        assert suggestion.reason == "Vendor pattern indicates office supplies."

    def test_rule_outside_amount_bounds_skipped(self):
        transaction = make_transaction(merchant="Staples", amount=-3000)
        rules = [
            make_rule("OFFICE_SUPPLIES", vendor_pattern="staples", amount_min=-500, amount_max=0),
            make_rule("EQUIPMENT", vendor_pattern="staples"),
        ]

        assert categorize(transaction, rules, []).category_code == "EQUIPMENT"

    def test_rule_at_amount_bound_matches(self):
        transaction = make_transaction(merchant="Staples", amount=-500)
        rules = [make_rule("OFFICE_SUPPLIES", vendor_pattern="staples", amount_min=-500, amount_max=0)]

        assert categorize(transaction, rules, []).category_code == "OFFICE_SUPPLIES"

    def test_rule_confidence_clamped(self):
        transaction = make_transaction(merchant="Staples")

        high = categorize(transaction, [make_rule(vendor_pattern="staples", confidence_base=140)], [])
        low = categorize(transaction, [make_rule(vendor_pattern="staples", confidence_base=-5)], [])

        assert high.confidence == 100
        assert low.confidence == 0

    def test_rule_without_patterns_never_matches(self):
        transaction = make_transaction(merchant="Anything")

        assert categorize(transaction, [make_rule()], []) is None

    def test_invalid_rule_pattern_falls_through(self):
        transaction = make_transaction(merchant="Staples")
        rules = [
            make_rule("BROKEN", vendor_pattern="*staples"),
            make_rule("OFFICE_SUPPLIES", vendor_pattern="staples"),
        ]

        assert categorize(transaction, rules, []).category_code == "OFFICE_SUPPLIES"

    def test_meal_heuristic(self):
        transaction = make_transaction(merchant="Corner Bistro", description="Client lunch")

        suggestion = categorize(transaction, [], [])

        assert suggestion.category_code == "MEALS"
        assert suggestion.confidence == 58
        assert suggestion.source == CategorySource.HEURISTIC

    def test_income_default(self):
        transaction = make_transaction(description="Wire transfer", amount=2500, direction="INCOME")

        suggestion = categorize(transaction, [], [])

        assert suggestion.category_code == "GROSS_RECEIPTS"
        assert suggestion.confidence == 55
        assert suggestion.source == CategorySource.HEURISTIC

    def test_rule_beats_heuristics(self):
        transaction = make_transaction(merchant="DoorDash", description="team dinner")

        suggestion = categorize(transaction, DEFAULT_CATEGORY_RULES, [])

        assert suggestion.source == CategorySource.RULE
        assert suggestion.confidence == 70

    def test_no_match_returns_none(self):
        transaction = make_transaction(merchant="Hardware Hank", description="lumber")

        assert categorize(transaction, DEFAULT_CATEGORY_RULES, []) is None

    def test_match_text_joins_merchant_and_description(self):
        transaction = make_transaction(merchant=None, description="AWS hosting")

        assert categorize(transaction, DEFAULT_CATEGORY_RULES, []).category_code == "SOFTWARE"


# === BATCH ===


class TestCategorizeAll:
    """Batch categorization never overwrites existing categories."""

    def test_existing_category_kept(self):
        transaction = make_transaction(
            merchant="Amazon",
            category_code="EQUIPMENT",
            category_source="MANUAL",
            category_confidence=100,
        )
        overrides = [make_override("TRAVEL", vendor_pattern="amazon")]

        [result] = categorize_all([transaction], DEFAULT_CATEGORY_RULES, overrides)

        assert result.category_code == "EQUIPMENT"
        assert result.category_source == CategorySource.MANUAL
        assert result.category_suggestion is None

    def test_uncategorized_filled_with_suggestion(self):
        transaction = make_transaction(merchant="Marriott", amount=-189)

        [result] = categorize_all([transaction], DEFAULT_CATEGORY_RULES, [])

        assert result.category_code == "TRAVEL"
        assert result.category_confidence == 84
        assert result.category_source == CategorySource.RULE
        assert result.category_suggestion.category_code == "TRAVEL"

    def test_unmatched_stays_uncategorized(self):
        transaction = make_transaction(merchant="Hardware Hank")

        [result] = categorize_all([transaction], DEFAULT_CATEGORY_RULES, [])

        assert result.category_code is None
        assert not result.is_categorized

    def test_inputs_not_mutated_and_order_kept(self):
        transactions = [
            make_transaction("a", merchant="Staples"),
            make_transaction("b", merchant="Hardware Hank"),
            make_transaction("c", description="invoice 7", amount=900, direction="INCOME"),
        ]

        results = categorize_all(transactions, DEFAULT_CATEGORY_RULES, [])

        assert [r.id for r in results] == ["a", "b", "c"]
        assert [r.category_code for r in results] == ["OFFICE_SUPPLIES", None, "GROSS_RECEIPTS"]
        assert all(t.category_code is None for t in transactions)
