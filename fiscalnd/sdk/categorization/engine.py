"""Transaction categorization.

Priority order, first match wins:
1. User overrides (vendor or keyword pattern) - confidence 99, source USER
2. Category rules (pattern AND amount bounds) - rule's base confidence, source RULE
3. Meal keyword heuristic - confidence 58, source HEURISTIC
4. Income-direction default to GROSS_RECEIPTS - confidence 55, source HEURISTIC

Overrides are never shadowed by generic rules. Patterns are case-insensitive
regular expressions written by users, so an invalid one simply never matches.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

from ..money import clamp
from ..schemas import (
    CategorizedTransaction,
    CategoryRule,
    CategorySource,
    CategorySuggestion,
    Direction,
    Transaction,
    UserOverride,
)

logger = logging.getLogger(__name__)

OVERRIDE_CONFIDENCE = 99
MEAL_HEURISTIC_CONFIDENCE = 58
INCOME_DEFAULT_CONFIDENCE = 55

MEAL_KEYWORDS = ("meal", "lunch", "dinner")
INCOME_DEFAULT_CATEGORY = "GROSS_RECEIPTS"


@lru_cache(maxsize=512)
def _compile(pattern: str) -> Optional[re.Pattern]:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.warning(f"ignoring invalid category pattern {pattern!r}: {e}")
        return None


# =============================================================================
# Matchers
# =============================================================================


class Matcher(ABC):
    """Predicate over a transaction's match text and amount."""

    kind = "matcher"

    @abstractmethod
    def matches(self, text: str, amount: float) -> bool:
        ...


@dataclass(frozen=True)
class VendorPatternMatcher(Matcher):
    pattern: str
    kind = "vendor_pattern"

    def matches(self, text: str, amount: float) -> bool:
        compiled = _compile(self.pattern)
        return compiled is not None and compiled.search(text) is not None


@dataclass(frozen=True)
class KeywordPatternMatcher(Matcher):
    pattern: str
    kind = "keyword_pattern"

    def matches(self, text: str, amount: float) -> bool:
        compiled = _compile(self.pattern)
        return compiled is not None and compiled.search(text) is not None


@dataclass(frozen=True)
class AmountRangeMatcher(Matcher):
    """Inclusive bounds; None means unbounded on that side."""

    minimum: Optional[float] = None
    maximum: Optional[float] = None
    kind = "amount_range"

    def matches(self, text: str, amount: float) -> bool:
        if self.minimum is not None and amount < self.minimum:
            return False
        if self.maximum is not None and amount > self.maximum:
            return False
        return True


def _text_matchers(vendor_pattern: Optional[str], keyword_pattern: Optional[str]) -> Tuple[Matcher, ...]:
    matchers: List[Matcher] = []
    if vendor_pattern:
        matchers.append(VendorPatternMatcher(vendor_pattern))
    if keyword_pattern:
        matchers.append(KeywordPatternMatcher(keyword_pattern))
    return tuple(matchers)


@dataclass(frozen=True)
class CompiledDirective:
    """A rule or override reduced to matchers plus its payload.

    Matches when any text matcher matches AND the amount range matches.
    """

    text_matchers: Tuple[Matcher, ...]
    amount_range: AmountRangeMatcher
    suggestion: CategorySuggestion

    def matches(self, text: str, amount: float) -> bool:
        if not any(m.matches(text, amount) for m in self.text_matchers):
            return False
        return self.amount_range.matches(text, amount)


def compile_override(override: UserOverride) -> CompiledDirective:
    return CompiledDirective(
        text_matchers=_text_matchers(override.vendor_pattern, override.keyword_pattern),
        amount_range=AmountRangeMatcher(),
        suggestion=CategorySuggestion(
            category_code=override.category_override,
            confidence=OVERRIDE_CONFIDENCE,
            reason="Matched user override.",
            source=CategorySource.USER,
        ),
    )


def compile_rule(rule: CategoryRule) -> CompiledDirective:
    return CompiledDirective(
        text_matchers=_text_matchers(rule.vendor_pattern, rule.keyword_pattern),
        amount_range=AmountRangeMatcher(rule.amount_min, rule.amount_max),
        suggestion=CategorySuggestion(
            category_code=rule.code,
            confidence=clamp(rule.confidence_base, 0, 100),
            reason=rule.reason,
            source=CategorySource.RULE,
        ),
    )


# =============================================================================
# Categorization
# =============================================================================


def _heuristic(transaction: Transaction, text: str) -> Optional[CategorySuggestion]:
    lowered = text.lower()
    if any(keyword in lowered for keyword in MEAL_KEYWORDS):
        return CategorySuggestion(
            category_code="MEALS",
            confidence=MEAL_HEURISTIC_CONFIDENCE,
            reason="Keyword heuristic matched meal-related terms.",
            source=CategorySource.HEURISTIC,
        )

    if transaction.direction == Direction.INCOME:
        return CategorySuggestion(
            category_code=INCOME_DEFAULT_CATEGORY,
            confidence=INCOME_DEFAULT_CONFIDENCE,
            reason="Income transaction defaults to gross receipts when no better rule matches.",
            source=CategorySource.HEURISTIC,
        )

    return None


def categorize(
    transaction: Transaction,
    rules: Sequence[CategoryRule],
    overrides: Sequence[UserOverride],
) -> Optional[CategorySuggestion]:
    """Suggest a category for one transaction, or None if nothing applies.

    Args:
        transaction: Transaction to categorize (its current category is ignored)
        rules: Generic category rules, in priority order
        overrides: The user's overrides, in priority order

    Returns:
        CategorySuggestion from the first matching tier, or None
    """
    text = transaction.match_text
    amount = transaction.amount

    for override in overrides:
        directive = compile_override(override)
        if directive.matches(text, amount):
            return directive.suggestion

    for rule in rules:
        directive = compile_rule(rule)
        if directive.matches(text, amount):
            return directive.suggestion

    return _heuristic(transaction, text)


def categorize_all(
    transactions: Iterable[Transaction],
    rules: Sequence[CategoryRule],
    overrides: Sequence[UserOverride],
) -> List[CategorizedTransaction]:
    """Fill in categories for every uncategorized transaction.

    Already-categorized transactions pass through unchanged; explicit or
    manual categories are never overwritten. Inputs are not mutated.
    """
    categorized = []
    for transaction in transactions:
        data = transaction.model_dump(exclude={"category_suggestion"})
        if transaction.is_categorized:
            categorized.append(CategorizedTransaction(**data))
            continue

        suggestion = categorize(transaction, rules, overrides)
        if suggestion is None:
            logger.debug(f"{transaction.id}: no category suggestion")
            categorized.append(CategorizedTransaction(**data))
            continue

        logger.debug(
            f"{transaction.id}: {suggestion.category_code} via {suggestion.source.value} "
            f"({suggestion.confidence:g})"
        )
        data.update(
            category_code=suggestion.category_code,
            category_confidence=suggestion.confidence,
            category_reason=suggestion.reason,
            category_source=suggestion.source,
        )
        categorized.append(CategorizedTransaction(**data, category_suggestion=suggestion))

    return categorized
