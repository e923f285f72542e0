"""categorization - Category suggestions for transactions.

Scope:
- Matcher interface over (text, amount) with vendor, keyword and amount-range kinds
- Priority evaluation: user overrides, then rules, then built-in heuristics
- Built-in default rules and the deductible category whitelist

Constraints:
- Overrides are never shadowed by generic rules
- Already-categorized transactions are never re-categorized

Usage:
    from fiscalnd.sdk.categorization import categorize, DEFAULT_CATEGORY_RULES

    suggestion = categorize(transaction, DEFAULT_CATEGORY_RULES, overrides)
"""

from .defaults import DEDUCTIBLE_CATEGORIES, DEFAULT_CATEGORY_RULES

from .engine import (
    AmountRangeMatcher,
    CompiledDirective,
    KeywordPatternMatcher,
    Matcher,
    VendorPatternMatcher,
    categorize,
    categorize_all,
    compile_override,
    compile_rule,
)

__all__ = [
    "DEDUCTIBLE_CATEGORIES",
    "DEFAULT_CATEGORY_RULES",
    "Matcher",
    "VendorPatternMatcher",
    "KeywordPatternMatcher",
    "AmountRangeMatcher",
    "CompiledDirective",
    "compile_override",
    "compile_rule",
    "categorize",
    "categorize_all",
]
