"""Built-in category rules and the deductible category whitelist."""

from typing import FrozenSet, List

from ..schemas import CategoryRule

DEFAULT_CATEGORY_RULES: List[CategoryRule] = [
    CategoryRule(
        code="OFFICE_SUPPLIES",
        vendor_pattern="amazon|staples|office depot",
        confidence_base=86,
        reason="Vendor pattern indicates office supplies.",
    ),
    CategoryRule(
        code="MEALS",
        vendor_pattern="doordash|ubereats|grubhub|restaurant|cafe",
        confidence_base=70,
        reason="Vendor pattern suggests meal expense.",
    ),
    CategoryRule(
        code="TRAVEL",
        vendor_pattern="delta|united|american airlines|hilton|marriott",
        confidence_base=84,
        reason="Merchant pattern suggests travel expense.",
    ),
    CategoryRule(
        code="SOFTWARE",
        keyword_pattern="subscription|saas|hosting|software|cloud",
        confidence_base=82,
        reason="Description indicates software or recurring SaaS expense.",
    ),
    CategoryRule(
        code="BANK_FEES",
        keyword_pattern="fee|service charge|overdraft",
        confidence_base=78,
        reason="Description indicates bank fee.",
    ),
    CategoryRule(
        code="GROSS_RECEIPTS",
        keyword_pattern="invoice|client payment|payout",
        confidence_base=75,
        reason="Description suggests revenue intake.",
    ),
]

# Expense categories that count toward business expenses.
DEDUCTIBLE_CATEGORIES: FrozenSet[str] = frozenset(
    {"OFFICE_SUPPLIES", "MEALS", "TRAVEL", "SOFTWARE", "BANK_FEES"}
)
