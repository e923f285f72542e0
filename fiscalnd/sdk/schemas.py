"""Core schemas shared by rulesets, categorization and the tax engine.

Every status the engine can report is a closed set. Using str-valued enums
keeps them JSON friendly while letting pydantic reject anything outside the
set. Input records describe one user and one tax year; filtering is the
caller's job.
"""

import datetime as dt
from enum import Enum
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FilingStatus(str, Enum):
    SINGLE = "SINGLE"
    MARRIED_FILING_JOINTLY = "MARRIED_FILING_JOINTLY"
    MARRIED_FILING_SEPARATELY = "MARRIED_FILING_SEPARATELY"
    HEAD_OF_HOUSEHOLD = "HEAD_OF_HOUSEHOLD"
    QUALIFYING_SURVIVING_SPOUSE = "QUALIFYING_SURVIVING_SPOUSE"


class ImpactLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IncomeType(str, Enum):
    W2 = "W2"
    FORM_1099_MISC = "FORM_1099_MISC"
    FORM_1099_NEC = "FORM_1099_NEC"
    BUSINESS_GROSS = "BUSINESS_GROSS"
    OTHER_TAXABLE = "OTHER_TAXABLE"


class Direction(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class CategorySource(str, Enum):
    RULE = "RULE"
    HEURISTIC = "HEURISTIC"
    ML = "ML"
    USER = "USER"
    MANUAL = "MANUAL"


class PaymentKind(str, Enum):
    ESTIMATED_QUARTERLY = "ESTIMATED_QUARTERLY"
    EXTENSION = "EXTENSION"
    OTHER = "OTHER"


class ScopeStatus(str, Enum):
    IN_SCOPE = "IN_SCOPE"
    PARTIAL = "PARTIAL"
    OUT_OF_SCOPE = "OUT_OF_SCOPE"


class EstimateStatus(str, Enum):
    FULL = "FULL"
    PARTIAL = "PARTIAL"
    BLOCKED = "BLOCKED"


class FederalStatus(str, Enum):
    COMPUTED = "COMPUTED"
    BLOCKED_INPUT = "BLOCKED_INPUT"


class StateStatus(str, Enum):
    COMPUTED = "COMPUTED"
    BLOCKED_RULESET = "BLOCKED_RULESET"
    OUT_OF_SCOPE = "OUT_OF_SCOPE"


class RulesetStatus(str, Enum):
    VALIDATED = "validated"
    STALE = "stale"
    DRAFT = "draft"


# =============================================================================
# Input records - pre-filtered to one user and tax year by the caller
# =============================================================================


class TaxProfile(BaseModel):
    """One per (user, tax year). Filing status None means unknown."""

    model_config = ConfigDict(extra="forbid")

    user_id: str
    tax_year: int
    filing_status: Optional[FilingStatus] = None
    dependents_count: int = Field(default=0, ge=0)
    resident_state: str = Field(..., min_length=2, max_length=2, description="Two-letter state code")
    resident_city: Optional[str] = None
    resident_zip: Optional[str] = None
    county: Optional[str] = None
    is_full_year_resident: bool = True
    has_sales_tax_nexus: bool = False
    sales_tax_filing_frequency: Optional[Literal["MONTHLY", "QUARTERLY", "ANNUAL"]] = None
    standard_deduction_forced: Optional[bool] = None
    itemized_deduction_amount: Optional[float] = Field(default=None, ge=0)
    has_foreign_income: bool = False
    has_k1: bool = False
    has_advanced_investments: bool = False
    has_advanced_depreciation: bool = False

    @property
    def advanced_attributes(self) -> Dict[str, bool]:
        """Advanced attribute flags, keyed by field name."""
        return {
            "has_foreign_income": self.has_foreign_income,
            "has_k1": self.has_k1,
            "has_advanced_investments": self.has_advanced_investments,
            "has_advanced_depreciation": self.has_advanced_depreciation,
        }


class IncomeSource(BaseModel):
    """Annual income record (W-2, 1099, business gross). Not individually dated."""

    model_config = ConfigDict(extra="forbid")

    id: str
    type: IncomeType
    label: str
    amount: float
    payer_name: Optional[str] = None
    tax_withheld_federal: float = 0
    tax_withheld_state: float = 0
    tax_withheld_local: float = 0
    tax_withheld_medicare: float = 0
    tax_withheld_social_security: float = 0
    is_confirmed: bool = False


class EstimatedPayment(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    kind: PaymentKind
    quarter: Optional[int] = Field(default=None, ge=1, le=4)
    amount: float
    paid_at: dt.date


class Transaction(BaseModel):
    """Normalized bank/card transaction with an optional category assignment."""

    model_config = ConfigDict(extra="forbid")

    id: str
    date: dt.date
    amount: float = Field(..., description="Signed amount")
    merchant: Optional[str] = None
    description: str = ""
    direction: Direction
    category_code: Optional[str] = None
    category_confidence: Optional[float] = Field(default=None, ge=0, le=100)
    category_reason: Optional[str] = None
    category_source: Optional[CategorySource] = None
    is_reviewed: bool = False

    @property
    def is_categorized(self) -> bool:
        return bool(self.category_code)

    @property
    def match_text(self) -> str:
        """Merchant and description joined, used for pattern matching."""
        return f"{self.merchant or ''} {self.description}".strip()


class DeductionItem(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    code: str
    label: str
    amount: float = Field(..., ge=0)
    is_confirmed: bool = False


# =============================================================================
# Categorization directives and suggestions
# =============================================================================


class CategoryRule(BaseModel):
    """Generic pattern rule mapped to a category code."""

    model_config = ConfigDict(extra="forbid")

    code: str
    vendor_pattern: Optional[str] = None
    keyword_pattern: Optional[str] = None
    amount_min: Optional[float] = Field(default=None, description="Inclusive lower bound")
    amount_max: Optional[float] = Field(default=None, description="Inclusive upper bound")
    confidence_base: float
    reason: str


class UserOverride(BaseModel):
    """User-scoped rule. Always outranks generic rules."""

    model_config = ConfigDict(extra="forbid")

    vendor_pattern: Optional[str] = None
    keyword_pattern: Optional[str] = None
    category_override: str


class CategorySuggestion(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category_code: str
    confidence: float = Field(..., ge=0, le=100)
    reason: str
    source: CategorySource


class CategorizedTransaction(Transaction):
    """Transaction after the categorization pass, with the suggestion that filled it (if any)."""

    category_suggestion: Optional[CategorySuggestion] = None
