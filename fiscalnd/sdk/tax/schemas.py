"""Pydantic schemas for tax computation inputs and outputs.

ComputationOutput is the in-memory result of one run. It is not persisted
here; callers attach a run id and store or transmit it. Every monetary field
is already rounded to cents.
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..rulesets.schemas import FederalRuleset, StateRuleset
from ..schemas import (
    CategorizedTransaction,
    CategoryRule,
    DeductionItem,
    EstimatedPayment,
    EstimateStatus,
    FederalStatus,
    ImpactLevel,
    IncomeSource,
    ScopeStatus,
    StateStatus,
    TaxProfile,
    Transaction,
    UserOverride,
)


class _Output(BaseModel):
    model_config = ConfigDict(extra="forbid")


# =============================================================================
# Findings
# =============================================================================


class Assumption(_Output):
    """A default or inference the engine made in place of explicit input."""

    code: str
    description: str
    impact_level: ImpactLevel
    user_action_needed: bool


class RiskFlag(_Output):
    code: str
    severity: ImpactLevel
    explanation: str
    suggested_fix: str
    evidence: Optional[Dict[str, Any]] = None


class MissingItem(_Output):
    code: str
    description: str
    action: str
    impact: ImpactLevel


class GapItem(_Output):
    code: str
    description: str
    month: Optional[int] = Field(default=None, ge=1, le=12)


class Driver(_Output):
    """One confidence adjustment. Impact is signed (penalties are negative)."""

    code: str
    impact: int
    reason: str


# =============================================================================
# Scorer results
# =============================================================================


class ScopeDecision(_Output):
    status: ScopeStatus
    reasons: List[str]
    reason_codes: List[str]
    recommended_next_step: str


class ScopeEvaluation(_Output):
    """Scope decision plus the assumptions and flags it contributes to a run."""

    scope: ScopeDecision
    assumptions: List[Assumption] = Field(default_factory=list)
    risk_flags: List[RiskFlag] = Field(default_factory=list)


class CompletenessResult(_Output):
    score: int = Field(..., ge=0, le=100)
    missing_items: List[MissingItem] = Field(default_factory=list)
    gaps: List[GapItem] = Field(default_factory=list)
    actions: List[str] = Field(default_factory=list)


class ConfidenceResult(_Output):
    score: int = Field(..., ge=0, le=100)
    drivers: List[Driver] = Field(default_factory=list)


# =============================================================================
# Jurisdiction results and breakdown
# =============================================================================


class FederalComputation(_Output):
    status: FederalStatus
    tax: Optional[float] = None
    reason_code: Optional[str] = None
    reason: Optional[str] = None
    taxable_income: Optional[float] = None
    withholdings: Optional[float] = None
    effective_rate: Optional[float] = None


class StateComputation(_Output):
    status: StateStatus
    tax: Optional[float] = None
    reason_code: Optional[str] = None
    reason: Optional[str] = None
    taxable_income: Optional[float] = None
    withholdings: Optional[float] = None
    effective_rate: Optional[float] = None


class SelfEmploymentTaxDetails(_Output):
    total: float
    deductible_half: float = Field(..., description="Half of Social Security + Medicare portions")
    social_security_portion: float
    medicare_portion: float
    additional_medicare_portion: float


class EstimateRange(_Output):
    low: float
    high: float


class TaxBreakdown(_Output):
    """Monetary figures for one run, all rounded to cents."""

    federal_tax: float
    state_tax: Optional[float] = None
    total_tax: Optional[float] = None
    taxable_income_federal: float
    taxable_income_state: Optional[float] = None
    gross_income: float
    business_expenses: float
    deduction_used: float
    federal_withholding: float
    state_withholding: float
    estimated_payments: float
    federal_balance_due: float
    state_balance_due: Optional[float] = None
    total_balance_due: Optional[float] = None
    monthly_set_aside_recommendation: float
    quarterly_estimated_payment_recommendation: float
    self_employment_tax: float
    self_employment_tax_deduction: float
    self_employment_tax_details: Optional[SelfEmploymentTaxDetails] = None
    self_employment_tax_estimate_range: Optional[EstimateRange] = None


class PaymentInstallment(_Output):
    due_date: str = Field(..., description="Due date (YYYY-MM-DD)")
    amount: float


class RulesetVersions(_Output):
    federal_version: str
    state_version: str


# =============================================================================
# Explanation graph
# =============================================================================


class ExplanationNode(_Output):
    node_id: str
    label: str
    formula: str
    inputs: Dict[str, Any] = Field(default_factory=dict)
    outputs: Dict[str, Any] = Field(default_factory=dict)
    children: List[str] = Field(default_factory=list, description="Child node ids")
    transaction_refs: List[str] = Field(default_factory=list)


class ExplanationGraph(_Output):
    """Arena of nodes keyed by id, rooted at root_id."""

    root_id: str
    nodes: Dict[str, ExplanationNode]

    @property
    def root(self) -> ExplanationNode:
        return self.nodes[self.root_id]

    def children_of(self, node_id: str) -> List[ExplanationNode]:
        return [self.nodes[child_id] for child_id in self.nodes[node_id].children]

    def find(self, label: str) -> Optional[ExplanationNode]:
        """First node with the given label, in insertion order."""
        for node in self.nodes.values():
            if node.label == label:
                return node
        return None


# =============================================================================
# Run input and output
# =============================================================================


class ComputationInput(BaseModel):
    """Everything one compute run needs, pre-filtered to one user and tax year."""

    model_config = ConfigDict(extra="forbid")

    profile: TaxProfile
    incomes: List[IncomeSource] = Field(default_factory=list)
    estimated_payments: List[EstimatedPayment] = Field(default_factory=list)
    transactions: List[Transaction] = Field(default_factory=list)
    deductions: List[DeductionItem] = Field(default_factory=list)
    category_rules: List[CategoryRule] = Field(default_factory=list)
    user_overrides: List[UserOverride] = Field(default_factory=list)
    federal_ruleset: FederalRuleset
    state_ruleset: StateRuleset


class ComputationOutput(_Output):
    """Result of one compute run.

    If estimate_status is BLOCKED, total_tax and total_balance_due must be
    treated as unavailable even when a number is present.
    """

    scope: ScopeDecision
    out_of_scope_reasons: List[str]
    estimate_status: EstimateStatus
    estimate_watermark: Optional[str] = None
    federal: FederalComputation
    state: StateComputation
    breakdown: TaxBreakdown
    explanation: ExplanationGraph
    assumptions: List[Assumption]
    completeness: CompletenessResult
    confidence: ConfidenceResult
    risk_flags: List[RiskFlag]
    estimated_payment_plan: List[PaymentInstallment]
    categorized_transactions: List[CategorizedTransaction]
    rulesets: RulesetVersions

    def risk_flag(self, code: str) -> Optional[RiskFlag]:
        for flag in self.risk_flags:
            if flag.code == code:
                return flag
        return None

    def has_assumption(self, code: str) -> bool:
        return any(assumption.code == code for assumption in self.assumptions)

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialise with sorted keys; identical runs give identical text."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True, indent=indent)
