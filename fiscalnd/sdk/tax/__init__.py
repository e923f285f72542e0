"""tax - Tax estimation, scoring and explanation.

Scope:
- Scope evaluation, completeness and confidence scoring, risk flags
- Federal bracket tax, self-employment tax, deduction choice, state tax
- Balances due, set-aside recommendations and the estimated-payment plan
- An explanation graph documenting how each figure was derived

Constraints:
- Pure: no I/O, no clock, no randomness; identical inputs give identical output
- Rulesets arrive already loaded and verified (see fiscalnd.sdk.rulesets)
- Blocked and partial estimates are status values, not exceptions

Usage:
    from fiscalnd.sdk.tax import compute_tax_estimate, ComputationInput

    output = compute_tax_estimate(ComputationInput(...))
    print(output.estimate_status, output.breakdown.total_tax)
"""

from .schemas import (
    Assumption,
    CompletenessResult,
    ComputationInput,
    ComputationOutput,
    ConfidenceResult,
    Driver,
    EstimateRange,
    ExplanationGraph,
    ExplanationNode,
    FederalComputation,
    GapItem,
    MissingItem,
    PaymentInstallment,
    RiskFlag,
    RulesetVersions,
    ScopeDecision,
    ScopeEvaluation,
    SelfEmploymentTaxDetails,
    StateComputation,
    TaxBreakdown,
)

from .scope import evaluate_scope
from .completeness import evaluate_completeness
from .confidence import evaluate_confidence
from .risk_flags import build_risk_flags
from .explanation import ExplanationBuilder, ExplanationGraphError, validate_graph
from .findings import Findings

from .calculator import (
    build_payment_plan,
    compute,
    compute_bracket_tax,
    compute_self_employment_tax,
    compute_tax_estimate,
    select_deduction,
)

__all__ = [
    # Schemas
    "Assumption",
    "CompletenessResult",
    "ComputationInput",
    "ComputationOutput",
    "ConfidenceResult",
    "Driver",
    "EstimateRange",
    "ExplanationGraph",
    "ExplanationNode",
    "FederalComputation",
    "GapItem",
    "MissingItem",
    "PaymentInstallment",
    "RiskFlag",
    "RulesetVersions",
    "ScopeDecision",
    "ScopeEvaluation",
    "SelfEmploymentTaxDetails",
    "StateComputation",
    "TaxBreakdown",
    # Stages
    "evaluate_scope",
    "evaluate_completeness",
    "evaluate_confidence",
    "build_risk_flags",
    "ExplanationBuilder",
    "ExplanationGraphError",
    "validate_graph",
    "Findings",
    # Calculator
    "build_payment_plan",
    "compute",
    "compute_bracket_tax",
    "compute_self_employment_tax",
    "compute_tax_estimate",
    "select_deduction",
]
