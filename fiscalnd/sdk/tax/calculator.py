"""Tax estimate orchestration.

compute() runs the whole pipeline over one fixed snapshot of inputs:

    categorize -> scope + completeness -> business expenses -> gross income
    -> self-employment tax -> deduction choice -> federal taxable income + tax
    -> state tax -> assumptions + risk flags -> confidence
    -> balances + payment plan -> explanation graph -> estimate status

It does no I/O and reads no clock, so identical inputs give identical
output. Missing filing status, a stale state ruleset and out-of-scope
profiles come back as status values, never as exceptions.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..categorization import DEDUCTIBLE_CATEGORIES, categorize_all
from ..money import round_currency
from ..rulesets.schemas import FederalRuleset, SelfEmploymentTaxRules, StateRuleset, TaxBracket
from ..schemas import (
    CategorizedTransaction,
    CategoryRule,
    DeductionItem,
    Direction,
    EstimatedPayment,
    EstimateStatus,
    FederalStatus,
    FilingStatus,
    ImpactLevel,
    IncomeSource,
    IncomeType,
    ScopeStatus,
    StateStatus,
    TaxProfile,
    Transaction,
    UserOverride,
)
from .completeness import evaluate_completeness
from .confidence import evaluate_confidence
from .explanation import ExplanationBuilder
from .findings import Findings
from .risk_flags import build_risk_flags
from .schemas import (
    Assumption,
    ComputationInput,
    ComputationOutput,
    EstimateRange,
    ExplanationGraph,
    FederalComputation,
    PaymentInstallment,
    RiskFlag,
    RulesetVersions,
    SelfEmploymentTaxDetails,
    StateComputation,
    TaxBreakdown,
)
from .scope import SUPPORTED_CASE, evaluate_scope, state_name

logger = logging.getLogger(__name__)

SELF_EMPLOYMENT_INCOME_TYPES = (IncomeType.FORM_1099_NEC, IncomeType.BUSINESS_GROSS)

# Fallback SE range when no exact figure exists: +/-5% around net * 0.9235 * 0.153
SE_RANGE_SPREAD = 0.05

UNDERWITHHOLDING_FLOOR_MEDIUM = 1000
UNDERWITHHOLDING_FLOOR_HIGH = 2500
UNDERWITHHOLDING_SHARE_MEDIUM = 0.05
UNDERWITHHOLDING_SHARE_HIGH = 0.10

# (month, day, year offset) for the four estimated-payment installments
INSTALLMENT_DUE_DATES = ((4, 15, 0), (6, 15, 0), (9, 15, 0), (1, 15, 1))


# =============================================================================
# Bracket math
# =============================================================================


def compute_bracket_tax(taxable_income: float, brackets: Sequence[TaxBracket]) -> float:
    """Progressive tax over ascending brackets, rounded to cents once at the end.

    Example (10% to 10k, 20% above):
        compute_bracket_tax(15000, brackets) -> 1000 + 1000 = 2000.00
    """
    total = 0.0
    for bracket in brackets:
        if taxable_income <= bracket.min:
            continue
        upper = bracket.max if bracket.max is not None else taxable_income
        amount = min(taxable_income, upper) - bracket.min
        if amount > 0:
            total += amount * bracket.rate
    return round_currency(total)


def is_deductible_expense(transaction: Transaction) -> bool:
    return (
        transaction.direction == Direction.EXPENSE
        and (transaction.category_code or "") in DEDUCTIBLE_CATEGORIES
    )


# =============================================================================
# Self-employment tax
# =============================================================================


@dataclass(frozen=True)
class SelfEmploymentResult:
    has_self_employment_income: bool
    net_earnings: float
    taxable_earnings: float
    details: Optional[SelfEmploymentTaxDetails]
    deduction: float
    estimate_range: Optional[EstimateRange]

    @property
    def total(self) -> float:
        return self.details.total if self.details else 0.0


def estimate_self_employment_range(net_earnings: float, rules: SelfEmploymentTaxRules) -> Optional[EstimateRange]:
    """Rough SE tax range for when no exact computation ran."""
    if net_earnings <= 0:
        return None

    rate = rules.social_security_rate + rules.medicare_rate
    baseline = round_currency(net_earnings * rules.net_earnings_factor * rate)
    return EstimateRange(
        low=round_currency(baseline * (1 - SE_RANGE_SPREAD)),
        high=round_currency(baseline * (1 + SE_RANGE_SPREAD)),
    )


def compute_self_employment_tax(
    filing_status: Optional[FilingStatus],
    gross_income: float,
    business_expenses: float,
    incomes: Sequence[IncomeSource],
    rules: SelfEmploymentTaxRules,
) -> SelfEmploymentResult:
    """Schedule SE style computation.

    Social Security is capped at the wage base net of W-2 wages; Additional
    Medicare starts at the filing-status threshold net of W-2 wages. Only the
    Social Security and Medicare portions are halved for the deduction.
    """
    has_income = any(income.type in SELF_EMPLOYMENT_INCOME_TYPES for income in incomes)
    if not has_income:
        return SelfEmploymentResult(False, 0.0, 0.0, None, 0.0, None)

    net_earnings = round_currency(max(0.0, gross_income - business_expenses))

    if filing_status is None:
        # No exact figure without a filing status; surface a range only.
        return SelfEmploymentResult(
            True, net_earnings, 0.0, None, 0.0,
            estimate_self_employment_range(net_earnings, rules),
        )

    if net_earnings <= 0:
        return SelfEmploymentResult(True, net_earnings, 0.0, None, 0.0, EstimateRange(low=0, high=0))

    taxable_earnings = round_currency(net_earnings * rules.net_earnings_factor)
    w2_wages = round_currency(sum(i.amount for i in incomes if i.type == IncomeType.W2))

    remaining_ss_base = max(0.0, rules.social_security_wage_base - w2_wages)
    social_security = round_currency(min(taxable_earnings, remaining_ss_base) * rules.social_security_rate)
    medicare = round_currency(taxable_earnings * rules.medicare_rate)

    remaining_threshold = max(0.0, rules.additional_medicare_threshold[filing_status] - w2_wages)
    additional_medicare = round_currency(
        max(0.0, taxable_earnings - remaining_threshold) * rules.additional_medicare_rate
    )

    total = round_currency(social_security + medicare + additional_medicare)
    deductible_half = round_currency((social_security + medicare) / 2)

    details = SelfEmploymentTaxDetails(
        total=total,
        deductible_half=deductible_half,
        social_security_portion=social_security,
        medicare_portion=medicare,
        additional_medicare_portion=additional_medicare,
    )
    return SelfEmploymentResult(
        True, net_earnings, taxable_earnings, details, deductible_half,
        EstimateRange(low=total, high=total),
    )


# =============================================================================
# Deduction choice
# =============================================================================


@dataclass(frozen=True)
class DeductionChoice:
    amount: float
    label: str
    assumption: Optional[Assumption] = None


def select_deduction(
    filing_status: Optional[FilingStatus],
    standard_deduction_forced: Optional[bool],
    itemized_amount: Optional[float],
    standard_deduction: float,
) -> DeductionChoice:
    """Pick standard or itemized.

    Standard wins when forced, when no itemized amount is given, or when the
    itemized amount does not exceed it.
    """
    if filing_status is None:
        return DeductionChoice(0.0, "No deduction selected due to missing filing status")

    if standard_deduction_forced is True or not itemized_amount or itemized_amount <= standard_deduction:
        return DeductionChoice(
            standard_deduction,
            "Standard deduction",
            Assumption(
                code="STANDARD_DEDUCTION_APPLIED",
                description="The engine applied the standard deduction because itemized deductions were absent or lower.",
                impact_level=ImpactLevel.MEDIUM,
                user_action_needed=False,
            ),
        )

    return DeductionChoice(itemized_amount, "Itemized deduction")


# =============================================================================
# Jurisdiction records
# =============================================================================


def _effective_rate(tax: float, gross_income: float) -> Optional[float]:
    return round_currency(tax / gross_income) if gross_income > 0 else None


def _state_computation(
    state_ruleset: StateRuleset,
    filing_status: Optional[FilingStatus],
    scope_status: ScopeStatus,
    taxable_income: float,
    gross_income: float,
) -> StateComputation:
    if state_ruleset.computable and filing_status is not None:
        tax = compute_bracket_tax(taxable_income, state_ruleset.brackets[filing_status])
        return StateComputation(
            status=StateStatus.COMPUTED,
            tax=tax,
            taxable_income=taxable_income,
            effective_rate=_effective_rate(tax, gross_income),
        )

    status = StateStatus.OUT_OF_SCOPE if scope_status == ScopeStatus.OUT_OF_SCOPE else StateStatus.BLOCKED_RULESET
    if not state_ruleset.computable:
        reason_code = "STATE_RULESET_STALE"
        reason = state_ruleset.staleness.reason if state_ruleset.staleness else "State ruleset is not computable."
    else:
        reason_code = "MISSING_FILING_STATUS"
        reason = "State income tax requires a filing status."
    return StateComputation(status=status, reason_code=reason_code, reason=reason)


# =============================================================================
# Payments
# =============================================================================


def build_payment_plan(tax_year: int, annual_amount: float) -> List[PaymentInstallment]:
    """Four equal installments due Apr 15, Jun 15, Sep 15 and Jan 15 of the next year."""
    if annual_amount <= 0:
        return []

    installment = round_currency(annual_amount / 4)
    return [
        PaymentInstallment(
            due_date=dt.date(tax_year + offset, month, day).isoformat(),
            amount=installment,
        )
        for month, day, offset in INSTALLMENT_DUE_DATES
    ]


def _underwithholding_flag(
    federal_balance_due: float,
    gross_income: float,
    federal_withholding: float,
    estimated_payments: float,
) -> Optional[RiskFlag]:
    if federal_balance_due <= max(UNDERWITHHOLDING_FLOOR_MEDIUM, gross_income * UNDERWITHHOLDING_SHARE_MEDIUM):
        return None

    high = federal_balance_due > max(UNDERWITHHOLDING_FLOOR_HIGH, gross_income * UNDERWITHHOLDING_SHARE_HIGH)
    return RiskFlag(
        code="UNDERWITHHOLDING_RISK",
        severity=ImpactLevel.HIGH if high else ImpactLevel.MEDIUM,
        explanation="Current withholding and estimated payments may be too low relative to the projected federal liability.",
        suggested_fix="Increase withholding or make estimated payments during the year.",
        evidence={
            "federal_balance_due": federal_balance_due,
            "federal_withholding": federal_withholding,
            "estimated_payments_total": estimated_payments,
        },
    )


# =============================================================================
# Explanation
# =============================================================================


def _build_explanation(
    breakdown: TaxBreakdown,
    transactions: Sequence[CategorizedTransaction],
    income_count: int,
    deduction_label: str,
    state: StateComputation,
    state_code: str,
) -> ExplanationGraph:
    income_refs = [t.id for t in transactions if t.direction == Direction.INCOME]
    expense_refs = [t.id for t in transactions if is_deductible_expense(t)]

    builder = ExplanationBuilder()
    income = builder.add(
        "Income aggregation",
        "sum(income source amounts)",
        inputs={"income_sources": income_count, "income_transactions": len(income_refs)},
        outputs={"gross_income": breakdown.gross_income},
        transaction_refs=income_refs,
    )
    expenses = builder.add(
        "Business deductions",
        "sum(deductible expense transactions) + confirmed deduction items",
        inputs={"deduction_strategy": deduction_label},
        outputs={"business_expenses": breakdown.business_expenses},
        transaction_refs=expense_refs,
    )
    federal = builder.add(
        "Federal taxable income",
        "gross income - business expenses - SE tax deduction - selected deduction",
        inputs={
            "gross_income": breakdown.gross_income,
            "business_expenses": breakdown.business_expenses,
            "self_employment_tax_deduction": breakdown.self_employment_tax_deduction,
            "deduction_used": breakdown.deduction_used,
        },
        outputs={
            "taxable_income_federal": breakdown.taxable_income_federal,
            "federal_tax": breakdown.federal_tax,
        },
    )
    state_node = builder.add(
        f"{state_name(state_code)} tax",
        "apply state ruleset brackets" if state.tax is not None else "state computation blocked",
        inputs={"taxable_income_state": breakdown.taxable_income_state, "state_status": state.status.value},
        outputs={"state_tax": state.tax},
    )
    self_employment = builder.add(
        "Self-employment tax",
        "Schedule SE style computation" if breakdown.self_employment_tax > 0 else "no self-employment tax",
        inputs={"self_employment_tax_deduction": breakdown.self_employment_tax_deduction},
        outputs={"self_employment_tax": breakdown.self_employment_tax},
    )
    root = builder.add(
        "Tax estimate",
        "federal tax + state tax",
        inputs={
            "gross_income": breakdown.gross_income,
            "business_expenses": breakdown.business_expenses,
            "deduction_used": breakdown.deduction_used,
        },
        outputs={
            "federal_tax": breakdown.federal_tax,
            "state_tax": breakdown.state_tax,
            "total_tax": breakdown.total_tax,
        },
        children=[income, expenses, federal, state_node, self_employment],
    )
    return builder.build(root)


# =============================================================================
# Orchestration
# =============================================================================


def compute(
    profile: TaxProfile,
    incomes: Sequence[IncomeSource],
    estimated_payments: Sequence[EstimatedPayment],
    transactions: Sequence[Transaction],
    deductions: Sequence[DeductionItem],
    rules: Sequence[CategoryRule],
    overrides: Sequence[UserOverride],
    federal_ruleset: FederalRuleset,
    state_ruleset: StateRuleset,
    supported_state: Optional[str] = None,
) -> ComputationOutput:
    """Compute a scored, explained federal and state tax estimate.

    Args:
        profile: The user's tax profile for the year
        incomes: Annual income records
        estimated_payments: Payments already made toward the year
        transactions: Bank/card transactions (uncategorized ones get categorized)
        deductions: Stand-alone deduction items (only confirmed ones count)
        rules: Generic category rules
        overrides: The user's category overrides
        federal_ruleset: Verified federal ruleset
        state_ruleset: Verified state ruleset
        supported_state: State treated as in scope (default: the state ruleset's state)

    Returns:
        ComputationOutput. Blocked and partial cases are reported in its
        status fields.
    """
    supported_state = (supported_state or state_ruleset.state_code).upper()
    filing_status = profile.filing_status
    findings = Findings()

    categorized = categorize_all(transactions, rules, overrides)

    scope_evaluation = evaluate_scope(profile, supported_state)
    scope = scope_evaluation.scope
    completeness = evaluate_completeness(profile, incomes, categorized)

    deductible_total = sum(abs(t.amount) for t in categorized if is_deductible_expense(t))
    confirmed_deductions = sum(d.amount for d in deductions if d.is_confirmed)
    business_expenses = round_currency(deductible_total + confirmed_deductions)

    gross_income = round_currency(sum(income.amount for income in incomes))

    standard_deduction = federal_ruleset.standard_deduction[filing_status] if filing_status is not None else 0.0
    self_employment = compute_self_employment_tax(
        filing_status, gross_income, business_expenses, incomes, federal_ruleset.self_employment_tax,
    )
    deduction = select_deduction(
        filing_status,
        profile.standard_deduction_forced,
        profile.itemized_deduction_amount,
        standard_deduction,
    )
    logger.debug(f"deduction: {deduction.label} ({deduction.amount})")

    adjusted_gross_income = round_currency(max(0.0, gross_income - business_expenses - self_employment.deduction))
    taxable_income = round_currency(max(0.0, adjusted_gross_income - deduction.amount))

    federal_income_tax = (
        compute_bracket_tax(taxable_income, federal_ruleset.brackets[filing_status]) if filing_status is not None else 0.0
    )
    federal_tax = round_currency(federal_income_tax + self_employment.total)

    state = _state_computation(state_ruleset, filing_status, scope.status, taxable_income, gross_income)
    state_tax = state.tax

    # Assumptions and figure-independent flags
    findings.extend(scope_evaluation.assumptions, scope_evaluation.risk_flags)
    if deduction.assumption:
        findings.assume(deduction.assumption)
    if state_ruleset.computable and profile.resident_state.upper() == state_ruleset.state_code.upper():
        findings.assume(Assumption(
            code=f"{state_ruleset.state_code.upper()}_{state_ruleset.tax_year}_RATE_SCHEDULE_APPLIED",
            description=(
                f"{state_name(state_ruleset.state_code)} {state_ruleset.tax_year} state tax uses the "
                f"{state_ruleset.id} rate schedule. State additions, subtractions and credits are not modeled."
            ),
            impact_level=ImpactLevel.MEDIUM,
            user_action_needed=False,
        ))
    findings.extend(risk_flags=build_risk_flags(scope, incomes, categorized, state_ruleset))

    if self_employment.has_self_employment_income and self_employment.total > 0:
        findings.flag(RiskFlag(
            code="ESTIMATED_PAYMENTS_RECOMMENDED",
            severity=ImpactLevel.MEDIUM,
            explanation="Self-employment income usually requires quarterly estimated payments to avoid underpayment surprises.",
            suggested_fix="Use the quarterly payment recommendation and record estimated payments as they are made.",
        ))

    # Balances
    federal_withholding = round_currency(sum(i.tax_withheld_federal for i in incomes))
    state_withholding = round_currency(sum(i.tax_withheld_state for i in incomes))
    payments_total = round_currency(sum(p.amount for p in estimated_payments))

    federal_balance_due = round_currency(federal_tax - federal_withholding - payments_total)
    state_balance_due = None if state_tax is None else round_currency(state_tax - state_withholding)
    total_balance_due = None if state_balance_due is None else round_currency(federal_balance_due + state_balance_due)
    planning_balance = max(0.0, total_balance_due if total_balance_due is not None else federal_balance_due)

    underwithholding = _underwithholding_flag(federal_balance_due, gross_income, federal_withholding, payments_total)
    if underwithholding:
        findings.flag(underwithholding)

    assumptions, risk_flags = findings.freeze()
    confidence = evaluate_confidence(completeness, incomes, categorized, risk_flags, state_ruleset.computable)

    if filing_status is None:
        federal = FederalComputation(
            status=FederalStatus.BLOCKED_INPUT,
            reason_code="MISSING_FILING_STATUS",
            reason="Federal income tax requires a filing status.",
            withholdings=federal_withholding,
        )
    else:
        federal = FederalComputation(
            status=FederalStatus.COMPUTED,
            tax=federal_tax,
            taxable_income=taxable_income,
            withholdings=federal_withholding,
            effective_rate=_effective_rate(federal_tax, gross_income),
        )
    state = state.model_copy(update={"withholdings": state_withholding})

    breakdown = TaxBreakdown(
        federal_tax=federal_tax,
        state_tax=state_tax,
        total_tax=None if state_tax is None else round_currency(federal_tax + state_tax),
        taxable_income_federal=taxable_income,
        taxable_income_state=None if state_tax is None else taxable_income,
        gross_income=gross_income,
        business_expenses=business_expenses,
        deduction_used=deduction.amount,
        federal_withholding=federal_withholding,
        state_withholding=state_withholding,
        estimated_payments=payments_total,
        federal_balance_due=federal_balance_due,
        state_balance_due=state_balance_due,
        total_balance_due=total_balance_due,
        monthly_set_aside_recommendation=round_currency(planning_balance / 12),
        quarterly_estimated_payment_recommendation=round_currency(planning_balance / 4),
        self_employment_tax=self_employment.total,
        self_employment_tax_deduction=self_employment.deduction,
        self_employment_tax_details=self_employment.details,
        self_employment_tax_estimate_range=self_employment.estimate_range,
    )

    if federal.status != FederalStatus.COMPUTED or state.status == StateStatus.BLOCKED_RULESET:
        estimate_status = EstimateStatus.BLOCKED
    elif scope.status == ScopeStatus.IN_SCOPE:
        estimate_status = EstimateStatus.FULL
    else:
        estimate_status = EstimateStatus.PARTIAL

    watermark = None
    if estimate_status == EstimateStatus.BLOCKED:
        blocked = federal if federal.status != FederalStatus.COMPUTED else state
        watermark = f"Blocked estimate. {blocked.reason} {scope.recommended_next_step}"
    elif estimate_status == EstimateStatus.PARTIAL:
        watermark = f"Partial estimate only. {scope.recommended_next_step}"

    logger.debug(
        f"{profile.user_id}/{profile.tax_year}: estimate {estimate_status.value}, "
        f"federal {federal.status.value}, state {state.status.value}"
    )

    return ComputationOutput(
        scope=scope,
        out_of_scope_reasons=[code for code in scope.reason_codes if code != SUPPORTED_CASE],
        estimate_status=estimate_status,
        estimate_watermark=watermark,
        federal=federal,
        state=state,
        breakdown=breakdown,
        explanation=_build_explanation(
            breakdown, categorized, len(incomes), deduction.label, state, state_ruleset.state_code,
        ),
        assumptions=assumptions,
        completeness=completeness,
        confidence=confidence,
        risk_flags=risk_flags,
        estimated_payment_plan=build_payment_plan(profile.tax_year, planning_balance),
        categorized_transactions=categorized,
        rulesets=RulesetVersions(
            federal_version=federal_ruleset.id,
            state_version=state_ruleset.id,
        ),
    )


def compute_tax_estimate(computation_input: ComputationInput, supported_state: Optional[str] = None) -> ComputationOutput:
    """compute() over a ComputationInput bundle."""
    return compute(
        profile=computation_input.profile,
        incomes=computation_input.incomes,
        estimated_payments=computation_input.estimated_payments,
        transactions=computation_input.transactions,
        deductions=computation_input.deductions,
        rules=computation_input.category_rules,
        overrides=computation_input.user_overrides,
        federal_ruleset=computation_input.federal_ruleset,
        state_ruleset=computation_input.state_ruleset,
        supported_state=supported_state,
    )
