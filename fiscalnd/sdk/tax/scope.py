"""Scope evaluation - can this profile be computed automatically?

Rules are applied in order and later rules may override the status and the
recommended next step:

1. Residence outside the supported state  -> OUT_OF_SCOPE
2. Part-year residency                    -> PARTIAL (unless already OUT_OF_SCOPE)
3. Any advanced attribute                 -> OUT_OF_SCOPE, high-severity flag

Advanced attributes always win over a part-year downgrade.
"""

import logging

from ..schemas import ImpactLevel, ScopeStatus, TaxProfile
from .schemas import Assumption, RiskFlag, ScopeDecision, ScopeEvaluation

logger = logging.getLogger(__name__)

SUPPORTED_CASE = "SUPPORTED_CASE"
PART_YEAR_RESIDENCY = "PART_YEAR_RESIDENCY"
ADVANCED_TAX_ATTRIBUTES = "ADVANCED_TAX_ATTRIBUTES"
OUT_OF_SCOPE_CASE_DETECTED = "OUT_OF_SCOPE_CASE_DETECTED"

STATE_NAMES = {
    "ND": "North Dakota",
    "SD": "South Dakota",
    "MN": "Minnesota",
    "MT": "Montana",
}


def state_name(state_code: str) -> str:
    return STATE_NAMES.get(state_code.upper(), state_code.upper())


def non_resident_code(supported_state: str) -> str:
    """Reason code for a profile outside the supported state (e.g., NON_ND_RESIDENCY)."""
    return f"NON_{supported_state.upper()}_RESIDENCY"


def evaluate_scope(profile: TaxProfile, supported_state: str = "ND") -> ScopeEvaluation:
    """Decide whether a profile is in scope for automated computation.

    Pure: the same profile and supported state always give the same result.

    Args:
        profile: Tax profile to evaluate
        supported_state: Two-letter code of the one supported jurisdiction

    Returns:
        ScopeEvaluation with the decision, scope assumptions and scope flags
    """
    supported_state = supported_state.upper()
    reasons = []
    reason_codes = []
    assumptions = []
    flags = []
    status = ScopeStatus.IN_SCOPE
    next_step = "Proceed with the standard compute flow."

    if profile.resident_state.upper() != supported_state:
        status = ScopeStatus.OUT_OF_SCOPE
        reasons.append(f"Resident state is not {state_name(supported_state)}.")
        reason_codes.append(non_resident_code(supported_state))
        next_step = "Use a multi-state tax workflow or route the case to manual review."

    if not profile.is_full_year_resident:
        if status != ScopeStatus.OUT_OF_SCOPE:
            status = ScopeStatus.PARTIAL
        reasons.append("Part-year residency requires a more advanced state allocation module.")
        reason_codes.append(PART_YEAR_RESIDENCY)
        next_step = "Treat the output as partial and escalate to a state allocation workflow."
        assumptions.append(Assumption(
            code=f"FULL_YEAR_{supported_state}_ASSUMED_FALSE",
            description="Profile indicates part-year residency, which is only partially supported.",
            impact_level=ImpactLevel.HIGH,
            user_action_needed=True,
        ))

    advanced = profile.advanced_attributes
    if any(advanced.values()):
        status = ScopeStatus.OUT_OF_SCOPE
        reasons.append("Advanced tax attributes were detected.")
        reason_codes.append(ADVANCED_TAX_ATTRIBUTES)
        next_step = "Escalate to a CPA or to an advanced tax module before relying on the estimate."
        flags.append(RiskFlag(
            code=OUT_OF_SCOPE_CASE_DETECTED,
            severity=ImpactLevel.HIGH,
            explanation="The profile contains income or deduction types that are outside the supported surface.",
            suggested_fix="Escalate to a specialized module or manual preparer review.",
            evidence=dict(advanced),
        ))

    if not reasons:
        reasons.append("Profile falls within the supported scope.")
        reason_codes.append(SUPPORTED_CASE)

    logger.debug(f"scope for {profile.user_id}/{profile.tax_year}: {status.value} {reason_codes}")

    return ScopeEvaluation(
        scope=ScopeDecision(
            status=status,
            reasons=reasons,
            reason_codes=reason_codes,
            recommended_next_step=next_step,
        ),
        assumptions=assumptions,
        risk_flags=flags,
    )
