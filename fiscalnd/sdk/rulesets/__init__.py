"""rulesets - Versioned, signed jurisdiction rules.

Scope:
- Schemas for federal and state ruleset documents and the version index
- HMAC-SHA-256 signing and verification over the canonical payload
- Loading a version (always re-verified) and resolving the active versions
  for a tax year

Constraints:
- Documents are immutable; a rule change means a new id and a new file
- A signature mismatch is fatal and always raised, never logged and skipped

Usage:
    from fiscalnd.sdk.rulesets import resolve_active, load_federal, load_state

    active = resolve_active(2026)
    federal = load_federal(active.federal_id)
    state = load_state(active.state_id)
"""

from .errors import RulesetError, RulesetNotFound, RulesetSignatureInvalid

from .schemas import (
    FederalRuleset,
    StateRuleset,
    TaxBracket,
    SelfEmploymentTaxRules,
    RulesetIndex,
    RulesetIndexEntry,
    ResolvedRulesets,
)

from .signing import (
    canonical_bytes,
    compute_signature,
    compute_checksum,
    signature_matches,
    verify_document,
    sign_document,
)

from .loader import (
    load_ruleset_index,
    load_federal,
    load_state,
    resolve_active,
    list_versions,
    inspect_ruleset,
)

__all__ = [
    # Errors
    "RulesetError",
    "RulesetNotFound",
    "RulesetSignatureInvalid",
    # Schemas
    "FederalRuleset",
    "StateRuleset",
    "TaxBracket",
    "SelfEmploymentTaxRules",
    "RulesetIndex",
    "RulesetIndexEntry",
    "ResolvedRulesets",
    # Signing
    "canonical_bytes",
    "compute_signature",
    "compute_checksum",
    "signature_matches",
    "verify_document",
    "sign_document",
    # Loading
    "load_ruleset_index",
    "load_federal",
    "load_state",
    "resolve_active",
    "list_versions",
    "inspect_ruleset",
]
