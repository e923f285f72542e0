"""Fiscal ND SDK - Tax estimation engine, rulesets and configuration."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    unset_setting,
    get_rulesets_dir,
    get_signing_secret,
    get_supported_state,
)

from .schemas import (
    FilingStatus,
    ImpactLevel,
    IncomeType,
    Direction,
    CategorySource,
    PaymentKind,
    ScopeStatus,
    EstimateStatus,
    FederalStatus,
    StateStatus,
    RulesetStatus,
    TaxProfile,
    IncomeSource,
    EstimatedPayment,
    Transaction,
    DeductionItem,
    CategoryRule,
    UserOverride,
    CategorySuggestion,
    CategorizedTransaction,
)

from .rulesets import (
    RulesetError,
    RulesetNotFound,
    RulesetSignatureInvalid,
    FederalRuleset,
    StateRuleset,
    load_federal,
    load_state,
    resolve_active,
)

from .categorization import (
    DEFAULT_CATEGORY_RULES,
    categorize,
    categorize_all,
)

from .tax import (
    ComputationInput,
    ComputationOutput,
    compute,
    compute_tax_estimate,
)

from .snapshot import Snapshot, load_snapshot

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "unset_setting",
    "get_rulesets_dir",
    "get_signing_secret",
    "get_supported_state",
    # Schemas
    "FilingStatus",
    "ImpactLevel",
    "IncomeType",
    "Direction",
    "CategorySource",
    "PaymentKind",
    "ScopeStatus",
    "EstimateStatus",
    "FederalStatus",
    "StateStatus",
    "RulesetStatus",
    "TaxProfile",
    "IncomeSource",
    "EstimatedPayment",
    "Transaction",
    "DeductionItem",
    "CategoryRule",
    "UserOverride",
    "CategorySuggestion",
    "CategorizedTransaction",
    # Rulesets
    "RulesetError",
    "RulesetNotFound",
    "RulesetSignatureInvalid",
    "FederalRuleset",
    "StateRuleset",
    "load_federal",
    "load_state",
    "resolve_active",
    # Categorization
    "DEFAULT_CATEGORY_RULES",
    "categorize",
    "categorize_all",
    # Tax
    "ComputationInput",
    "ComputationOutput",
    "compute",
    "compute_tax_estimate",
    # Snapshots
    "Snapshot",
    "load_snapshot",
]
