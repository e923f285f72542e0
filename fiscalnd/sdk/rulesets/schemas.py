"""Pydantic schemas for ruleset documents and the version index.

These schemas validate the rulesets/*.json documents and index.yaml, and
provide typed access to standard deductions, bracket tables and
self-employment tax parameters. Signature checks happen on the raw document
before it reaches these models (see signing.py).
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..schemas import FilingStatus, ImpactLevel, RulesetStatus


class TaxBracket(BaseModel):
    """Single bracket: [min, max) taxed at rate. max None means unbounded."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    min: float = Field(..., ge=0, description="Lower bound (inclusive)")
    max: Optional[float] = Field(default=None, description="Upper bound (exclusive), None if top bracket")
    rate: float = Field(..., ge=0, le=1, description="Marginal rate as decimal")


def _check_bracket_table(status: str, brackets: List[TaxBracket]) -> None:
    if not brackets:
        raise ValueError(f"{status}: bracket table is empty")

    for index, bracket in enumerate(brackets):
        is_last = index == len(brackets) - 1
        if bracket.max is None and not is_last:
            raise ValueError(f"{status}: only the last bracket may be unbounded")
        if bracket.max is not None and bracket.max <= bracket.min:
            raise ValueError(f"{status}: bracket {index} has max <= min")
        if index > 0 and bracket.min != brackets[index - 1].max:
            raise ValueError(
                f"{status}: bracket {index} starts at {bracket.min}, "
                f"expected {brackets[index - 1].max} (brackets must be contiguous)"
            )


def _check_bracket_tables(tables: Dict[FilingStatus, List[TaxBracket]]) -> Dict[FilingStatus, List[TaxBracket]]:
    missing = [s.value for s in FilingStatus if s not in tables]
    if missing:
        raise ValueError(f"bracket tables missing filing statuses: {', '.join(missing)}")
    for status, brackets in tables.items():
        _check_bracket_table(status.value, brackets)
    return tables


class RulesetSource(BaseModel):
    """Citation for the published rates a ruleset was built from."""

    model_config = ConfigDict(extra="forbid")

    name: str
    url: str


class SelfEmploymentTaxRules(BaseModel):
    """Schedule SE parameters."""

    model_config = ConfigDict(extra="forbid")

    net_earnings_factor: float = Field(..., gt=0, le=1, description="Share of net profit subject to SE tax")
    social_security_rate: float = Field(..., ge=0, le=1)
    medicare_rate: float = Field(..., ge=0, le=1)
    additional_medicare_rate: float = Field(..., ge=0, le=1)
    social_security_wage_base: float = Field(..., gt=0, description="SS wage base (max taxable)")
    additional_medicare_threshold: Dict[FilingStatus, float]

    @field_validator("additional_medicare_threshold")
    @classmethod
    def all_statuses_present(cls, value: Dict[FilingStatus, float]) -> Dict[FilingStatus, float]:
        missing = [s.value for s in FilingStatus if s not in value]
        if missing:
            raise ValueError(f"additional_medicare_threshold missing: {', '.join(missing)}")
        return value


class _RulesetBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, description="Version identifier (e.g., 'IRS-2026.1')")
    tax_year: int
    effective_from: str = Field(..., description="Effective date (YYYY-MM-DD)")
    status: RulesetStatus
    source: List[RulesetSource] = Field(default_factory=list)
    checksum: str
    ruleset_signature: str
    validated_at: str = Field(..., description="Validation timestamp (ISO 8601)")
    changelog: List[str] = Field(default_factory=list)


class FederalRuleset(_RulesetBase):
    """Federal rules for one tax year."""

    jurisdiction: Literal["federal"]
    standard_deduction: Dict[FilingStatus, float]
    brackets: Dict[FilingStatus, List[TaxBracket]]
    self_employment_tax: SelfEmploymentTaxRules
    supported_credits: List[str] = Field(default_factory=list)
    unsupported_credits: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)

    @field_validator("standard_deduction")
    @classmethod
    def deduction_for_every_status(cls, value: Dict[FilingStatus, float]) -> Dict[FilingStatus, float]:
        missing = [s.value for s in FilingStatus if s not in value]
        if missing:
            raise ValueError(f"standard_deduction missing: {', '.join(missing)}")
        return value

    @field_validator("brackets")
    @classmethod
    def brackets_well_formed(cls, value):
        return _check_bracket_tables(value)


class StalenessNotice(BaseModel):
    """Why a state ruleset can no longer be trusted, and what to do about it."""

    model_config = ConfigDict(extra="forbid")

    reason: str
    action: str


class FallbackPolicy(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: Literal["block", "zero-tax", "fallback"]
    impact: ImpactLevel


class StateRuleset(_RulesetBase):
    """State rules for one tax year. Brackets are required when computable."""

    jurisdiction: Literal["state"]
    state_code: str = Field(..., min_length=2, max_length=2)
    computable: bool
    brackets: Optional[Dict[FilingStatus, List[TaxBracket]]] = None
    staleness: Optional[StalenessNotice] = None
    fallback_policy: Optional[FallbackPolicy] = None

    @field_validator("brackets")
    @classmethod
    def brackets_well_formed(cls, value):
        if value is None:
            return value
        return _check_bracket_tables(value)

    @model_validator(mode="after")
    def computable_needs_brackets(self) -> "StateRuleset":
        if self.computable and self.brackets is None:
            raise ValueError(f"{self.id}: computable state ruleset must define brackets")
        return self


# =============================================================================
# Version index
# =============================================================================


class ActiveRulesets(BaseModel):
    """Pointer to the active ruleset ids."""

    model_config = ConfigDict(extra="forbid")

    federal: str
    state: str
    local_sales_tax: Optional[str] = None


class RulesetIndexEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    jurisdiction: Literal["federal", "state", "local_sales_tax"]
    path: str = Field(..., description="Document path relative to the rulesets directory")
    effective_from: str
    status: RulesetStatus
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    source_hash: Optional[str] = None
    validated_at: Optional[str] = None


class RulesetIndex(BaseModel):
    """index.yaml: active pointers plus every known version."""

    model_config = ConfigDict(extra="forbid")

    active: ActiveRulesets
    active_by_tax_year: Dict[int, ActiveRulesets] = Field(default_factory=dict)
    versions: List[RulesetIndexEntry] = Field(default_factory=list)

    def find(self, version: str) -> Optional[RulesetIndexEntry]:
        """Find an index entry by ruleset id."""
        for entry in self.versions:
            if entry.id == version:
                return entry
        return None


class ResolvedRulesets(BaseModel):
    """Ruleset ids in effect for a tax year."""

    model_config = ConfigDict(extra="forbid")

    tax_year: int
    federal_id: str
    state_id: str
    local_sales_tax_id: Optional[str] = None
