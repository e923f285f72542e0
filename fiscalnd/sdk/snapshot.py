"""Computation-input snapshots on disk.

A snapshot is one YAML (or JSON) document holding everything a compute run
needs except the rulesets, which are resolved separately by tax year:

    profile:
      user_id: demo
      tax_year: 2026
      filing_status: SINGLE
      resident_state: ND
    incomes:
      - {id: w2-1, type: W2, label: Employer, amount: 90000, is_confirmed: true}
    transactions: []
    estimated_payments: []
    deductions: []
    category_rules: [...]   # optional, defaults to the built-in rules
    user_overrides: []
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .categorization import DEFAULT_CATEGORY_RULES
from .rulesets.schemas import FederalRuleset, StateRuleset
from .schemas import (
    CategoryRule,
    DeductionItem,
    EstimatedPayment,
    IncomeSource,
    TaxProfile,
    Transaction,
    UserOverride,
)
from .tax.schemas import ComputationInput

logger = logging.getLogger(__name__)


class Snapshot(BaseModel):
    """Inputs for one user and tax year, without rulesets."""

    model_config = ConfigDict(extra="forbid")

    profile: TaxProfile
    incomes: List[IncomeSource] = Field(default_factory=list)
    estimated_payments: List[EstimatedPayment] = Field(default_factory=list)
    transactions: List[Transaction] = Field(default_factory=list)
    deductions: List[DeductionItem] = Field(default_factory=list)
    category_rules: Optional[List[CategoryRule]] = None
    user_overrides: List[UserOverride] = Field(default_factory=list)

    @property
    def effective_rules(self) -> List[CategoryRule]:
        """Snapshot rules, or the built-in defaults when the snapshot has none."""
        if self.category_rules is None:
            return list(DEFAULT_CATEGORY_RULES)
        return list(self.category_rules)

    def to_computation_input(self, federal_ruleset: FederalRuleset, state_ruleset: StateRuleset) -> ComputationInput:
        return ComputationInput(
            profile=self.profile,
            incomes=self.incomes,
            estimated_payments=self.estimated_payments,
            transactions=self.transactions,
            deductions=self.deductions,
            category_rules=self.effective_rules,
            user_overrides=self.user_overrides,
            federal_ruleset=federal_ruleset,
            state_ruleset=state_ruleset,
        )


def load_snapshot(path: Union[str, Path]) -> Snapshot:
    """Load and validate a snapshot file.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the document does not match the schema
    """
    snapshot_file = Path(path)
    if not snapshot_file.exists():
        raise FileNotFoundError(f"Snapshot not found: {snapshot_file}")

    logger.debug(f"loading snapshot {snapshot_file}")
    with open(snapshot_file, "r", encoding="utf-8") as f:
        # YAML is a superset of JSON, so one loader covers both.
        data = yaml.safe_load(f) or {}

    return Snapshot.model_validate(data)
