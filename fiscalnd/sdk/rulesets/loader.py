"""Ruleset loading and version resolution.

Rulesets are read from the rulesets directory (see config.get_rulesets_dir):

    rulesets/
        index.yaml          active pointers and every known version
        irs-2026.1.json     one immutable document per version
        nd-2026.2.json

Every load re-reads the document and re-verifies its signature. Nothing is
cached here; a caller that caches must only ever cache verified content.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..config import get_rulesets_dir, get_signing_secret
from .errors import RulesetNotFound
from .schemas import (
    FederalRuleset,
    ResolvedRulesets,
    RulesetIndex,
    RulesetIndexEntry,
    StateRuleset,
)
from .signing import compute_checksum, signature_matches, verify_document

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.yaml"


def _resolve_dir(rulesets_dir: Optional[Path]) -> Path:
    return Path(rulesets_dir) if rulesets_dir is not None else get_rulesets_dir()


def load_ruleset_index(rulesets_dir: Optional[Path] = None) -> RulesetIndex:
    """Load and validate index.yaml.

    Raises:
        FileNotFoundError: If the index does not exist
    """
    index_file = _resolve_dir(rulesets_dir) / INDEX_FILENAME
    if not index_file.exists():
        raise FileNotFoundError(f"Ruleset index not found: {index_file}")

    with open(index_file, "r") as f:
        return RulesetIndex.model_validate(yaml.safe_load(f) or {})


def _find_entry(index: RulesetIndex, version: str, jurisdiction: str) -> RulesetIndexEntry:
    entry = index.find(version)
    if entry is None:
        raise RulesetNotFound(f"{jurisdiction.capitalize()} ruleset {version} not found", ruleset_id=version)
    if entry.jurisdiction != jurisdiction:
        raise RulesetNotFound(
            f"Ruleset {version} is a {entry.jurisdiction} ruleset, not {jurisdiction}",
            ruleset_id=version,
        )
    return entry


def read_ruleset_document(entry: RulesetIndexEntry, rulesets_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Read the raw JSON document an index entry points at (unverified)."""
    document_path = _resolve_dir(rulesets_dir) / entry.path
    if not document_path.exists():
        raise RulesetNotFound(f"Ruleset file missing for {entry.id}: {document_path}", ruleset_id=entry.id)

    logger.debug(f"reading ruleset {entry.id} from {document_path}")
    with open(document_path, "r", encoding="utf-8") as f:
        return json.load(f)


def _load_verified(
    version: Optional[str],
    jurisdiction: str,
    rulesets_dir: Optional[Path],
    secret: Optional[str],
) -> Dict[str, Any]:
    index = load_ruleset_index(rulesets_dir)
    if version is None:
        version = index.active.federal if jurisdiction == "federal" else index.active.state

    entry = _find_entry(index, version, jurisdiction)
    document = read_ruleset_document(entry, rulesets_dir)
    verify_document(document, secret if secret is not None else get_signing_secret())
    if document.get("id") != version:
        raise RulesetNotFound(
            f"Ruleset file for {version} contains {document.get('id')}",
            ruleset_id=version,
        )
    return document


def load_federal(
    version: Optional[str] = None,
    rulesets_dir: Optional[Path] = None,
    secret: Optional[str] = None,
) -> FederalRuleset:
    """Load and verify a federal ruleset.

    Args:
        version: Ruleset id (e.g., 'IRS-2026.1'). None uses the global active pointer.
        rulesets_dir: Override for the rulesets directory
        secret: Override for the signing secret

    Raises:
        RulesetNotFound: Unknown version, wrong jurisdiction, or missing file
        RulesetSignatureInvalid: Signature does not verify
    """
    document = _load_verified(version, "federal", rulesets_dir, secret)
    return FederalRuleset.model_validate(document)


def load_state(
    version: Optional[str] = None,
    rulesets_dir: Optional[Path] = None,
    secret: Optional[str] = None,
) -> StateRuleset:
    """Load and verify a state ruleset. Same contract as load_federal."""
    document = _load_verified(version, "state", rulesets_dir, secret)
    return StateRuleset.model_validate(document)


def resolve_active(tax_year: int, rulesets_dir: Optional[Path] = None) -> ResolvedRulesets:
    """Resolve the ruleset ids in effect for a tax year.

    Looks up the per-year table first, falling back to the global active
    pointer when the year has no entry (or the entry omits local sales tax).
    """
    index = load_ruleset_index(rulesets_dir)
    year_entry = index.active_by_tax_year.get(int(tax_year))

    if year_entry is None:
        logger.debug(f"no per-year rulesets for {tax_year}, using global active pointer")
        return ResolvedRulesets(
            tax_year=tax_year,
            federal_id=index.active.federal,
            state_id=index.active.state,
            local_sales_tax_id=index.active.local_sales_tax,
        )

    return ResolvedRulesets(
        tax_year=tax_year,
        federal_id=year_entry.federal,
        state_id=year_entry.state,
        local_sales_tax_id=year_entry.local_sales_tax or index.active.local_sales_tax,
    )


def list_versions(rulesets_dir: Optional[Path] = None) -> List[RulesetIndexEntry]:
    """List every version in the index, in index order."""
    return list(load_ruleset_index(rulesets_dir).versions)


def inspect_ruleset(
    version: str,
    rulesets_dir: Optional[Path] = None,
    secret: Optional[str] = None,
) -> Dict[str, Any]:
    """Report signature and checksum health for a version without raising on mismatch.

    Returns:
        Dict with id, jurisdiction, path, status, signature_valid, checksum_valid
    """
    index = load_ruleset_index(rulesets_dir)
    entry = index.find(version)
    if entry is None:
        raise RulesetNotFound(f"Ruleset {version} not found", ruleset_id=version)

    document = read_ruleset_document(entry, rulesets_dir)
    secret = secret if secret is not None else get_signing_secret()

    return {
        "id": entry.id,
        "jurisdiction": entry.jurisdiction,
        "path": entry.path,
        "status": entry.status.value,
        "signature_valid": signature_matches(document, secret),
        "checksum_valid": document.get("checksum") == compute_checksum(document),
    }
