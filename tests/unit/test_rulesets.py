"""Tests for ruleset signing, loading and version resolution.

Signing and tamper tests work on a copy of the bundled rulesets directory
(FISCAL_ND_RULESETS_DIR), never on the package data itself.
"""

import copy
import json
import shutil

import pytest
import yaml
from pydantic import ValidationError

from fiscalnd.sdk.config import get_bundled_rulesets_dir
from fiscalnd.sdk.rulesets import (
    FederalRuleset,
    RulesetNotFound,
    RulesetSignatureInvalid,
    StateRuleset,
    compute_checksum,
    inspect_ruleset,
    list_versions,
    load_federal,
    load_ruleset_index,
    load_state,
    resolve_active,
    sign_document,
    signature_matches,
    verify_document,
)
from fiscalnd.sdk.schemas import FilingStatus, RulesetStatus

DEV_SECRET = "local-dev-ruleset-secret"


# === FIXTURES ===


@pytest.fixture
def rulesets_copy(tmp_path, monkeypatch):
    """Copy the bundled rulesets to tmp_path and point the SDK at the copy."""
    target = tmp_path / "rulesets"
    shutil.copytree(get_bundled_rulesets_dir(), target)
    monkeypatch.setenv("FISCAL_ND_RULESETS_DIR", str(target))
    return target


def read_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path, document):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2)


# === LOADING ===


class TestLoadBundled:
    """Bundled rulesets load and verify with the development secret."""

    def test_load_federal_by_id(self):
        federal = load_federal("IRS-2026.1")

        assert isinstance(federal, FederalRuleset)
        assert federal.tax_year == 2026
        assert federal.status == RulesetStatus.VALIDATED
        assert federal.standard_deduction[FilingStatus.SINGLE] == 16100
        assert federal.self_employment_tax.net_earnings_factor == 0.9235

    def test_load_state_defaults_to_active_pointer(self):
        state = load_state()

        assert isinstance(state, StateRuleset)
        assert state.id == "ND-2026.2"
        assert state.computable is True
        assert state.brackets[FilingStatus.SINGLE][1].rate == 0.0195

    def test_stale_state_is_not_computable(self):
        state = load_state("ND-2025.1")

        assert state.status == RulesetStatus.STALE
        assert state.computable is False
        assert state.staleness is not None
        assert "ND-2025.2" in state.staleness.action

    def test_repeated_loads_are_identical(self):
        assert load_federal("IRS-2026.1") == load_federal("IRS-2026.1")

    def test_bracket_tables_are_contiguous(self):
        federal = load_federal("IRS-2026.1")

        for status, brackets in federal.brackets.items():
            assert brackets[0].min == 0, status
            for lower, upper in zip(brackets, brackets[1:]):
                assert upper.min == lower.max, status
            assert brackets[-1].max is None, status


class TestLoadErrors:
    """Unknown ids, wrong jurisdictions and missing files."""

    def test_unknown_version_raises_not_found(self):
        with pytest.raises(RulesetNotFound) as exc_info:
            load_federal("IRS-1999.1")

        assert exc_info.value.ruleset_id == "IRS-1999.1"
        assert exc_info.value.code == "RULESET_NOT_FOUND"

    def test_state_id_as_federal_raises_not_found(self):
        with pytest.raises(RulesetNotFound):
            load_federal("ND-2026.2")

    def test_federal_id_as_state_raises_not_found(self):
        with pytest.raises(RulesetNotFound):
            load_state("IRS-2026.1")

    def test_missing_document_file_raises_not_found(self, rulesets_copy):
        (rulesets_copy / "nd-2026.2.json").unlink()

        with pytest.raises(RulesetNotFound):
            load_state("ND-2026.2")

    def test_entry_pointing_at_other_document_raises_not_found(self, rulesets_copy):
        index_path = rulesets_copy / "index.yaml"
        index = yaml.safe_load(index_path.read_text())
        for entry in index["versions"]:
            if entry["id"] == "ND-2026.2":
                entry["path"] = "nd-2025.1.json"
        index_path.write_text(yaml.safe_dump(index))

        with pytest.raises(RulesetNotFound) as exc_info:
            load_state("ND-2026.2")

        assert exc_info.value.ruleset_id == "ND-2026.2"

    def test_missing_index_raises_file_not_found(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FISCAL_ND_RULESETS_DIR", str(tmp_path / "empty"))

        with pytest.raises(FileNotFoundError):
            load_ruleset_index()

    def test_wrong_secret_raises_signature_invalid(self, monkeypatch):
        monkeypatch.setenv("FISCAL_ND_RULESET_SIGNING_SECRET", "some-other-secret")

        with pytest.raises(RulesetSignatureInvalid) as exc_info:
            load_federal("IRS-2026.1")

        assert "IRS-2026.1" in str(exc_info.value)
        assert exc_info.value.code == "RULESET_SIGNATURE_INVALID"


# === SIGNING ===


class TestSigning:
    """Signature round-trip and tamper detection."""

    def test_sign_then_verify(self):
        document = read_json(get_bundled_rulesets_dir() / "irs-2026.1.json")
        signed = sign_document(document, "another-secret")

        verify_document(signed, "another-secret")
        assert signature_matches(signed, "another-secret")
        assert not signature_matches(signed, DEV_SECRET)

    def test_sign_does_not_mutate_input(self):
        document = read_json(get_bundled_rulesets_dir() / "nd-2026.2.json")
        original = copy.deepcopy(document)

        sign_document(document, "another-secret")

        assert document == original

    def test_sign_refreshes_checksum(self):
        document = read_json(get_bundled_rulesets_dir() / "nd-2026.2.json")
        document["changelog"].append("local edit")

        signed = sign_document(document, DEV_SECRET)

        assert signed["checksum"] == compute_checksum(signed)
        assert signed["checksum"] != document["checksum"]

    def test_missing_signature_does_not_verify(self):
        document = read_json(get_bundled_rulesets_dir() / "irs-2026.1.json")
        del document["ruleset_signature"]

        assert not signature_matches(document, DEV_SECRET)
        with pytest.raises(RulesetSignatureInvalid):
            verify_document(document, DEV_SECRET)

    def test_tampered_payload_raises_on_load(self, rulesets_copy):
        path = rulesets_copy / "irs-2026.1.json"
        document = read_json(path)
        document["standard_deduction"]["SINGLE"] = 16101
        write_json(path, document)

        with pytest.raises(RulesetSignatureInvalid):
            load_federal("IRS-2026.1")

    def test_tampered_bracket_rate_raises_on_load(self, rulesets_copy):
        path = rulesets_copy / "nd-2026.2.json"
        document = read_json(path)
        document["brackets"]["SINGLE"][1]["rate"] = 0.0
        write_json(path, document)

        with pytest.raises(RulesetSignatureInvalid):
            load_state("ND-2026.2")

    def test_resigned_document_loads_again(self, rulesets_copy):
        path = rulesets_copy / "irs-2026.1.json"
        document = read_json(path)
        document["notes"] = ["Edited locally."]
        write_json(path, sign_document(document, DEV_SECRET))

        federal = load_federal("IRS-2026.1")

        assert federal.notes == ["Edited locally."]

    def test_reformatted_file_still_verifies(self, rulesets_copy):
        """Whitespace and key order on disk do not affect the canonical form."""
        path = rulesets_copy / "nd-2026.2.json"
        document = read_json(path)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(dict(reversed(list(document.items()))), f)

        assert load_state("ND-2026.2").id == "ND-2026.2"


class TestInspect:
    """inspect_ruleset reports health without raising on mismatch."""

    def test_bundled_ruleset_is_healthy(self):
        report = inspect_ruleset("ND-2026.2")

        assert report["signature_valid"] is True
        assert report["checksum_valid"] is True
        assert report["jurisdiction"] == "state"

    def test_tampered_ruleset_reported_invalid(self, rulesets_copy):
        path = rulesets_copy / "nd-2026.2.json"
        document = read_json(path)
        document["computable"] = False
        write_json(path, document)

        report = inspect_ruleset("ND-2026.2")

        assert report["signature_valid"] is False
        assert report["checksum_valid"] is False

    def test_index_source_hash_matches_checksum(self):
        for entry in list_versions():
            report = inspect_ruleset(entry.id)
            document = read_json(get_bundled_rulesets_dir() / entry.path)
            assert report["checksum_valid"], entry.id
            assert entry.source_hash == document["checksum"], entry.id


# === SCHEMA VALIDATION ===


class TestRulesetSchema:
    """Structural checks on ruleset documents."""

    def test_gap_between_brackets_rejected(self):
        document = read_json(get_bundled_rulesets_dir() / "irs-2026.1.json")
        document["brackets"]["SINGLE"][1]["min"] = 13000

        with pytest.raises(ValidationError, match="contiguous"):
            FederalRuleset.model_validate(document)

    def test_unbounded_middle_bracket_rejected(self):
        document = read_json(get_bundled_rulesets_dir() / "irs-2026.1.json")
        document["brackets"]["SINGLE"][2]["max"] = None

        with pytest.raises(ValidationError, match="unbounded"):
            FederalRuleset.model_validate(document)

    def test_missing_filing_status_rejected(self):
        document = read_json(get_bundled_rulesets_dir() / "irs-2026.1.json")
        del document["standard_deduction"]["HEAD_OF_HOUSEHOLD"]

        with pytest.raises(ValidationError, match="HEAD_OF_HOUSEHOLD"):
            FederalRuleset.model_validate(document)

    def test_computable_state_requires_brackets(self):
        document = read_json(get_bundled_rulesets_dir() / "nd-2026.2.json")
        del document["brackets"]

        with pytest.raises(ValidationError, match="brackets"):
            StateRuleset.model_validate(document)

    def test_unknown_field_rejected(self):
        document = read_json(get_bundled_rulesets_dir() / "nd-2026.2.json")
        document["surprise"] = True

        with pytest.raises(ValidationError):
            StateRuleset.model_validate(document)


# === RESOLUTION ===


class TestResolveActive:
    """Per-year table first, then the global active pointer."""

    def test_current_year(self):
        resolved = resolve_active(2026)

        assert resolved.federal_id == "IRS-2026.1"
        assert resolved.state_id == "ND-2026.2"
        assert resolved.local_sales_tax_id == "ND-LST-2026.1"

    def test_per_year_override(self):
        resolved = resolve_active(2025)

        assert resolved.state_id == "ND-2025.1"

    def test_year_entry_without_sales_tax_uses_global(self):
        assert resolve_active(2025).local_sales_tax_id == "ND-LST-2026.1"

    def test_unknown_year_falls_back_to_active(self):
        resolved = resolve_active(2031)

        assert resolved.tax_year == 2031
        assert resolved.federal_id == "IRS-2026.1"
        assert resolved.state_id == "ND-2026.2"

    def test_custom_index(self, rulesets_copy):
        index_path = rulesets_copy / "index.yaml"
        index = yaml.safe_load(index_path.read_text())
        index["active_by_tax_year"][2027] = {"federal": "IRS-2026.1", "state": "ND-2025.1"}
        index_path.write_text(yaml.safe_dump(index))

        assert resolve_active(2027).state_id == "ND-2025.1"

    def test_list_versions_in_index_order(self):
        ids = [entry.id for entry in list_versions()]

        assert ids == ["IRS-2026.1", "ND-2026.2", "ND-2025.1", "ND-LST-2026.1"]
