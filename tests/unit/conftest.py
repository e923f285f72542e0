"""Shared fixtures for Fiscal ND unit tests.

Every test runs against an isolated config directory (FISCAL_ND_CONFIG_PATH)
with deployment overrides cleared, so the bundled rulesets verify with the
development signing secret.
"""

import pytest

from fiscalnd.sdk.rulesets import load_federal, load_state


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point the SDK at an empty config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    monkeypatch.setenv("FISCAL_ND_CONFIG_PATH", str(config_dir))
    monkeypatch.delenv("FISCAL_ND_RULESETS_DIR", raising=False)
    monkeypatch.delenv("FISCAL_ND_RULESET_SIGNING_SECRET", raising=False)

    return {"config_dir": config_dir}


@pytest.fixture
def federal_ruleset():
    return load_federal("IRS-2026.1")


@pytest.fixture
def state_ruleset():
    return load_state("ND-2026.2")


@pytest.fixture
def stale_state_ruleset():
    return load_state("ND-2025.1")
