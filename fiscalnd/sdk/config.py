"""Configuration management for Fiscal ND.

Configuration lives in a single machine-specific file:

settings.json - Machine-specific settings
   - rulesets_dir: directory holding index.yaml and ruleset documents
   - ruleset_signing_secret: HMAC key used to verify ruleset signatures
   - supported_state: state code treated as in scope (default: ND)

Config directory resolution:
1. FISCAL_ND_CONFIG_PATH environment variable (if set)
2. ~/.config/fiscal-nd/ (XDG_CONFIG_HOME fallback)

Environment variables win over settings.json for the values that a
deployment injects:
- FISCAL_ND_RULESETS_DIR
- FISCAL_ND_RULESET_SIGNING_SECRET
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

APP_NAME = "fiscal-nd"
SETTINGS_FILENAME = "settings.json"

# Development key; deployments inject their own through the environment.
DEFAULT_SIGNING_SECRET = "local-dev-ruleset-secret"
DEFAULT_SUPPORTED_STATE = "ND"

SETTINGS_KEYS = ("rulesets_dir", "ruleset_signing_secret", "supported_state")


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. FISCAL_ND_CONFIG_PATH environment variable
    2. ~/.config/fiscal-nd/ (XDG_CONFIG_HOME)

    Returns:
        Path to the configuration directory
    """
    env_path = os.environ.get("FISCAL_ND_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load machine-specific settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save machine-specific settings to settings.json.

    Args:
        settings: Settings dictionary to save

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json."""
    settings = load_settings()
    return settings.get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json.

    Raises:
        KeyError: If the key is not a recognised setting
    """
    if key not in SETTINGS_KEYS:
        raise KeyError(f"Unknown setting '{key}'. Valid keys: {', '.join(SETTINGS_KEYS)}")

    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def unset_setting(key: str) -> bool:
    """Remove a setting from settings.json.

    Returns:
        True if the key was present and removed
    """
    settings = load_settings()
    if key not in settings:
        return False
    del settings[key]
    save_settings(settings)
    return True


def get_bundled_rulesets_dir() -> Path:
    """Get the rulesets directory shipped inside the package."""
    return Path(__file__).parent.parent / "rulesets"


def get_rulesets_dir() -> Path:
    """Get the directory holding index.yaml and ruleset documents.

    Resolution order:
    1. FISCAL_ND_RULESETS_DIR environment variable
    2. settings.json "rulesets_dir" key
    3. Bundled package rulesets
    """
    env_path = os.environ.get("FISCAL_ND_RULESETS_DIR")
    if env_path:
        return Path(env_path)

    custom_dir = get_setting("rulesets_dir")
    if custom_dir:
        return Path(custom_dir).expanduser()

    return get_bundled_rulesets_dir()


def get_signing_secret() -> str:
    """Get the HMAC key for ruleset signatures.

    Resolution order:
    1. FISCAL_ND_RULESET_SIGNING_SECRET environment variable
    2. settings.json "ruleset_signing_secret" key
    3. Development default
    """
    env_secret = os.environ.get("FISCAL_ND_RULESET_SIGNING_SECRET")
    if env_secret:
        return env_secret

    secret = get_setting("ruleset_signing_secret")
    if secret:
        return secret

    logger.debug("using development ruleset signing secret")
    return DEFAULT_SIGNING_SECRET


def get_supported_state() -> str:
    """Get the state code the scope evaluator treats as supported."""
    return str(get_setting("supported_state", DEFAULT_SUPPORTED_STATE)).upper()
