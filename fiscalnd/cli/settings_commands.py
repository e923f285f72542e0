"""Settings CLI commands for Fiscal ND.

Manages settings.json - rulesets directory, signing secret, supported state.
"""

import click

from fiscalnd.sdk.config import (
    SETTINGS_KEYS,
    get_rulesets_dir,
    get_settings_path,
    get_supported_state,
    load_settings,
    set_setting,
    unset_setting,
)


def _mask(key: str, value) -> str:
    if key == "ruleset_signing_secret" and value:
        return "********"
    return str(value)


@click.group()
def settings():
    """Manage settings (settings.json).

    \b
    Available settings:
    - rulesets_dir: directory holding index.yaml and ruleset documents
    - ruleset_signing_secret: HMAC key for ruleset signatures
    - supported_state: state code treated as in scope (default: ND)
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and their effective values."""
    settings_path = get_settings_path()
    current = load_settings()

    click.echo(f"Settings file: {settings_path}")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    if not current:
        click.echo("No settings configured (using defaults).")
    else:
        click.echo("Current settings:")
        for key, value in current.items():
            click.echo(f"  {key}: {_mask(key, value)}")

    click.echo()
    click.echo("Effective values:")
    click.echo(f"  rulesets_dir: {get_rulesets_dir()}")
    click.echo(f"  supported_state: {get_supported_state()}")


@settings.command("set")
@click.argument("key", type=click.Choice(SETTINGS_KEYS))
@click.argument("value")
def settings_set(key, value):
    """Set a setting.

    Examples:
        fiscal-nd settings set rulesets_dir ~/rulesets
        fiscal-nd settings set supported_state ND
    """
    if key == "supported_state":
        value = value.upper()
        if len(value) != 2 or not value.isalpha():
            raise click.BadParameter(f"Invalid state code '{value}'. Must be two letters.")

    path = set_setting(key, value)
    click.echo(f"Set {key}: {_mask(key, value)}")
    click.echo(f"Saved to: {path}")


@settings.command("unset")
@click.argument("key", type=click.Choice(SETTINGS_KEYS))
def settings_unset(key):
    """Remove a setting, reverting it to the default."""
    if unset_setting(key):
        click.echo(f"Cleared {key} setting.")
    else:
        click.echo(f"{key} was not set.")
