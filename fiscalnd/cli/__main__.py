"""Fiscal ND CLI - Command-line interface for tax estimates."""

import json
import logging
import os
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console

from fiscalnd import __version__
from fiscalnd.sdk.categorization import categorize_all
from fiscalnd.sdk.config import get_supported_state
from fiscalnd.sdk.rulesets import RulesetError, load_federal, load_state, resolve_active
from fiscalnd.sdk.snapshot import load_snapshot
from fiscalnd.sdk.tax import compute_tax_estimate

from .errors import to_click_exception
from .renderers import render_categorization, render_estimate
from .rulesets_commands import rulesets as rulesets_group
from .settings_commands import settings as settings_group

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure the root logger from the LOG_LEVEL environment variable."""
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@click.group()
@click.version_option(version=__version__, prog_name="fiscal-nd")
def cli():
    """Fiscal ND - Federal and North Dakota tax estimates.

    Computes a scored, explained tax estimate from a snapshot of a user's
    profile, income, transactions and deductions, using signed rulesets.

    Configuration is loaded from (in order):

    \b
    1. FISCAL_ND_CONFIG_PATH environment variable
    2. ~/.config/fiscal-nd/settings.json (XDG default)

    Run 'fiscal-nd settings show' to see the effective configuration.
    """
    pass


# Add subcommand groups
cli.add_command(rulesets_group)
cli.add_command(settings_group)


def _load_snapshot_or_fail(snapshot_path: Path):
    try:
        return load_snapshot(snapshot_path)
    except ValidationError as e:
        raise to_click_exception(e)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))


@cli.command("compute")
@click.argument("snapshot_path", metavar="SNAPSHOT", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--federal", "federal_id", help="Federal ruleset id (default: active for the tax year)")
@click.option("--state", "state_id", help="State ruleset id (default: active for the tax year)")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table",
              help="Output format (default: table)")
def compute_cmd(snapshot_path, federal_id, state_id, output_format):
    """Compute a tax estimate for the inputs in SNAPSHOT.

    SNAPSHOT is a YAML or JSON file with profile, incomes, transactions,
    estimated_payments, deductions and (optionally) category_rules and
    user_overrides.

    Examples:
        fiscal-nd compute snapshot.yaml
        fiscal-nd compute snapshot.yaml --state ND-2026.2 --format json
    """
    snapshot = _load_snapshot_or_fail(snapshot_path)
    tax_year = snapshot.profile.tax_year

    try:
        resolved = resolve_active(tax_year)
        federal = load_federal(federal_id or resolved.federal_id)
        state = load_state(state_id or resolved.state_id)
    except (RulesetError, ValidationError) as e:
        raise to_click_exception(e)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))

    logger.debug(f"computing {snapshot.profile.user_id}/{tax_year} with {federal.id} and {state.id}")
    output = compute_tax_estimate(
        snapshot.to_computation_input(federal, state),
        supported_state=get_supported_state(),
    )

    if output_format == "json":
        click.echo(output.to_json(indent=2))
    else:
        render_estimate(Console(), output)


@cli.command("categorize")
@click.argument("snapshot_path", metavar="SNAPSHOT", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table",
              help="Output format (default: table)")
def categorize_cmd(snapshot_path, output_format):
    """Show the category suggested for every transaction in SNAPSHOT.

    Transactions that already carry a category are shown as kept.
    """
    snapshot = _load_snapshot_or_fail(snapshot_path)
    categorized = categorize_all(snapshot.transactions, snapshot.effective_rules, snapshot.user_overrides)

    if output_format == "json":
        click.echo(json.dumps([t.model_dump(mode="json") for t in categorized], indent=2))
    else:
        render_categorization(Console(), categorized)


def main():
    """Entry point for the CLI."""
    configure_logging()
    cli()


if __name__ == "__main__":
    main()
