"""Ruleset CLI commands for Fiscal ND.

Lists, resolves, verifies and signs ruleset documents.
"""

import json
from pathlib import Path

import click
from pydantic import ValidationError

from fiscalnd.sdk.config import get_rulesets_dir, get_signing_secret
from fiscalnd.sdk.rulesets import (
    RulesetError,
    RulesetSignatureInvalid,
    inspect_ruleset,
    list_versions,
    load_federal,
    load_state,
    resolve_active,
    sign_document,
)

from .errors import to_click_exception


@click.group()
def rulesets():
    """Inspect and maintain versioned rulesets.

    Rulesets are read from the directory shown by 'fiscal-nd settings show'
    (FISCAL_ND_RULESETS_DIR overrides it).
    """
    pass


@rulesets.command("list")
def rulesets_list():
    """List every ruleset version in the index."""
    try:
        versions = list_versions()
    except FileNotFoundError as e:
        raise click.ClickException(str(e))

    click.echo(f"Rulesets directory: {get_rulesets_dir()}")
    click.echo()
    click.echo(f"{'ID':<16} {'JURISDICTION':<16} {'STATUS':<10} {'EFFECTIVE':<12} PATH")
    for entry in versions:
        click.echo(f"{entry.id:<16} {entry.jurisdiction:<16} {entry.status.value:<10} {entry.effective_from:<12} {entry.path}")


@rulesets.command("resolve")
@click.argument("year", type=int)
def rulesets_resolve(year):
    """Show the ruleset ids in effect for tax YEAR."""
    try:
        resolved = resolve_active(year)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))

    click.echo(f"Tax year: {resolved.tax_year}")
    click.echo(f"  federal: {resolved.federal_id}")
    click.echo(f"  state: {resolved.state_id}")
    click.echo(f"  local_sales_tax: {resolved.local_sales_tax_id or '-'}")


@rulesets.command("verify")
@click.argument("ruleset_id")
def rulesets_verify(ruleset_id):
    """Verify the signature, checksum and schema of RULESET_ID.

    Exits non-zero if the signature does not verify or the document is invalid.
    """
    try:
        report = inspect_ruleset(ruleset_id)
    except (RulesetError, FileNotFoundError) as e:
        raise to_click_exception(e)

    click.echo(f"{report['id']} ({report['jurisdiction']}, {report['status']})")
    click.echo(f"  signature: {'valid' if report['signature_valid'] else 'INVALID'}")
    click.echo(f"  checksum: {'valid' if report['checksum_valid'] else 'MISMATCH'}")

    if not report["signature_valid"]:
        raise to_click_exception(RulesetSignatureInvalid(ruleset_id))
    if report["jurisdiction"] not in ("federal", "state"):
        return

    loader = load_federal if report["jurisdiction"] == "federal" else load_state
    try:
        loader(ruleset_id)
    except (RulesetError, ValidationError) as e:
        raise to_click_exception(e)
    click.echo("  schema: valid")


@rulesets.command("sign")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--secret", envvar="FISCAL_ND_RULESET_SIGNING_SECRET", default=None,
              help="Signing secret (default: configured secret)")
def rulesets_sign(path, secret):
    """Refresh the checksum and signature of the ruleset document at PATH.

    The file is rewritten in place. Authors run this after editing a new
    ruleset version; published versions are never re-signed.
    """
    with open(path, "r", encoding="utf-8") as f:
        document = json.load(f)

    signed = sign_document(document, secret or get_signing_secret())

    with open(path, "w", encoding="utf-8") as f:
        json.dump(signed, f, indent=2, ensure_ascii=False)
        f.write("\n")

    click.echo(f"Signed {signed.get('id', path.name)}")
    click.echo(f"  checksum: {signed['checksum']}")
    click.echo(f"  signature: {signed['ruleset_signature']}")
