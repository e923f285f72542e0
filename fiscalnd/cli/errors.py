"""Translation of SDK faults into CLI errors with stable codes."""

import click
from pydantic import ValidationError

from fiscalnd.sdk.rulesets import RulesetError

VALIDATION_ERROR_CODE = "INVALID_DOCUMENT"


def to_click_exception(error: Exception) -> click.ClickException:
    """Wrap a RulesetError or ValidationError as a ClickException (exit status 1)."""
    if isinstance(error, RulesetError):
        return click.ClickException(f"{error.code}: {error}")
    if isinstance(error, ValidationError):
        return click.ClickException(f"{VALIDATION_ERROR_CODE}: {error}")
    return click.ClickException(str(error))
