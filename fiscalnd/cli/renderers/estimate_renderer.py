"""Rich renderer for tax estimates.

Transforms SDK ComputationOutput into formatted Rich tables.
"""

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fiscalnd.sdk.schemas import CategorizedTransaction
from fiscalnd.sdk.tax import ComputationOutput

STATUS_STYLES = {
    "FULL": "green",
    "PARTIAL": "yellow",
    "BLOCKED": "red",
    "COMPUTED": "green",
    "BLOCKED_INPUT": "red",
    "BLOCKED_RULESET": "red",
    "OUT_OF_SCOPE": "yellow",
}

SEVERITY_STYLES = {"high": "red", "medium": "yellow", "low": "dim"}


def _fmt(value: Optional[float]) -> str:
    if value is None:
        return "[dim]-[/dim]"
    return f"${value:,.2f}"


def _status(value: str) -> str:
    style = STATUS_STYLES.get(value, "white")
    return f"[{style}]{value}[/{style}]"


def render_estimate(console: Console, output: ComputationOutput) -> None:
    """Render a computation output as Rich tables.

    Args:
        console: Rich Console instance
        output: Result of compute()
    """
    if output.estimate_watermark:
        style = "red" if output.estimate_status.value == "BLOCKED" else "yellow"
        console.print(Panel(
            f"[{style}]{output.estimate_watermark}[/{style}]",
            title="Estimate status",
            border_style=style,
        ))

    _render_status(console, output)
    _render_breakdown(console, output)
    _render_scores(console, output)
    _render_findings(console, output)
    _render_payment_plan(console, output)


def _render_status(console: Console, output: ComputationOutput) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("key", style="dim")
    table.add_column("value")

    table.add_row("Estimate", _status(output.estimate_status.value))
    table.add_row("Scope", output.scope.status.value)
    table.add_row("Federal", _status(output.federal.status.value))
    table.add_row("State", _status(output.state.status.value))
    if output.state.reason:
        table.add_row("", f"[dim]{output.state.reason}[/dim]")
    table.add_row("Rulesets", f"{output.rulesets.federal_version} / {output.rulesets.state_version}")

    console.print(Panel(table, title="Summary", border_style="dim"))


def _render_breakdown(console: Console, output: ComputationOutput) -> None:
    b = output.breakdown

    table = Table(title="Tax Breakdown", box=box.ROUNDED)
    table.add_column("", style="bold", min_width=32)
    table.add_column("Amount", justify="right", min_width=14)

    table.add_row("[bold]INCOME[/bold]", "")
    table.add_row("  Gross income", _fmt(b.gross_income))
    table.add_row("  Business expenses", _fmt(b.business_expenses))
    table.add_row("  SE tax deduction", _fmt(b.self_employment_tax_deduction))
    table.add_row("  Deduction used", _fmt(b.deduction_used))
    table.add_row("  Taxable income (federal)", _fmt(b.taxable_income_federal))
    table.add_row("", "")

    table.add_row("[bold]TAX[/bold]", "")
    table.add_row("  Federal tax", _fmt(output.federal.tax))
    table.add_row("    incl. self-employment tax", _fmt(b.self_employment_tax))
    table.add_row("  State tax", _fmt(b.state_tax))
    table.add_row("  Total tax", _fmt(b.total_tax))
    table.add_row("", "")

    table.add_row("[bold]PAYMENTS[/bold]", "")
    table.add_row("  Federal withholding", _fmt(b.federal_withholding))
    table.add_row("  State withholding", _fmt(b.state_withholding))
    table.add_row("  Estimated payments", _fmt(b.estimated_payments))
    table.add_row("", "")

    table.add_row("[bold]BALANCE DUE[/bold]", "")
    table.add_row("  Federal", _fmt(b.federal_balance_due))
    table.add_row("  State", _fmt(b.state_balance_due))
    table.add_row("  Total", f"[bold]{_fmt(b.total_balance_due)}[/bold]")
    table.add_row("  Monthly set-aside", _fmt(b.monthly_set_aside_recommendation))
    table.add_row("  Quarterly payment", _fmt(b.quarterly_estimated_payment_recommendation))

    console.print(table)


def _render_scores(console: Console, output: ComputationOutput) -> None:
    table = Table(title="Scores", box=box.SIMPLE)
    table.add_column("Score")
    table.add_column("Value", justify="right")
    table.add_column("Notes")

    missing = ", ".join(item.code for item in output.completeness.missing_items) or "-"
    table.add_row("Completeness", str(output.completeness.score), missing)
    drivers = ", ".join(f"{d.code} ({d.impact:+d})" for d in output.confidence.drivers)
    table.add_row("Confidence", str(output.confidence.score), drivers)

    console.print(table)


def _render_findings(console: Console, output: ComputationOutput) -> None:
    if output.risk_flags:
        table = Table(title="Risk Flags", box=box.SIMPLE)
        table.add_column("Code")
        table.add_column("Severity")
        table.add_column("Suggested fix")
        for flag in output.risk_flags:
            style = SEVERITY_STYLES.get(flag.severity.value, "white")
            table.add_row(flag.code, f"[{style}]{flag.severity.value}[/{style}]", flag.suggested_fix)
        console.print(table)

    if output.assumptions:
        table = Table(title="Assumptions", box=box.SIMPLE)
        table.add_column("Code")
        table.add_column("Impact")
        table.add_column("Description")
        for assumption in output.assumptions:
            action = " [bold](action needed)[/bold]" if assumption.user_action_needed else ""
            table.add_row(assumption.code, assumption.impact_level.value, assumption.description + action)
        console.print(table)


def _render_payment_plan(console: Console, output: ComputationOutput) -> None:
    if not output.estimated_payment_plan:
        return

    table = Table(title="Estimated Payment Plan", box=box.SIMPLE)
    table.add_column("Due date")
    table.add_column("Amount", justify="right")
    for installment in output.estimated_payment_plan:
        table.add_row(installment.due_date, _fmt(installment.amount))
    console.print(table)


def render_categorization(console: Console, transactions: Sequence[CategorizedTransaction]) -> None:
    """Render the category assigned to every transaction and where it came from."""
    table = Table(title="Transaction Categories", box=box.ROUNDED)
    table.add_column("ID")
    table.add_column("Date")
    table.add_column("Amount", justify="right")
    table.add_column("Merchant / description")
    table.add_column("Category")
    table.add_column("Conf.", justify="right")
    table.add_column("Source")
    table.add_column("Reason", style="dim")

    for t in transactions:
        text = t.match_text or "-"
        if t.category_code:
            confidence = f"{t.category_confidence:g}" if t.category_confidence is not None else "-"
            source = t.category_source.value if t.category_source else "-"
            category = t.category_code if t.category_suggestion else f"{t.category_code} [dim](kept)[/dim]"
            table.add_row(t.id, t.date.isoformat(), _fmt(t.amount), text, category, confidence, source,
                          t.category_reason or "")
        else:
            table.add_row(t.id, t.date.isoformat(), _fmt(t.amount), text, "[red]uncategorized[/red]",
                          "-", "-", "")

    console.print(table)
