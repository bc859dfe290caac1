"""
WealthPilot CLI — command-line interface.

Usage:
    wealthpilot analyze 42 --profiles profiles/
    wealthpilot plan 42 --profiles profiles/ --output plan.md
    wealthpilot scenario 42 --surplus 1500
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from wealthpilot import __version__
from wealthpilot.coordination.constants import format_gbp
from wealthpilot.errors import WealthPilotError
from wealthpilot.models.recommendation import Timeline

app = typer.Typer(
    name="wealthpilot",
    help="🧭 WealthPilot — cross-module financial plan coordination",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

SEVERITY_COLORS = {"critical": "red", "high": "yellow", "medium": "blue", "low": "green"}


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]WealthPilot[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """🧭 WealthPilot — Protection, savings, investment, retirement and estate in one plan."""


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _build_pilot(config: str, profiles: Optional[str]):  # noqa: ANN202
    from wealthpilot.pilot import WealthPilot

    overrides = {}
    if profiles:
        overrides["connector"] = {"type": "yaml", "options": {"directory": profiles}}
    config_path = config if Path(config).exists() else None
    return WealthPilot.from_config(config_path, **overrides)


def _run(coro):  # noqa: ANN001, ANN202
    try:
        return asyncio.run(coro)
    except WealthPilotError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


PROFILES_OPTION = typer.Option(None, "--profiles", "-p", help="Directory of <user_id>.yaml|.json profiles")
CONFIG_OPTION = typer.Option("wealthpilot.yaml", "--config", "-c", help="Path to config file")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Show debug logging")


@app.command()
def analyze(
    user_id: str = typer.Argument(..., help="User to analyse"),
    profiles: Optional[str] = PROFILES_OPTION,
    config: str = CONFIG_OPTION,
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Save the analysis as JSON"),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Run the coordinated cross-module analysis."""
    _configure_logging(verbose)
    console.print(Panel.fit(
        "[bold blue]🧭 WealthPilot[/bold blue] — Coordinated Analysis",
        subtitle=f"v{__version__}",
    ))

    pilot = _build_pilot(config, profiles)
    with console.status("[bold green]Analysing modules...[/bold green]"):
        analysis = _run(pilot.analyze(user_id))

    summary = analysis.summary
    table = Table(title=f"Analysis Summary — User {analysis.user_id}", show_lines=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Recommendations", str(summary.total_recommendations))
    table.add_row("Conflicts", str(summary.conflicts_identified))
    table.add_row("Monthly Demand", format_gbp(summary.total_monthly_demand))
    table.add_row("Monthly Surplus", format_gbp(summary.cashflow_surplus))
    table.add_row("Shortfall", "Yes" if summary.has_shortfall else "No")
    console.print(table)

    for conflict in analysis.conflicts:
        color = SEVERITY_COLORS.get(conflict.severity.value, "white")
        console.print(
            f"  [{color}][{conflict.severity.value.upper()}][/{color}] "
            f"{conflict.type.value.replace('_', ' ')}"
        )

    _print_allocation(analysis.cashflow_allocation)
    _print_top_recommendations(analysis.ranked_recommendations)

    if output:
        Path(output).write_text(analysis.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"[green]✓[/green] Analysis saved to [bold]{output}[/bold]")


@app.command()
def plan(
    user_id: str = typer.Argument(..., help="User to plan for"),
    profiles: Optional[str] = PROFILES_OPTION,
    config: str = CONFIG_OPTION,
    output: str = typer.Option("wealth_plan.md", "--output", "-o", help="Output file path (.md, .json)"),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Generate the holistic financial plan."""
    _configure_logging(verbose)
    console.print(Panel.fit(
        "[bold blue]🧭 WealthPilot[/bold blue] — Holistic Plan",
        subtitle=f"v{__version__}",
    ))

    pilot = _build_pilot(config, profiles)
    with console.status("[bold green]Building plan...[/bold green]"):
        holistic_plan = _run(pilot.plan(user_id))

    summary = holistic_plan.executive_summary
    risk = holistic_plan.risk_assessment
    console.print(Panel(summary.overview, title=f"Overall score {summary.overall_score:.2f}/100"))

    table = Table(title="Risk & Actions", show_lines=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Risk Level", f"{risk.risk_level} ({risk.overall_risk_score:.2f})")
    table.add_row("Risk Areas", str(risk.total_risk_areas))
    actions = holistic_plan.action_plan_summary
    table.add_row("Immediate Actions", str(actions.immediate_actions))
    table.add_row("Short-Term Actions", str(actions.short_term_actions))
    table.add_row("Medium-Term Actions", str(actions.medium_term_actions))
    table.add_row("Long-Term Actions", str(actions.long_term_actions))
    console.print(table)

    _print_allocation(holistic_plan.cashflow_allocation)

    path = Path(output)
    content = holistic_plan.to_json() if path.suffix == ".json" else holistic_plan.to_markdown()
    path.write_text(content, encoding="utf-8")
    console.print(f"[green]✓[/green] Plan saved to [bold]{path}[/bold]")


@app.command()
def scenario(
    user_id: str = typer.Argument(..., help="User to model"),
    surplus: Optional[float] = typer.Option(None, "--surplus", help="Monthly surplus to allocate"),
    monthly_surplus: Optional[float] = typer.Option(
        None, "--monthly-surplus", help="Monthly savings rate for the net-worth projection"
    ),
    profiles: Optional[str] = PROFILES_OPTION,
    config: str = CONFIG_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Compare the current position with a what-if scenario."""
    _configure_logging(verbose)

    parameters = {}
    if surplus is not None:
        parameters["available_surplus"] = surplus
    if monthly_surplus is not None:
        parameters["monthly_surplus"] = monthly_surplus
    if not parameters:
        console.print("[red]Error: Provide --surplus or --monthly-surplus[/red]")
        raise typer.Exit(1)

    pilot = _build_pilot(config, profiles)
    comparison = _run(pilot.scenarios(user_id, parameters))

    table = Table(title=f"Scenario — User {comparison.user_id}", show_lines=True)
    table.add_column("Metric", style="bold")
    table.add_column("Baseline", justify="right")
    table.add_column("Scenario", justify="right")
    base, alt = comparison.baseline, comparison.scenario
    table.add_row("Surplus", format_gbp(base.available_surplus), format_gbp(alt.available_surplus))
    table.add_row(
        "Shortfall",
        format_gbp(base.cashflow_allocation.total_shortfall),
        format_gbp(alt.cashflow_allocation.total_shortfall),
    )
    table.add_row(
        "Projected Net Worth",
        format_gbp(base.projected_net_worth, 0),
        format_gbp(alt.projected_net_worth, 0),
    )
    console.print(table)


def _print_allocation(allocation) -> None:  # noqa: ANN001
    if not allocation.allocation:
        return
    table = Table(title="Monthly Cashflow Allocation")
    table.add_column("Category", style="bold cyan")
    table.add_column("Requested", justify="right")
    table.add_column("Allocated", justify="right")
    table.add_column("Funded", justify="right")
    for category, details in allocation.allocation.items():
        table.add_row(
            category.replace("_", " ").title(),
            format_gbp(details.requested),
            format_gbp(details.allocated),
            f"{details.percent_funded:.2f}%",
        )
    console.print(table)


def _print_top_recommendations(ranked, limit: int = 5) -> None:  # noqa: ANN001
    if not ranked:
        return
    console.print("[bold]Top Recommendations:[/bold]")
    for i, rec in enumerate(ranked[:limit], 1):
        console.print(
            f"  {i}. {rec.title or rec.action or 'Untitled'} ({rec.module}) "
            f"— score {rec.priority_score:.2f}, {Timeline(rec.timeline).value.replace('_', ' ')}"
        )
    console.print()


if __name__ == "__main__":
    app()
