"""Command-line tools for inspecting and reconciling plan documents.

Works on plan JSON files offline, through the same engine code the stores and
services use:

    weekplan current-week --start-date 2025-11-25 --total-weeks 12
    weekplan week plan.json 3
    weekplan merge plan.json regenerated.json --current-week 5 --output merged.json
"""

import json
from datetime import date
from pathlib import Path
from typing import Any

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from weekplan.core.logger import setup_logger_from_settings
from weekplan.plans.calendar import current_week_number, format_week_date_range
from weekplan.plans.errors import PlanEngineError
from weekplan.plans.mileage import week_mileage
from weekplan.plans.overlay import resolve_plan_week
from weekplan.plans.reconcile import merge_plans
from weekplan.plans.types import Plan

console = Console()

app = typer.Typer(
    name="weekplan",
    help="Weekly training plan tools - calendar, mileage and regeneration merges",
    add_completion=False,
)


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Log at DEBUG level"),
) -> None:
    """Configure logging from WEEKPLAN_LOG_* settings before any command runs."""
    setup_logger_from_settings(level="DEBUG" if debug else None)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Error:[/red] cannot read {path}: {e}", style="bold red")
        raise typer.Exit(1) from e


def _load_plan(path: Path) -> Plan:
    try:
        return Plan.model_validate(_read_json(path))
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {path} is not a valid plan: {e.error_count()} errors", style="bold red")
        raise typer.Exit(1) from e


@app.command()
def current_week(
    start_date: str = typer.Option(..., "--start-date", "-s", help="Plan start date (YYYY-MM-DD)"),
    total_weeks: int = typer.Option(12, "--total-weeks", "-n", help="Plan length in weeks"),
    today: str | None = typer.Option(None, "--today", help="Date to evaluate instead of today"),
) -> None:
    """Show which plan week contains today, and its Monday-Sunday dates."""
    week_number = current_week_number(today, start_date, total_weeks)
    date_range = format_week_date_range(week_number, start_date)
    if date_range is None:
        console.print(f"[yellow]No usable start date ({start_date}), showing week 1[/yellow]")
        console.print(f"Week {week_number} of {total_weeks}")
        return
    console.print(f"Week {week_number} of {total_weeks} ({date_range})")


@app.command()
def week(
    plan_file: Path = typer.Argument(..., help="Plan JSON document"),
    week_number: int = typer.Argument(..., help="1-based week number"),
) -> None:
    """Print the resolved sessions of a plan week and its mileage breakdown."""
    plan = _load_plan(plan_file)
    plan_week = plan.week(week_number)
    if plan_week is None:
        console.print(f"[red]Error:[/red] plan has no week {week_number}", style="bold red")
        raise typer.Exit(1)

    days = resolve_plan_week(plan, week_number, {}, {})
    title = f"Week {week_number} - {plan_week.phase}"
    date_range = format_week_date_range(week_number, plan.start_date)
    if date_range:
        title = f"{title} ({date_range})"

    table = Table(title=title)
    table.add_column("Day")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Workout")
    for sessions in days:
        for session in sessions:
            scheduled: date | None = session.scheduled_date
            table.add_row(
                session.day if session.slot_index == 0 else "",
                scheduled.isoformat() if scheduled else "",
                str(session.workout_type),
                session.slot.workout.name,
            )
    console.print(table)

    mileage = week_mileage(days, authoritative_total=plan_week.total_mileage)
    console.print(
        f"Run: {mileage.run_miles} mi | Bike: {mileage.bike_miles} mi | "
        f"Elliptical: {mileage.elliptical_miles} mi | RunEQ: {mileage.pre_equivalenced_miles} mi"
    )
    source = "generator" if mileage.total_is_authoritative else "computed"
    console.print(f"[bold]Total: {mileage.total_miles} mi[/bold] ({source})")


@app.command()
def merge(
    plan_file: Path = typer.Argument(..., help="Existing plan JSON document"),
    replacement_file: Path = typer.Argument(..., help="JSON list of regenerated weeks (or an object with 'weeks')"),
    current_week_number: int = typer.Option(..., "--current-week", "-c", help="First week to replace"),
    output: Path = typer.Option(..., "--output", "-o", help="Where to write the merged plan"),
) -> None:
    """Splice regenerated weeks onto a plan, preserving completed weeks."""
    plan = _load_plan(plan_file)
    replacement = _read_json(replacement_file)
    if isinstance(replacement, dict):
        replacement = replacement.get("weeks")
    if not isinstance(replacement, list):
        console.print("[red]Error:[/red] replacement must be a list of weeks", style="bold red")
        raise typer.Exit(1)

    try:
        merged = merge_plans(plan, replacement, current_week_number)
    except PlanEngineError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold red")
        logger.exception("Merge failed")
        raise typer.Exit(1) from e

    output.write_text(merged.model_dump_json(indent=2))
    console.print(
        f"[green]Merged {len(replacement)} weeks from week {current_week_number}[/green] "
        f"(revision {merged.revision}, {merged.total_weeks} weeks) -> {output}"
    )


if __name__ == "__main__":
    app()
