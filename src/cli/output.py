"""CLI output formatters for Rich tables and JSON.

Provides human-readable Rich table output (default) and machine-parseable
JSON output (--json flag). All formatting goes through these functions
so the CLI commands stay clean.
"""

import dataclasses
import json
from datetime import date

from rich.console import Console
from rich.table import Table

from src.delivery.cycle_state import CycleState
from src.delivery.models import FirstCycleAssignment, GenerationResult

console = Console()


def _render(renderable) -> str:
    with console.capture() as capture:
        console.print(renderable)
    return capture.get()


def format_generation_result(result: GenerationResult, as_json: bool = False) -> str:
    """Format a generation run summary as a Rich table or JSON.

    Args:
        result: Summary returned by the batch generator.
        as_json: If True, return JSON string instead of Rich table.

    Returns:
        Formatted string output.
    """
    if as_json:
        return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    if result.cycle_id is None:
        return result.message or "Nothing to generate."

    table = Table(title=f"Cycle {result.cycle_id} ({result.cycle_date})")
    table.add_column("Generated", justify="right", style="green")
    table.add_column("Skipped", justify="right")
    table.add_column("Excluded", justify="right", style="dim")
    table.add_column("Errors", justify="right", style="red")
    table.add_row(
        str(result.generated),
        str(result.skipped),
        str(result.excluded),
        str(result.errors),
    )
    output = _render(table)

    if result.error_details:
        errors = Table(title="Failed subscriptions", show_lines=True)
        errors.add_column("Subscription", style="cyan", no_wrap=True)
        errors.add_column("Code", style="yellow")
        errors.add_column("Error", style="red")
        for detail in result.error_details:
            errors.add_row(detail.subscription_id, detail.code, detail.error)
        output += _render(errors)
    return output


def format_schedule(
    dates: list[date], first_delivery: bool, as_json: bool = False
) -> str:
    """Format upcoming delivery dates."""
    if as_json:
        return json.dumps(
            {
                "isFirstDelivery": first_delivery,
                "nextDeliveryDates": [d.isoformat() for d in dates],
            },
            indent=2,
        )

    table = Table(title="Upcoming deliveries")
    table.add_column("#", justify="right")
    table.add_column("Date", style="cyan")
    for i, value in enumerate(dates, start=1):
        label = value.isoformat()
        if i == 1 and first_delivery:
            label += " [yellow](first delivery)[/yellow]"
        table.add_row(str(i), label)
    return _render(table)


def format_cycle_state(state: CycleState, as_json: bool = False) -> str:
    """Format derived cycle state as a two-column table or JSON."""
    if as_json:
        return json.dumps(dataclasses.asdict(state), indent=2, ensure_ascii=False)

    table = Table(show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for key, value in dataclasses.asdict(state).items():
        table.add_row(key, "-" if value is None else str(value))
    return _render(table)


def format_assignment(assignment: FirstCycleAssignment) -> str:
    if assignment.needs_immediate_order:
        return (
            f"Assigned to delivered cycle {assignment.cycle_id}; "
            "order generated immediately (late join)."
        )
    return f"Assigned to upcoming cycle {assignment.cycle_id}."
