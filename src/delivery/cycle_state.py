"""Derived state for a single delivery cycle.

A read-only projection used by the admin surfaces to decide which
controls to show. Nothing here writes back to the cycle.
"""

from dataclasses import dataclass
from datetime import date, datetime

from src.db.models import CycleStatus, DeliveryCycle
from src.delivery.schedule import start_of_day

# Index 0 = January
BULGARIAN_MONTHS: list[str] = [
    "Януари",
    "Февруари",
    "Март",
    "Април",
    "Май",
    "Юни",
    "Юли",
    "Август",
    "Септември",
    "Октомври",
    "Ноември",
    "Декември",
]

CYCLE_STATUS_LABELS: dict[CycleStatus, str] = {
    CycleStatus.upcoming: "Предстоящ",
    CycleStatus.delivered: "Доставен",
    CycleStatus.archived: "Архивиран",
}


@dataclass(frozen=True)
class CycleState:
    """Derived flags and labels for a delivery cycle."""

    is_past: bool
    is_upcoming: bool
    is_revealed: bool
    can_reveal: bool
    can_mark_delivered: bool
    days_until_delivery: int | None
    formatted_date: str
    month_year: str
    status_label: str


def format_delivery_date(value: date) -> str:
    """Format a date as DD.MM.YYYY.

    Example:
        >>> format_delivery_date(date(2026, 3, 8))
        '08.03.2026'
    """
    return value.strftime("%d.%m.%Y")


def format_month_year(value: date) -> str:
    """Format a date as "<month name> <year>".

    Example:
        >>> format_month_year(date(2026, 3, 8))
        'Март 2026'
    """
    return f"{BULGARIAN_MONTHS[value.month - 1]} {value.year}"


def compute_cycle_state(
    cycle: DeliveryCycle,
    now: date | datetime | None = None,
) -> CycleState:
    """Compute all derived fields from a delivery cycle.

    Args:
        cycle: The cycle to project.
        now: Reference point (defaults to today).

    Returns:
        CycleState for the cycle as of ``now``.
    """
    today = start_of_day(now)
    delivery_date = cycle.delivery_date
    status = CycleStatus(cycle.status)

    is_past = delivery_date < today
    # Whole days, so the day difference is already its own ceiling.
    days_until = None if is_past else (delivery_date - today).days

    return CycleState(
        is_past=is_past,
        is_upcoming=not is_past and status == CycleStatus.upcoming,
        is_revealed=bool(cycle.is_revealed),
        can_reveal=status == CycleStatus.delivered and not cycle.is_revealed,
        can_mark_delivered=status == CycleStatus.upcoming,
        days_until_delivery=days_until,
        formatted_date=format_delivery_date(delivery_date),
        month_year=format_month_year(delivery_date),
        status_label=CYCLE_STATUS_LABELS[status],
    )
