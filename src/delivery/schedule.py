"""Delivery date arithmetic.

Pure functions: no database or network access. All inputs, including the
reference "now", are passed as arguments.
"""

import calendar
from datetime import date, datetime

from src.delivery.config import DeliveryConfig


def start_of_day(value: date | datetime | None = None) -> date:
    """Truncate a date or datetime to its calendar day (local midnight).

    Args:
        value: Reference point. None means today.

    Returns:
        The calendar date of the reference point.
    """
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def clamped_date(year: int, month: int, day: int) -> date:
    """Build a date, clamping the day to the last valid day of the month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def calculate_next_delivery_date(
    config: DeliveryConfig,
    now: date | datetime | None = None,
) -> date:
    """Calculate the next delivery date.

    Rules:
    1. If ``first_delivery_date`` is set and on or after today, return it.
    2. Otherwise take the ``delivery_day``-th of the current month (clamped
       to the month's last day). If it is strictly after today, return it.
    3. Otherwise return the clamped ``delivery_day``-th of the next month.

    Args:
        config: Resolved delivery configuration.
        now: Reference point (defaults to today).

    Returns:
        The next delivery date.
    """
    today = start_of_day(now)

    if config.first_delivery_date is not None and config.first_delivery_date >= today:
        return config.first_delivery_date

    this_month = clamped_date(today.year, today.month, config.delivery_day)
    if this_month > today:
        return this_month

    year, month = _next_month(today.year, today.month)
    return clamped_date(year, month, config.delivery_day)


def calculate_next_n_delivery_dates(
    config: DeliveryConfig,
    n: int,
    now: date | datetime | None = None,
) -> list[date]:
    """Return the next ``n`` delivery dates.

    The first date uses the full override-aware logic; each following date
    is one calendar month after the previous one, with the same clamp.
    Used for admin cycle creation suggestions.
    """
    if n <= 0:
        return []

    first = calculate_next_delivery_date(config, now)
    dates = [first]

    year, month = first.year, first.month
    for _ in range(1, n):
        year, month = _next_month(year, month)
        dates.append(clamped_date(year, month, config.delivery_day))

    return dates


def is_first_delivery(
    config: DeliveryConfig,
    now: date | datetime | None = None,
) -> bool:
    """Return True if the first-delivery override is set and not yet passed."""
    if config.first_delivery_date is None:
        return False
    return config.first_delivery_date >= start_of_day(now)
