"""Cycle inclusion rules for batch order generation.

Decides whether an individual subscription gets an order in a given
cycle. Subscriptions that fail these rules are counted as ``excluded``,
never as errors.

Rules:
- Not active (paused, cancelled, expired) -> excluded
- Box type disabled in the catalog -> excluded
- Monthly -> included in every cycle
- Seasonal -> included every third cycle since the last delivery
  - Never delivered: included in the first cycle on or after the
    subscription's first_cycle_id (or any cycle when none is recorded)
  - Otherwise included when three or more cycles have passed since
    last_delivered_cycle_id, counted by position in date order
- Unknown frequency -> excluded
"""

from collections.abc import Collection, Sequence

from src.db.models import (
    DeliveryCycle,
    Subscription,
    SubscriptionFrequency,
    SubscriptionStatus,
)

SEASONAL_CYCLE_GAP = 3


def _index_of(cycles: Sequence[DeliveryCycle], cycle_id: str | None) -> int:
    for i, cycle in enumerate(cycles):
        if cycle.id == cycle_id:
            return i
    return -1


def should_include_in_cycle(
    subscription: Subscription,
    cycle: DeliveryCycle,
    cycles_by_date: Sequence[DeliveryCycle],
    enabled_box_types: Collection[str] | None = None,
) -> bool:
    """Determine whether a subscription should get an order in ``cycle``.

    Args:
        subscription: Candidate subscription.
        cycle: Cycle being generated.
        cycles_by_date: All cycles sorted by delivery_date ascending.
        enabled_box_types: Box type ids currently sold. None skips the check.

    Returns:
        True if an order should be materialized.
    """
    if subscription.status != SubscriptionStatus.active.value:
        return False

    if enabled_box_types is not None and subscription.box_type not in enabled_box_types:
        return False

    if subscription.frequency == SubscriptionFrequency.monthly.value:
        return True

    if subscription.frequency == SubscriptionFrequency.seasonal.value:
        current_index = _index_of(cycles_by_date, cycle.id)

        if subscription.last_delivered_cycle_id is None:
            if not subscription.first_cycle_id:
                return True
            return current_index >= _index_of(cycles_by_date, subscription.first_cycle_id)

        last_index = _index_of(cycles_by_date, subscription.last_delivered_cycle_id)
        if last_index == -1 or current_index == -1:
            return False
        return current_index - last_index >= SEASONAL_CYCLE_GAP

    return False
