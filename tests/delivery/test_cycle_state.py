"""Tests for derived cycle state."""

from datetime import date

import pytest

from src.db.models import CycleStatus, DeliveryCycle
from src.delivery.cycle_state import (
    CYCLE_STATUS_LABELS,
    compute_cycle_state,
    format_delivery_date,
    format_month_year,
)


def _cycle(delivery_date: date, status: CycleStatus, is_revealed: bool = False) -> DeliveryCycle:
    return DeliveryCycle(
        id="cycle-1",
        delivery_date=delivery_date,
        status=status.value,
        is_revealed=is_revealed,
    )


class TestComputeCycleState:
    def test_future_upcoming_cycle(self):
        state = compute_cycle_state(
            _cycle(date(2026, 3, 15), CycleStatus.upcoming), date(2026, 3, 10)
        )
        assert state.is_past is False
        assert state.is_upcoming is True
        assert state.can_mark_delivered is True
        assert state.can_reveal is False
        assert state.days_until_delivery == 5
        assert state.formatted_date == "15.03.2026"
        assert state.month_year == "Март 2026"
        assert state.status_label == CYCLE_STATUS_LABELS[CycleStatus.upcoming]

    def test_delivery_today_is_not_past(self):
        state = compute_cycle_state(
            _cycle(date(2026, 3, 10), CycleStatus.upcoming), date(2026, 3, 10)
        )
        assert state.is_past is False
        assert state.days_until_delivery == 0

    def test_past_cycle_has_no_countdown(self):
        state = compute_cycle_state(
            _cycle(date(2026, 3, 5), CycleStatus.upcoming), date(2026, 3, 10)
        )
        assert state.is_past is True
        assert state.is_upcoming is False
        assert state.days_until_delivery is None
        assert state.can_mark_delivered is True

    def test_delivered_unrevealed_can_be_revealed(self):
        state = compute_cycle_state(
            _cycle(date(2026, 3, 5), CycleStatus.delivered), date(2026, 3, 10)
        )
        assert state.can_reveal is True
        assert state.can_mark_delivered is False

    def test_delivered_and_revealed(self):
        state = compute_cycle_state(
            _cycle(date(2026, 3, 5), CycleStatus.delivered, is_revealed=True),
            date(2026, 3, 10),
        )
        assert state.is_revealed is True
        assert state.can_reveal is False

    def test_archived(self):
        state = compute_cycle_state(
            _cycle(date(2026, 1, 5), CycleStatus.archived), date(2026, 3, 10)
        )
        assert state.can_reveal is False
        assert state.can_mark_delivered is False
        assert state.status_label == CYCLE_STATUS_LABELS[CycleStatus.archived]

    def test_does_not_mutate_cycle(self):
        cycle = _cycle(date(2026, 3, 15), CycleStatus.upcoming)
        compute_cycle_state(cycle, date(2026, 3, 10))
        assert cycle.status == CycleStatus.upcoming.value
        assert cycle.is_revealed is False


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (date(2026, 1, 1), "Януари 2026"),
        (date(2026, 12, 31), "Декември 2026"),
    ],
)
def test_format_month_year(value, expected):
    assert format_month_year(value) == expected


def test_format_delivery_date_zero_pads():
    assert format_delivery_date(date(2026, 3, 8)) == "08.03.2026"


def test_every_status_has_a_label():
    assert set(CYCLE_STATUS_LABELS) == set(CycleStatus)
