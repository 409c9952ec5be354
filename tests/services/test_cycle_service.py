"""Tests for delivery cycle reads and lifecycle transitions."""

from datetime import date

import pytest

from src.db.models import CycleStatus, SiteConfig
from src.errors import NotFoundError, PreconditionError
from src.services import VALID_TRANSITIONS, DeliveryCycleService, InvalidStateTransition


class TestTransitions:
    def test_forward_path(self, db_session, seed):
        seed.cycle(date(2026, 3, 5), cycle_id="c1")
        svc = DeliveryCycleService(db_session)

        assert svc.mark_delivered("c1").status == "delivered"
        assert svc.archive("c1").status == "archived"

    def test_cannot_skip_delivered(self, db_session, seed):
        seed.cycle(date(2026, 3, 5), cycle_id="c1")

        with pytest.raises(InvalidStateTransition) as exc_info:
            DeliveryCycleService(db_session).archive("c1")

        assert exc_info.value.current_state is CycleStatus.upcoming
        assert exc_info.value.allowed_transitions == [CycleStatus.delivered]

    def test_archived_is_terminal(self, db_session, seed):
        seed.cycle(date(2026, 1, 5), status=CycleStatus.archived, cycle_id="c1")

        with pytest.raises(InvalidStateTransition, match="none \\(terminal\\)"):
            DeliveryCycleService(db_session).mark_delivered("c1")

    def test_no_backward_transitions(self):
        order = [CycleStatus.upcoming, CycleStatus.delivered, CycleStatus.archived]
        for status, targets in VALID_TRANSITIONS.items():
            for target in targets:
                assert order.index(target) > order.index(status)

    def test_unknown_cycle(self, db_session):
        with pytest.raises(NotFoundError):
            DeliveryCycleService(db_session).mark_delivered("missing")


class TestReveal:
    def test_reveal_delivered_cycle_enables_flag(self, db_session, seed):
        seed.cycle(date(2026, 3, 5), status=CycleStatus.delivered, cycle_id="c1")

        cycle = DeliveryCycleService(db_session).reveal("c1")

        assert cycle.is_revealed is True
        assert cycle.revealed_at
        assert db_session.get(SiteConfig, "REVEALED_BOX_ENABLED").value == "true"

    def test_reveal_upcoming_cycle_rejected(self, db_session, seed):
        seed.cycle(date(2026, 3, 5), cycle_id="c1")

        with pytest.raises(PreconditionError):
            DeliveryCycleService(db_session).reveal("c1")
        assert db_session.get(SiteConfig, "REVEALED_BOX_ENABLED") is None


class TestReads:
    async def test_earliest_eligible_and_upcoming(self, db_session, seed):
        seed.cycle(date(2026, 2, 5), cycle_id="feb")
        seed.cycle(date(2026, 3, 5), cycle_id="mar")
        seed.cycle(date(2026, 4, 5), cycle_id="apr")
        svc = DeliveryCycleService(db_session)

        assert (await svc.get_earliest_eligible_cycle(date(2026, 3, 10))).id == "feb"
        assert (await svc.get_upcoming_cycle(date(2026, 3, 10))).id == "apr"
        assert await svc.get_earliest_eligible_cycle(date(2026, 1, 1)) is None

    async def test_list_cycles_sorted(self, db_session, seed):
        seed.cycle(date(2026, 4, 5), cycle_id="apr")
        seed.cycle(date(2026, 2, 5), cycle_id="feb")

        cycles = await DeliveryCycleService(db_session).list_cycles()
        assert [c.id for c in cycles] == ["feb", "apr"]
