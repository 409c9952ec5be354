"""Tests for the boxcycle CLI commands.

Commands run in-process against the shared in-memory session.
"""

import json
from contextlib import contextmanager
from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from typer.testing import CliRunner

from src.cli import main as cli_main
from src.cli.main import app
from src.db.models import Order, SiteConfig

runner = CliRunner()


@pytest.fixture(autouse=True)
def _bind_session(db_session, monkeypatch):
    @contextmanager
    def fake_db_context():
        yield db_session

    monkeypatch.setattr(cli_main, "get_db_context", fake_db_context)
    monkeypatch.setattr(cli_main, "_prepare_db", lambda: None)


@pytest.fixture
def notifier(monkeypatch):
    stub = MagicMock()
    stub.drain = AsyncMock()
    monkeypatch.setattr(cli_main, "build_notifier", lambda settings: stub)
    return stub


@pytest.fixture(autouse=True)
def customer_notifier(monkeypatch):
    stub = MagicMock()
    stub.drain = AsyncMock()
    monkeypatch.setattr(cli_main, "build_customer_notifier", lambda settings: stub)
    return stub


def _seed_due_cycle(seed, broken: bool = False):
    seed.box_type("monthly-standard")
    seed.cycle(date.today() - timedelta(days=1), cycle_id="due")
    address = seed.customer("user-1")
    seed.subscription("user-1", address, subscription_id="sub-1")
    if broken:
        seed.customer("user-2", with_address=False)
        seed.subscription("user-2", None, subscription_id="sub-2")


def test_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "generate" in result.stdout


def test_schedule_json(db_session):
    db_session.add(SiteConfig(key="SUBSCRIPTION_DELIVERY_DAY", value="20"))
    db_session.commit()

    result = runner.invoke(app, ["schedule", "--count", "2", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert len(data["nextDeliveryDates"]) == 2
    assert all(date.fromisoformat(d).day == 20 for d in data["nextDeliveryDates"])


class TestGenerate:
    def test_generates_orders(self, seed, db_session):
        _seed_due_cycle(seed)

        result = runner.invoke(app, ["generate"])

        assert result.exit_code == 0
        assert "Cycle due" in result.stdout
        assert db_session.query(Order).count() == 1

    def test_emails_customers_and_drains(self, seed, db_session, customer_notifier):
        _seed_due_cycle(seed)

        result = runner.invoke(app, ["generate"])

        assert result.exit_code == 0
        order = db_session.query(Order).one()
        kwargs = customer_notifier.dispatch_delivery_upcoming.call_args.kwargs
        assert kwargs["order_id"] == order.id
        customer_notifier.drain.assert_awaited_once()

    def test_partial_errors_exit_code(self, seed):
        _seed_due_cycle(seed, broken=True)

        result = runner.invoke(app, ["generate"])

        assert result.exit_code == 2
        assert "Failed subscriptions" in result.stdout

    def test_nothing_due(self):
        result = runner.invoke(app, ["generate"])
        assert result.exit_code == 0

    def test_unknown_cycle(self):
        result = runner.invoke(app, ["generate", "--cycle-id", "missing"])

        assert result.exit_code == 1
        assert "E-1002" in result.stdout


class TestCron:
    def test_records_and_notifies(self, seed, db_session, notifier):
        _seed_due_cycle(seed)

        result = runner.invoke(app, ["cron"])

        assert result.exit_code == 0
        notifier.dispatch_result.assert_called_once()
        notifier.drain.assert_awaited_once()
        assert db_session.get(SiteConfig, "cron_last_result") is not None

    def test_customer_emails_drained(self, seed, notifier, customer_notifier):
        _seed_due_cycle(seed)

        result = runner.invoke(app, ["cron"])

        assert result.exit_code == 0
        customer_notifier.dispatch_delivery_upcoming.assert_called_once()
        customer_notifier.drain.assert_awaited_once()

    def test_failure_drains_and_exits(self, notifier, monkeypatch):
        async def boom(*args, **kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(cli_main, "run_scheduled_generation", boom)

        result = runner.invoke(app, ["cron"])

        assert result.exit_code == 1
        assert "database unavailable" in result.stdout
        notifier.drain.assert_awaited_once()


def test_cycle_state_json(seed):
    seed.cycle(date.today() + timedelta(days=5), cycle_id="c1")

    result = runner.invoke(app, ["cycle-state", "c1", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["days_until_delivery"] == 5
    assert data["can_mark_delivered"] is True


def test_attach_to_upcoming(seed):
    seed.cycle(date.today() + timedelta(days=5), cycle_id="next")
    address = seed.customer("user-1")
    seed.subscription("user-1", address, subscription_id="sub-1")

    result = runner.invoke(app, ["attach", "sub-1"])

    assert result.exit_code == 0
    assert "upcoming cycle next" in result.stdout


def test_attach_without_cycles_fails(seed):
    address = seed.customer("user-1")
    seed.subscription("user-1", address, subscription_id="sub-1")

    result = runner.invoke(app, ["attach", "sub-1"])

    assert result.exit_code == 1
    assert "E-2002" in result.stdout
