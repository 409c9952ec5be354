"""Tests for the delivery, cron and subscription API routes."""

from datetime import date, timedelta

import pytest

from src.db.models import CycleStatus, Order, SiteConfig


@pytest.fixture
def due_cycle(seed):
    """A due upcoming cycle with two valid subscriptions and one broken one."""
    seed.box_type("monthly-standard")
    cycle = seed.cycle(date.today() - timedelta(days=1), cycle_id="due")
    for name, has_address in (("a", True), ("b", False), ("c", True)):
        address = seed.customer(f"user-{name}", with_address=has_address)
        seed.subscription(f"user-{name}", address, subscription_id=f"sub-{name}")
    return cycle


class TestGenerate:
    def test_auto_detect(self, client, due_cycle):
        response = client.post("/api/v1/delivery/generate")

        assert response.status_code == 200
        data = response.json()
        assert data["cycleId"] == "due"
        assert data["cycleDate"] == due_cycle.delivery_date.isoformat()
        assert data["generated"] == 2
        assert data["errors"] == 1
        assert data["errorDetails"] == [
            {
                "subscriptionId": "sub-b",
                "error": "No default address configured on subscription 'sub-b'.",
                "code": "E-2001",
            }
        ]

    def test_explicit_cycle(self, client, due_cycle, seed):
        seed.cycle(date.today() + timedelta(days=30), cycle_id="next")

        response = client.post("/api/v1/delivery/generate", json={"cycleId": "next"})

        assert response.status_code == 200
        assert response.json()["cycleId"] == "next"

    def test_unknown_cycle_is_404(self, client):
        response = client.post("/api/v1/delivery/generate", json={"cycleId": "missing"})

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "E-1002"
        assert "missing" in body["message"]
        assert body["remediation"]

    def test_nothing_due(self, client):
        response = client.post("/api/v1/delivery/generate")

        assert response.status_code == 200
        data = response.json()
        assert data["cycleId"] is None
        assert data["message"]

    def test_created_orders_email_customers(self, client, due_cycle, customer_notifier):
        client.post("/api/v1/delivery/generate")

        emailed = {
            c.kwargs["email"] for c in customer_notifier.dispatch_delivery_upcoming.call_args_list
        }
        assert emailed == {"user-a@example.com", "user-c@example.com"}


class TestCron:
    def test_scheduled_run(self, client, due_cycle, db_session, notifier):
        response = client.get("/api/v1/cron/generate-orders")

        assert response.status_code == 200
        assert response.json()["generated"] == 2
        notifier.dispatch_result.assert_called_once()
        assert db_session.get(SiteConfig, "cron_last_run") is not None

    def test_rerun_is_idempotent(self, client, due_cycle, db_session):
        client.get("/api/v1/cron/generate-orders")
        response = client.get("/api/v1/cron/generate-orders")

        assert response.json()["skipped"] == 2
        assert db_session.query(Order).count() == 2


class TestSchedule:
    def test_uses_site_config(self, client, db_session):
        db_session.add(SiteConfig(key="SUBSCRIPTION_DELIVERY_DAY", value="10"))
        db_session.commit()

        response = client.get("/api/v1/delivery/schedule", params={"count": 4})

        assert response.status_code == 200
        data = response.json()
        assert data["deliveryDay"] == 10
        assert len(data["nextDeliveryDates"]) == 4
        assert all(date.fromisoformat(d).day == 10 for d in data["nextDeliveryDates"])
        assert data["isFirstDelivery"] is False

    def test_count_validated(self, client):
        assert client.get("/api/v1/delivery/schedule", params={"count": 0}).status_code == 422


class TestCycles:
    def test_state(self, client, seed):
        seed.cycle(date.today() + timedelta(days=3), cycle_id="c1")

        response = client.get("/api/v1/delivery/cycles/c1/state")

        assert response.status_code == 200
        data = response.json()
        assert data["daysUntilDelivery"] == 3
        assert data["canMarkDelivered"] is True
        assert data["isPast"] is False

    def test_state_unknown_cycle(self, client):
        assert client.get("/api/v1/delivery/cycles/nope/state").status_code == 404

    def test_lifecycle(self, client, seed):
        seed.cycle(date.today(), cycle_id="c1")

        assert client.post("/api/v1/delivery/cycles/c1/deliver").json()["status"] == "delivered"
        revealed = client.post("/api/v1/delivery/cycles/c1/reveal").json()
        assert revealed["isRevealed"] is True
        assert client.post("/api/v1/delivery/cycles/c1/archive").json()["status"] == "archived"

    def test_invalid_transition_is_400(self, client, seed):
        seed.cycle(date.today(), cycle_id="c1")
        response = client.post("/api/v1/delivery/cycles/c1/archive")
        assert response.status_code == 400

    def test_reveal_upcoming_is_422(self, client, seed):
        seed.cycle(date.today(), cycle_id="c1")
        response = client.post("/api/v1/delivery/cycles/c1/reveal")
        assert response.status_code == 422


class TestFirstCycle:
    def test_upcoming_assignment(self, client, seed):
        seed.box_type("monthly-standard")
        seed.cycle(date.today() + timedelta(days=10), cycle_id="next")
        address = seed.customer("user-1")
        seed.subscription("user-1", address, subscription_id="sub-1")

        response = client.post("/api/v1/subscriptions/sub-1/first-cycle")

        assert response.status_code == 200
        assert response.json() == {"cycleId": "next", "needsImmediateOrder": False}

    def test_late_join_creates_order(self, client, seed, db_session):
        seed.box_type("monthly-standard")
        seed.cycle(date.today() - timedelta(days=2), status=CycleStatus.delivered, cycle_id="prev")
        address = seed.customer("user-1")
        seed.subscription("user-1", address, subscription_id="sub-1")

        response = client.post(
            "/api/v1/subscriptions/sub-1/first-cycle", json={"performedBy": "admin-2"}
        )

        assert response.json()["needsImmediateOrder"] is True
        assert db_session.query(Order).filter(Order.delivery_cycle_id == "prev").count() == 1

    def test_no_cycle_is_422(self, client, seed):
        address = seed.customer("user-1")
        seed.subscription("user-1", address, subscription_id="sub-1")

        response = client.post("/api/v1/subscriptions/sub-1/first-cycle")

        assert response.status_code == 422
        assert response.json()["error_code"] == "E-2002"


class TestHistory:
    def test_newest_first_with_decoded_details(self, client, seed):
        seed.box_type("monthly-standard")
        seed.cycle(date.today() - timedelta(days=2), status=CycleStatus.delivered, cycle_id="prev")
        address = seed.customer("user-1")
        seed.subscription("user-1", address, subscription_id="sub-1")
        client.post("/api/v1/subscriptions/sub-1/first-cycle", json={"performedBy": "admin-2"})

        response = client.get("/api/v1/subscriptions/sub-1/history")

        assert response.status_code == 200
        entries = response.json()
        assert [e["action"] for e in entries] == ["order_generated", "cycle_assigned"]
        timestamps = [e["createdAt"] for e in entries]
        assert timestamps == sorted(timestamps, reverse=True)
        generated = next(e for e in entries if e["action"] == "order_generated")
        assert generated["details"]["cycle_id"] == "prev"
        assert generated["details"]["late_addition"] is True
        assert generated["performedBy"] == "admin-2"

    def test_unknown_subscription_is_404(self, client):
        response = client.get("/api/v1/subscriptions/nope/history")

        assert response.status_code == 404
        assert response.json()["error_code"] == "E-1001"


def test_error_body_documented(client):
    schema = client.get("/openapi.json").json()

    assert "ErrorResponse" in schema["components"]["schemas"]
    responses = schema["paths"]["/api/v1/delivery/cycles/{cycle_id}/state"]["get"]["responses"]
    assert responses["404"]["content"]["application/json"]["schema"]["$ref"].endswith(
        "/ErrorResponse"
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
