"""Pytest fixtures for API tests.

Provides a test client bound to the shared in-memory database session
and a stub notifier for the scheduled trigger.
"""

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from src.api.main import app
from src.api.routes.cron import get_customer_notifier, get_notifier
from src.db.connection import get_db


@pytest.fixture
def notifier() -> MagicMock:
    """Notifier stub recording dispatches without sending email."""
    return MagicMock()


@pytest.fixture
def customer_notifier() -> MagicMock:
    """Customer email stub recording delivery-upcoming dispatches."""
    return MagicMock()


@pytest.fixture
def client(
    db_session: Session, notifier: MagicMock, customer_notifier: MagicMock
) -> Generator[TestClient, None, None]:
    """Create a TestClient with overridden database dependency.

    Args:
        db_session: Test database session fixture.
        notifier: Notifier stub.
        customer_notifier: Customer email stub.

    Yields:
        TestClient configured for testing.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_customer_notifier] = lambda: customer_notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
