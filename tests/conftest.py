"""Root-level pytest fixtures for all tests.

Provides shared fixtures including:
- In-memory SQLite database session
- Seed helpers for cycles, customers, catalog and subscriptions
"""

import os

# Keep the module-level engine off the user's data dir during tests.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from collections.abc import Generator
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.db.models import (
    Address,
    Base,
    BoxType,
    CycleStatus,
    DeliveryCycle,
    PromoCode,
    Subscription,
    SubscriptionFrequency,
    SubscriptionStatus,
    UserAccount,
    UserProfile,
)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Create an in-memory SQLite database for testing.

    Creates all tables, yields a session, and cleans up after test.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


# ============================================================================
# Seed Helpers
# ============================================================================


class Seeder:
    """Inserts consistent test records into a session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def cycle(
        self,
        delivery_date: date,
        status: CycleStatus = CycleStatus.upcoming,
        is_revealed: bool = False,
        cycle_id: str | None = None,
    ) -> DeliveryCycle:
        cycle = DeliveryCycle(
            delivery_date=delivery_date,
            status=status.value,
            is_revealed=is_revealed,
        )
        if cycle_id:
            cycle.id = cycle_id
        self.db.add(cycle)
        self.db.commit()
        return cycle

    def box_type(
        self, box_id: str = "monthly-standard", price_cents: int = 2490, enabled: bool = True
    ) -> BoxType:
        box = BoxType(id=box_id, name=box_id.title(), price_cents=price_cents, is_enabled=enabled)
        self.db.add(box)
        self.db.commit()
        return box

    def promo(
        self,
        code: str = "WELCOME10",
        discount_percent: int = 10,
        enabled: bool = True,
        valid_until: date | None = None,
    ) -> PromoCode:
        promo = PromoCode(
            code=code,
            discount_percent=discount_percent,
            is_enabled=enabled,
            valid_until=valid_until,
        )
        self.db.add(promo)
        self.db.commit()
        return promo

    def customer(
        self,
        user_id: str,
        full_name: str = "Мария Иванова",
        email: str | None = None,
        phone: str | None = "+359888123456",
        with_address: bool = True,
    ) -> Address | None:
        self.db.add(UserProfile(id=user_id, full_name=full_name, phone=phone))
        self.db.add(UserAccount(id=user_id, email=email or f"{user_id}@example.com"))
        address = None
        if with_address:
            address = Address(
                user_id=user_id,
                full_name=full_name,
                phone=phone or "+359888000000",
                city="София",
                postal_code="1000",
                street_address="ул. Витоша 1",
            )
            self.db.add(address)
        self.db.commit()
        return address

    def subscription(
        self,
        user_id: str,
        address: Address | None,
        box_type: str = "monthly-standard",
        frequency: SubscriptionFrequency = SubscriptionFrequency.monthly,
        status: SubscriptionStatus = SubscriptionStatus.active,
        promo_code: str | None = None,
        subscription_id: str | None = None,
        **fields,
    ) -> Subscription:
        subscription = Subscription(
            user_id=user_id,
            box_type=box_type,
            frequency=frequency.value,
            status=status.value,
            default_address_id=address.id if address is not None else None,
            promo_code=promo_code,
            **fields,
        )
        if subscription_id:
            subscription.id = subscription_id
        self.db.add(subscription)
        self.db.commit()
        return subscription


@pytest.fixture
def seed(db_session: Session) -> Seeder:
    """Seed helper bound to the test session."""
    return Seeder(db_session)
