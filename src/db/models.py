"""SQLAlchemy ORM models for the BoxCycle database.

This module defines the delivery cycle, subscription, customer, catalog,
order and history models consumed by the order-generation engine. Uses
SQLAlchemy 2.0 style with Mapped and mapped_column.
"""

import json
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from sqlalchemy import (
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
)


def generate_uuid() -> str:
    """Generate a UUID4 string for primary keys."""
    return str(uuid4())


def utc_now_iso() -> str:
    """Generate current UTC timestamp in ISO8601 format."""
    return datetime.now(UTC).isoformat()


# Enums matching the database schema constraints


class CycleStatus(str, Enum):
    """Status values for delivery cycles.

    Lifecycle: upcoming -> delivered -> archived (forward only)
    """

    upcoming = "upcoming"
    delivered = "delivered"
    archived = "archived"


class SubscriptionStatus(str, Enum):
    """Status values for subscriptions (managed outside the generation core)."""

    active = "active"
    paused = "paused"
    cancelled = "cancelled"
    expired = "expired"


class SubscriptionFrequency(str, Enum):
    """How often a subscription receives a box."""

    monthly = "monthly"
    seasonal = "seasonal"


class OrderType(str, Enum):
    """Origin of an order."""

    subscription = "subscription"
    one_time = "one_time"


class HistoryAction(str, Enum):
    """Actions recorded in the subscription history sink."""

    order_generated = "order_generated"
    cycle_assigned = "cycle_assigned"


# SQLAlchemy Base


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Models


class DeliveryCycle(Base):
    """One scheduled delivery round.

    Attributes:
        id: UUID primary key
        delivery_date: Calendar date of the delivery (unique)
        status: upcoming, delivered or archived
        is_revealed: Whether the box contents were revealed to subscribers
        revealed_at: ISO8601 timestamp of the reveal
        title: Short admin-facing title
        description: Optional longer description
    """

    __tablename__ = "delivery_cycles"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    delivery_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CycleStatus.upcoming.value
    )
    is_revealed: Mapped[bool] = mapped_column(nullable=False, default=False)
    revealed_at: Mapped[str | None] = mapped_column(String(50), nullable=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso, onupdate=utc_now_iso
    )

    __table_args__ = (
        Index("idx_delivery_cycles_status_date", "status", "delivery_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<DeliveryCycle(id={self.id!r}, delivery_date={self.delivery_date!r}, "
            f"status={self.status!r})>"
        )


class UserProfile(Base):
    """Customer profile (display name and phone)."""

    __tablename__ = "user_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )


class UserAccount(Base):
    """Customer login account. Only the email is consumed here."""

    __tablename__ = "user_accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )


class Address(Base):
    """Saved shipping address owned by a customer."""

    __tablename__ = "addresses"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    street_address: Mapped[str] = mapped_column(String(255), nullable=False)
    building_entrance: Mapped[str | None] = mapped_column(String(20), nullable=True)
    floor: Mapped[str | None] = mapped_column(String(20), nullable=True)
    apartment: Mapped[str | None] = mapped_column(String(20), nullable=True)
    delivery_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    __table_args__ = (Index("idx_addresses_user_id", "user_id"),)

    def to_snapshot(self) -> dict[str, Any]:
        """Copy the address into a plain dict for embedding in an order."""
        return {
            "full_name": self.full_name,
            "phone": self.phone,
            "city": self.city,
            "postal_code": self.postal_code,
            "street_address": self.street_address,
            "building_entrance": self.building_entrance,
            "floor": self.floor,
            "apartment": self.apartment,
            "delivery_notes": self.delivery_notes,
        }


class BoxType(Base):
    """Catalog entry for a box that can be subscribed to."""

    __tablename__ = "box_types"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    is_enabled: Mapped[bool] = mapped_column(nullable=False, default=True)


class PromoCode(Base):
    """Percentage discount code."""

    __tablename__ = "promo_codes"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    discount_percent: Mapped[int] = mapped_column(Integer, nullable=False)
    is_enabled: Mapped[bool] = mapped_column(nullable=False, default=True)
    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)


class Subscription(Base):
    """Recurring box subscription.

    Attributes:
        id: UUID primary key
        user_id: Owning customer
        box_type: BoxType id
        frequency: monthly or seasonal
        status: active, paused, cancelled or expired
        default_address_id: Address used for generated orders
        wants_personalization: Whether preferences should be honored
        preferences: JSON text with sports, colors, flavors, dietary, sizes
        promo_code: Optional discount code applied to every generated order
        first_cycle_id: Cycle the subscription was attached to on creation
        last_delivered_cycle_id: Last cycle an order was generated for
    """

    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    box_type: Mapped[str] = mapped_column(String(50), nullable=False)
    frequency: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SubscriptionFrequency.monthly.value
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SubscriptionStatus.active.value
    )
    default_address_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True
    )
    wants_personalization: Mapped[bool] = mapped_column(nullable=False, default=False)
    preferences: Mapped[str | None] = mapped_column(Text, nullable=True)
    promo_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    first_cycle_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("delivery_cycles.id"), nullable=True
    )
    last_delivered_cycle_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("delivery_cycles.id"), nullable=True
    )

    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso, onupdate=utc_now_iso
    )

    __table_args__ = (
        Index("idx_subscriptions_status", "status"),
        Index("idx_subscriptions_user_id", "user_id"),
    )

    @property
    def preference_dict(self) -> dict[str, Any]:
        """Parse preferences JSON into a dict (empty when unset)."""
        if not self.preferences:
            return {}
        return json.loads(self.preferences)

    @preference_dict.setter
    def preference_dict(self, value: dict[str, Any]) -> None:
        self.preferences = json.dumps(value)

    def __repr__(self) -> str:
        return (
            f"<Subscription(id={self.id!r}, box_type={self.box_type!r}, "
            f"status={self.status!r})>"
        )


class Order(Base):
    """A materialized order.

    Subscription orders carry both subscription_id and delivery_cycle_id.
    The shipping address, customer and pricing columns are snapshots taken
    at creation time and are never refreshed from the live records.
    """

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    shipping_address: Mapped[str] = mapped_column(Text, nullable=False)
    address_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    box_type: Mapped[str] = mapped_column(String(50), nullable=False)
    wants_personalization: Mapped[bool] = mapped_column(nullable=False, default=False)
    preferences: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Pricing snapshot (in cents to avoid float issues)
    promo_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    discount_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    original_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    final_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    subscription_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("subscriptions.id"), nullable=True
    )
    delivery_cycle_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("delivery_cycles.id"), nullable=True
    )
    order_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderType.subscription.value
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    __table_args__ = (
        UniqueConstraint(
            "subscription_id", "delivery_cycle_id", name="uq_orders_subscription_cycle"
        ),
        Index("idx_orders_delivery_cycle_id", "delivery_cycle_id"),
    )

    @property
    def shipping_address_dict(self) -> dict[str, Any]:
        """Parse the shipping address snapshot."""
        return json.loads(self.shipping_address)

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id!r}, subscription_id={self.subscription_id!r}, "
            f"delivery_cycle_id={self.delivery_cycle_id!r})>"
        )


class SubscriptionHistory(Base):
    """Append-only audit entry for a subscription. Never updated or deleted."""

    __tablename__ = "subscription_history"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    subscription_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    performed_by: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    __table_args__ = (
        Index("idx_subscription_history_sub_created", "subscription_id", "created_at"),
    )

    @property
    def details_dict(self) -> dict[str, Any]:
        """Parse details JSON (empty when unset)."""
        if not self.details:
            return {}
        return json.loads(self.details)


class SiteConfig(Base):
    """Operational key/value configuration (delivery day, cron bookkeeping)."""

    __tablename__ = "site_config"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso, onupdate=utc_now_iso
    )
