"""Collaborator interfaces consumed by the order-generation engine.

The engine only talks to these protocols. SQLAlchemy-backed
implementations live in src/services/; tests may substitute mocks.
"""

from datetime import date
from typing import Any, Protocol

from src.db.models import (
    Address,
    CycleStatus,
    DeliveryCycle,
    Order,
    Subscription,
    UserProfile,
)
from src.delivery.models import OrderDraft, PriceQuote


class CycleRepository(Protocol):
    """Read access to delivery cycles."""

    async def get_delivery_cycle_by_id(self, cycle_id: str) -> DeliveryCycle | None: ...

    async def get_earliest_eligible_cycle(self, today: date) -> DeliveryCycle | None:
        """Earliest upcoming cycle whose delivery_date <= today."""
        ...

    async def get_upcoming_cycle(self, today: date) -> DeliveryCycle | None:
        """Nearest upcoming cycle whose delivery_date >= today."""
        ...

    async def get_latest_cycle_with_status(
        self, status: CycleStatus
    ) -> DeliveryCycle | None:
        """Most recent cycle (by delivery_date) in the given status."""
        ...

    async def list_cycles(self) -> list[DeliveryCycle]:
        """All cycles sorted by delivery_date ascending."""
        ...


class SubscriptionRepository(Protocol):
    """Subscription lookups and the two fields the engine writes."""

    async def get_subscription_by_id(self, subscription_id: str) -> Subscription | None: ...

    async def list_subscriptions_for_generation(self) -> list[Subscription]:
        """Subscriptions that are candidates for a cycle (active and paused)."""
        ...

    async def set_last_delivered_cycle(self, subscription_id: str, cycle_id: str) -> None: ...

    async def set_first_cycle(self, subscription_id: str, cycle_id: str) -> None: ...


class AddressRepository(Protocol):
    async def get_address_by_id(self, address_id: str, owner_id: str) -> Address | None:
        """Address scoped to its owner; None when missing or owned by someone else."""
        ...


class PricingCalculator(Protocol):
    async def calculate_price(self, box_type: str, promo_code: str | None) -> PriceQuote: ...

    async def list_enabled_box_types(self) -> set[str]: ...


class IdentityLookup(Protocol):
    async def get_profile(self, user_id: str) -> UserProfile | None: ...

    async def get_account_email(self, user_id: str) -> str | None: ...


class OrderRepository(Protocol):
    async def order_exists(self, subscription_id: str, cycle_id: str) -> bool: ...

    async def create_order(self, draft: OrderDraft) -> Order:
        """Insert the order.

        Raises:
            DuplicateOrderError: An order already exists for the pair.
        """
        ...


class HistorySink(Protocol):
    """Append-only subscription history."""

    async def append(
        self,
        subscription_id: str,
        action: str,
        details: dict[str, Any],
        performed_by: str,
    ) -> None: ...


class NotificationSender(Protocol):
    """Template-based transactional email sender."""

    async def send_template(
        self,
        to_email: str,
        template_id: int,
        params: dict[str, Any],
        tags: list[str] | None = None,
    ) -> None: ...


class SiteConfigStore(Protocol):
    async def get_config_map(self) -> dict[str, str | None]: ...

    async def upsert(self, key: str, value: str) -> None: ...
