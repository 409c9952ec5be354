"""Service layer for BoxCycle.

SQLAlchemy-backed implementations of the collaborators consumed by the
order-generation engine, plus cycle lifecycle management.
"""

from src.services.address_service import AddressService
from src.services.cycle_service import (
    VALID_TRANSITIONS,
    DeliveryCycleService,
    InvalidStateTransition,
)
from src.services.email_sender import BrevoEmailSender
from src.services.history_service import SubscriptionHistoryService
from src.services.identity_service import IdentityService
from src.services.order_service import OrderService
from src.services.pricing_service import PricingService, apply_discount
from src.services.site_config_service import SiteConfigService
from src.services.subscription_service import SubscriptionService

__all__ = [
    "AddressService",
    "BrevoEmailSender",
    "DeliveryCycleService",
    "IdentityService",
    "InvalidStateTransition",
    "OrderService",
    "PricingService",
    "SiteConfigService",
    "SubscriptionHistoryService",
    "SubscriptionService",
    "VALID_TRANSITIONS",
    "apply_discount",
]
