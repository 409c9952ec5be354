"""Database module for BoxCycle persistence."""

from src.db.connection import (
    SessionLocal,
    engine,
    get_db,
    get_db_context,
    init_db,
)
from src.db.models import (
    Address,
    BoxType,
    CycleStatus,
    DeliveryCycle,
    HistoryAction,
    Order,
    OrderType,
    PromoCode,
    SiteConfig,
    Subscription,
    SubscriptionFrequency,
    SubscriptionHistory,
    SubscriptionStatus,
    UserAccount,
    UserProfile,
)

__all__ = [
    # Models
    "DeliveryCycle",
    "Subscription",
    "Address",
    "UserProfile",
    "UserAccount",
    "BoxType",
    "PromoCode",
    "Order",
    "SubscriptionHistory",
    "SiteConfig",
    # Enums
    "CycleStatus",
    "SubscriptionStatus",
    "SubscriptionFrequency",
    "OrderType",
    "HistoryAction",
    # Connection
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "init_db",
]
