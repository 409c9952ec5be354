"""Wiring of the generation engine onto SQLAlchemy-backed services.

Used by the API routes and the CLI so both surfaces build the engine the
same way from one database session.
"""

from sqlalchemy.orm import Session

from src.cli.config import NotificationConfig
from src.delivery.assignment import CycleAssignmentResolver
from src.delivery.generator import BatchOrderGenerator
from src.delivery.materializer import OrderMaterializer
from src.delivery.notifications import (
    CustomerNotifier,
    GenerationNotifier,
    NotificationTemplates,
)
from src.services.address_service import AddressService
from src.services.cycle_service import DeliveryCycleService
from src.services.email_sender import BrevoEmailSender
from src.services.history_service import SubscriptionHistoryService
from src.services.identity_service import IdentityService
from src.services.order_service import OrderService
from src.services.pricing_service import PricingService
from src.services.subscription_service import SubscriptionService


def build_materializer(
    db: Session, customer_notifier: CustomerNotifier | None = None
) -> OrderMaterializer:
    return OrderMaterializer(
        subscriptions=SubscriptionService(db),
        cycles=DeliveryCycleService(db),
        addresses=AddressService(db),
        pricing=PricingService(db),
        identity=IdentityService(db),
        orders=OrderService(db),
        history=SubscriptionHistoryService(db),
        customer_notifier=customer_notifier,
    )


def build_generator(
    db: Session, customer_notifier: CustomerNotifier | None = None
) -> BatchOrderGenerator:
    """Batch generator; customer_notifier emails each customer whose order is created."""
    return BatchOrderGenerator(
        cycles=DeliveryCycleService(db),
        subscriptions=SubscriptionService(db),
        pricing=PricingService(db),
        materializer=build_materializer(db, customer_notifier),
    )


def build_assignment_resolver(db: Session) -> CycleAssignmentResolver:
    return CycleAssignmentResolver(
        cycles=DeliveryCycleService(db),
        subscriptions=SubscriptionService(db),
        materializer=build_materializer(db),
        history=SubscriptionHistoryService(db),
    )


def build_notifier(settings: NotificationConfig) -> GenerationNotifier:
    """Build the operator notifier from the notifications config section."""
    templates = NotificationTemplates(
        success=settings.success_template_id,
        errors=settings.errors_template_id,
        failure=settings.failure_template_id,
    )
    return GenerationNotifier(_build_sender(settings), settings.admin_email, templates)


def _build_sender(settings: NotificationConfig) -> BrevoEmailSender:
    return BrevoEmailSender(
        api_key=settings.brevo_api_key,
        sender_email=settings.sender_email,
        sender_name=settings.sender_name,
    )


def build_customer_notifier(settings: NotificationConfig) -> CustomerNotifier:
    """Build the delivery-upcoming notifier from the notifications config section."""
    return CustomerNotifier(
        _build_sender(settings),
        template_id=settings.delivery_upcoming_template_id,
        track_url=settings.track_url,
    )
