"""Materialize one order for one (subscription, cycle) pair.

This is the atomic unit of order generation, shared by the batch
generator and the late-join path. It is idempotent: calling it again for
a pair that already has an order is a no-op.

Steps:
  1. Load subscription            -> NotFoundError
  2. Load cycle                   -> NotFoundError
  3. Existing order for the pair? -> ALREADY_EXISTS, nothing else happens
  4. Default address              -> PreconditionError / NotFoundError
  5. Price snapshot               -> CollaboratorError (or typed pricing error)
  6. Customer profile + email     -> NotFoundError / CollaboratorError
  7. Insert order                 -> DuplicateOrderError becomes ALREADY_EXISTS
  8. Set last_delivered_cycle_id
  9. Append 'order_generated' history entry
 10. Schedule the customer's delivery-upcoming email (when configured)

A failure in steps 1-7 leaves no order, no history entry and no
subscription change. Steps 8-10 run after the order exists; their failures
are logged and do not undo the order.
"""

import logging

from src.db.models import DeliveryCycle, HistoryAction, Subscription
from src.delivery.models import MaterializationOutcome, OrderDraft, PriceQuote
from src.delivery.notifications import CustomerNotifier
from src.delivery.protocols import (
    AddressRepository,
    CycleRepository,
    HistorySink,
    IdentityLookup,
    OrderRepository,
    PricingCalculator,
    SubscriptionRepository,
)
from src.errors import (
    CollaboratorError,
    DomainError,
    DuplicateOrderError,
    NotFoundError,
    PreconditionError,
)

logger = logging.getLogger(__name__)


class OrderMaterializer:
    """Creates exactly one order per (subscription, cycle) pair.

    Attributes:
        _subscriptions: Subscription repository
        _cycles: Delivery cycle repository
        _addresses: Address repository
        _pricing: Pricing calculator
        _identity: Customer identity lookup
        _orders: Order repository
        _history: Append-only history sink
        _customer_notifier: Sends the delivery-upcoming email; None disables it
    """

    def __init__(
        self,
        subscriptions: SubscriptionRepository,
        cycles: CycleRepository,
        addresses: AddressRepository,
        pricing: PricingCalculator,
        identity: IdentityLookup,
        orders: OrderRepository,
        history: HistorySink,
        customer_notifier: CustomerNotifier | None = None,
    ) -> None:
        self._subscriptions = subscriptions
        self._cycles = cycles
        self._addresses = addresses
        self._pricing = pricing
        self._identity = identity
        self._orders = orders
        self._history = history
        self._customer_notifier = customer_notifier

    async def generate_single_order_for_subscription(
        self,
        subscription_id: str,
        cycle_id: str,
        performed_by: str,
        late_addition: bool = True,
    ) -> MaterializationOutcome:
        """Load the pair by id and materialize its order.

        Args:
            subscription_id: Subscription to generate for.
            cycle_id: Delivery cycle to attach the order to.
            performed_by: Actor recorded in the history entry.
            late_addition: Whether this order is created outside a batch run.

        Returns:
            CREATED, or ALREADY_EXISTS when the pair already had an order.

        Raises:
            DomainError: Any failure before the order was inserted.
        """
        subscription = await self._subscriptions.get_subscription_by_id(subscription_id)
        if subscription is None:
            raise NotFoundError("Subscription", subscription_id)

        cycle = await self._cycles.get_delivery_cycle_by_id(cycle_id)
        if cycle is None:
            raise NotFoundError("Delivery cycle", cycle_id)

        return await self.materialize(subscription, cycle, performed_by, late_addition)

    async def materialize(
        self,
        subscription: Subscription,
        cycle: DeliveryCycle,
        performed_by: str,
        late_addition: bool,
    ) -> MaterializationOutcome:
        """Materialize the order for an already loaded pair (steps 3-10)."""
        # Plain copies: a failed post-insert write expires the ORM instances.
        subscription_id = subscription.id
        cycle_id = cycle.id
        delivery_date = cycle.delivery_date

        if await self._orders.order_exists(subscription_id, cycle_id):
            logger.debug(
                "Order already exists for subscription %s in cycle %s",
                subscription_id, cycle_id,
            )
            return MaterializationOutcome.ALREADY_EXISTS

        address_id = subscription.default_address_id
        if not address_id:
            raise PreconditionError(
                f"No default address configured on subscription '{subscription_id}'."
            )
        address = await self._addresses.get_address_by_id(address_id, subscription.user_id)
        if address is None:
            raise NotFoundError("Address", address_id)

        price = await self._quote(subscription)

        customer_name, customer_phone, customer_email = await self._load_customer(
            subscription.user_id
        )

        draft = OrderDraft(
            user_id=subscription.user_id,
            customer_email=customer_email,
            customer_full_name=customer_name,
            customer_phone=customer_phone or address.phone,
            shipping_address=address.to_snapshot(),
            address_id=address_id,
            box_type=subscription.box_type,
            wants_personalization=subscription.wants_personalization,
            preferences=subscription.preference_dict,
            price=price,
            subscription_id=subscription_id,
            delivery_cycle_id=cycle_id,
        )
        try:
            order = await self._orders.create_order(draft)
        except DuplicateOrderError:
            logger.info(
                "Concurrent run already created the order for subscription %s "
                "in cycle %s",
                subscription_id, cycle_id,
            )
            return MaterializationOutcome.ALREADY_EXISTS
        order_id = order.id

        # --- Order exists from here on ---
        try:
            await self._subscriptions.set_last_delivered_cycle(subscription_id, cycle_id)
        except Exception as e:
            logger.error(
                "Order %s created but last_delivered_cycle_id update failed for "
                "subscription %s: %s",
                order_id, subscription_id, e,
            )

        try:
            await self._history.append(
                subscription_id=subscription_id,
                action=HistoryAction.order_generated.value,
                details={
                    "cycle_id": cycle_id,
                    "order_id": order_id,
                    "late_addition": late_addition,
                },
                performed_by=performed_by,
            )
        except Exception as e:
            logger.error(
                "Order %s created but history entry failed for subscription %s: %s",
                order_id, subscription_id, e,
            )

        if self._customer_notifier is not None:
            try:
                self._customer_notifier.dispatch_delivery_upcoming(
                    email=customer_email,
                    box_type=draft.box_type,
                    delivery_date=delivery_date,
                    order_id=order_id,
                )
            except Exception as e:
                logger.error(
                    "Order %s created but delivery-upcoming email was not scheduled: %s",
                    order_id, e,
                )

        logger.info(
            "Order %s generated: subscription=%s cycle=%s late_addition=%s",
            order_id, subscription_id, cycle_id, late_addition,
        )
        return MaterializationOutcome.CREATED

    async def _quote(self, subscription: Subscription) -> PriceQuote:
        try:
            return await self._pricing.calculate_price(
                subscription.box_type, subscription.promo_code
            )
        except DomainError:
            raise
        except Exception as e:
            raise CollaboratorError(str(e), code="E-3001") from e

    async def _load_customer(self, user_id: str) -> tuple[str, str | None, str]:
        """Return (full_name, phone, email) for the subscription owner."""
        try:
            profile = await self._identity.get_profile(user_id)
            email = await self._identity.get_account_email(user_id)
        except DomainError:
            raise
        except Exception as e:
            raise CollaboratorError(str(e), code="E-3002") from e

        if profile is None:
            raise NotFoundError("Customer profile", user_id)
        if email is None:
            raise NotFoundError("Customer account", user_id)
        return profile.full_name, profile.phone, email
