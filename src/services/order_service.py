"""Order persistence for generated subscription orders.

The (subscription_id, delivery_cycle_id) unique constraint is the
authoritative duplicate guard. An IntegrityError on insert is reported as
DuplicateOrderError so callers can treat a lost race as "already exists".
"""

import json
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.db.models import Order, OrderType
from src.delivery.models import OrderDraft
from src.errors import DuplicateOrderError

logger = logging.getLogger(__name__)


class OrderService:
    """SQLAlchemy-backed order repository."""

    def __init__(self, db: Session) -> None:
        self.db = db

    async def order_exists(self, subscription_id: str, cycle_id: str) -> bool:
        return (
            self.db.query(Order.id)
            .filter(
                Order.subscription_id == subscription_id,
                Order.delivery_cycle_id == cycle_id,
            )
            .first()
            is not None
        )

    async def create_order(self, draft: OrderDraft) -> Order:
        """Insert the order for a (subscription, cycle) pair.

        Raises:
            DuplicateOrderError: The pair already has an order.
        """
        order = Order(
            user_id=draft.user_id,
            customer_email=draft.customer_email,
            customer_full_name=draft.customer_full_name,
            customer_phone=draft.customer_phone,
            shipping_address=json.dumps(draft.shipping_address),
            address_id=draft.address_id,
            box_type=draft.box_type,
            wants_personalization=draft.wants_personalization,
            preferences=json.dumps(draft.preferences) if draft.preferences else None,
            promo_code=draft.price.promo_code,
            discount_percent=draft.price.discount_percent,
            original_price_cents=draft.price.original_price_cents,
            final_price_cents=draft.price.final_price_cents,
            subscription_id=draft.subscription_id,
            delivery_cycle_id=draft.delivery_cycle_id,
            order_type=OrderType.subscription.value,
        )
        self.db.add(order)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if "uq_orders_subscription_cycle" not in str(e.orig) and not (
                "orders.subscription_id" in str(e.orig)
                and "orders.delivery_cycle_id" in str(e.orig)
            ):
                raise
            raise DuplicateOrderError(draft.subscription_id, draft.delivery_cycle_id) from e
        except SQLAlchemyError:
            self.db.rollback()
            raise

        self.db.refresh(order)
        return order

    def list_orders_for_cycle(self, cycle_id: str) -> list[Order]:
        return (
            self.db.query(Order)
            .filter(Order.delivery_cycle_id == cycle_id)
            .order_by(Order.created_at.asc())
            .all()
        )
