"""Subscription lookups and the cycle pointers written by order generation."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.db.models import Subscription, SubscriptionStatus
from src.errors import NotFoundError

logger = logging.getLogger(__name__)

# Paused subscriptions are loaded so the batch can count them as excluded.
GENERATION_CANDIDATE_STATUSES = (
    SubscriptionStatus.active.value,
    SubscriptionStatus.paused.value,
)


class SubscriptionService:
    """SQLAlchemy-backed subscription repository.

    Attributes:
        db: SQLAlchemy session for database operations.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    async def get_subscription_by_id(self, subscription_id: str) -> Subscription | None:
        return self.db.get(Subscription, subscription_id)

    async def list_subscriptions_for_generation(self) -> list[Subscription]:
        """Candidate subscriptions for a batch run, oldest first."""
        return (
            self.db.query(Subscription)
            .filter(Subscription.status.in_(GENERATION_CANDIDATE_STATUSES))
            .order_by(Subscription.created_at.asc(), Subscription.id.asc())
            .all()
        )

    async def set_last_delivered_cycle(self, subscription_id: str, cycle_id: str) -> None:
        subscription = self._require(subscription_id)
        subscription.last_delivered_cycle_id = cycle_id
        self._commit()

    async def set_first_cycle(self, subscription_id: str, cycle_id: str) -> None:
        subscription = self._require(subscription_id)
        subscription.first_cycle_id = cycle_id
        self._commit()
        logger.debug("Subscription %s first cycle set to %s", subscription_id, cycle_id)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _require(self, subscription_id: str) -> Subscription:
        subscription = self.db.get(Subscription, subscription_id)
        if subscription is None:
            raise NotFoundError("Subscription", subscription_id)
        return subscription
