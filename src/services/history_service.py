"""Append-only subscription history."""

import json
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.db.models import SubscriptionHistory

logger = logging.getLogger(__name__)


class SubscriptionHistoryService:
    """Writes and reads subscription history entries. Entries are never updated."""

    def __init__(self, db: Session) -> None:
        self.db = db

    async def append(
        self,
        subscription_id: str,
        action: str,
        details: dict[str, Any],
        performed_by: str,
    ) -> None:
        entry = SubscriptionHistory(
            subscription_id=subscription_id,
            action=action,
            details=json.dumps(details),
            performed_by=performed_by,
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.debug("History %s recorded for subscription %s", action, subscription_id)

    def list_for_subscription(self, subscription_id: str) -> list[SubscriptionHistory]:
        """Entries for one subscription, newest first."""
        return (
            self.db.query(SubscriptionHistory)
            .filter(SubscriptionHistory.subscription_id == subscription_id)
            .order_by(SubscriptionHistory.created_at.desc())
            .all()
        )
