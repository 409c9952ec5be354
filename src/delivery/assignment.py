"""First-cycle assignment for new subscriptions.

Handles the case where a customer subscribes after order generation has
already run for the current cycle:

1. An upcoming cycle exists -> join it; the next batch run picks it up.
2. Otherwise the most recent delivered cycle -> join it and generate the
   order immediately (late addition).
3. Otherwise -> NoCycleAvailableError; the caller defers assignment.
"""

import logging
from collections.abc import Callable
from datetime import date

from src.db.models import CycleStatus, HistoryAction
from src.delivery.materializer import OrderMaterializer
from src.delivery.models import FirstCycleAssignment
from src.delivery.protocols import CycleRepository, HistorySink, SubscriptionRepository
from src.errors import NoCycleAvailableError, NotFoundError

logger = logging.getLogger(__name__)


class CycleAssignmentResolver:
    """Picks the cycle a new subscription joins and handles late joins."""

    def __init__(
        self,
        cycles: CycleRepository,
        subscriptions: SubscriptionRepository,
        materializer: OrderMaterializer,
        history: HistorySink,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._cycles = cycles
        self._subscriptions = subscriptions
        self._materializer = materializer
        self._history = history
        self._clock = clock

    async def determine_first_cycle(self) -> FirstCycleAssignment:
        """Determine which cycle a new subscription should be assigned to.

        Raises:
            NoCycleAvailableError: Neither an upcoming nor a delivered cycle exists.
        """
        upcoming = await self._cycles.get_upcoming_cycle(self._clock())
        if upcoming is not None:
            return FirstCycleAssignment(cycle_id=upcoming.id, needs_immediate_order=False)

        delivered = await self._cycles.get_latest_cycle_with_status(CycleStatus.delivered)
        if delivered is not None:
            return FirstCycleAssignment(cycle_id=delivered.id, needs_immediate_order=True)

        raise NoCycleAvailableError()

    async def attach_new_subscription(
        self, subscription_id: str, performed_by: str
    ) -> FirstCycleAssignment:
        """Attach a freshly created subscription to its first cycle.

        Records first_cycle_id and, for a late join, materializes the order
        right away instead of waiting for the next batch run.

        Raises:
            NotFoundError: The subscription does not exist.
            NoCycleAvailableError: No cycle to attach to yet.
            DomainError: The late-addition order could not be created.
        """
        subscription = await self._subscriptions.get_subscription_by_id(subscription_id)
        if subscription is None:
            raise NotFoundError("Subscription", subscription_id)

        assignment = await self.determine_first_cycle()
        await self._subscriptions.set_first_cycle(subscription_id, assignment.cycle_id)
        await self._history.append(
            subscription_id=subscription_id,
            action=HistoryAction.cycle_assigned.value,
            details={
                "cycle_id": assignment.cycle_id,
                "needs_immediate_order": assignment.needs_immediate_order,
            },
            performed_by=performed_by,
        )
        logger.info(
            "Subscription %s assigned to cycle %s (late join: %s)",
            subscription_id, assignment.cycle_id, assignment.needs_immediate_order,
        )

        if assignment.needs_immediate_order:
            await self._materializer.generate_single_order_for_subscription(
                subscription_id,
                assignment.cycle_id,
                performed_by,
                late_addition=True,
            )

        return assignment
