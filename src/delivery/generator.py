"""Batch order generation for a delivery cycle.

Shared by the admin trigger (explicit cycle or auto-detect) and the
scheduled trigger (always auto-detect).

Example:
    generator = BatchOrderGenerator(cycles=..., subscriptions=..., pricing=...,
                                    materializer=materializer)
    result = await generator.generate_orders_for_active_cycle(performed_by="system")
"""

import logging
from collections.abc import Callable
from datetime import date

from src.db.models import DeliveryCycle
from src.delivery.inclusion import should_include_in_cycle
from src.delivery.materializer import OrderMaterializer
from src.delivery.models import GenerationResult, MaterializationOutcome
from src.delivery.protocols import (
    CycleRepository,
    PricingCalculator,
    SubscriptionRepository,
)
from src.errors import NotFoundError

logger = logging.getLogger(__name__)

NO_ELIGIBLE_CYCLE_MESSAGE = "No upcoming cycle is due for generation."


class BatchOrderGenerator:
    """Fans out order materialization across every subscription of a cycle.

    Subscriptions are processed strictly one after another. A failing
    subscription is recorded in the result and processing moves on; only
    a failure to resolve the cycle itself escapes as an exception.
    """

    def __init__(
        self,
        cycles: CycleRepository,
        subscriptions: SubscriptionRepository,
        pricing: PricingCalculator,
        materializer: OrderMaterializer,
        clock: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the generator.

        Args:
            cycles: Delivery cycle repository.
            subscriptions: Subscription repository.
            pricing: Pricing calculator (source of enabled box types).
            materializer: Per-pair order materializer.
            clock: Returns today's date; injectable for tests.
        """
        self._cycles = cycles
        self._subscriptions = subscriptions
        self._pricing = pricing
        self._materializer = materializer
        self._clock = clock

    async def generate_orders_for_active_cycle(self, performed_by: str) -> GenerationResult:
        """Generate orders for the earliest upcoming cycle that is due.

        Returns:
            GenerationResult. When no cycle is due the result is empty and
            carries an explanatory message.
        """
        cycle = await self._cycles.get_earliest_eligible_cycle(self._clock())
        if cycle is None:
            logger.info("No eligible delivery cycle for generation")
            return GenerationResult.empty(NO_ELIGIBLE_CYCLE_MESSAGE)

        return await self._generate_for_cycle(cycle, performed_by)

    async def generate_orders_for_specific_cycle(
        self, cycle_id: str, performed_by: str
    ) -> GenerationResult:
        """Generate orders for an explicitly chosen cycle, whatever its status.

        Raises:
            NotFoundError: The cycle does not exist. No subscription is touched.
        """
        cycle = await self._cycles.get_delivery_cycle_by_id(cycle_id)
        if cycle is None:
            raise NotFoundError("Delivery cycle", cycle_id)

        return await self._generate_for_cycle(cycle, performed_by)

    async def _generate_for_cycle(
        self, cycle: DeliveryCycle, performed_by: str
    ) -> GenerationResult:
        cycle_id = cycle.id
        result = GenerationResult(cycle_id=cycle_id, cycle_date=cycle.delivery_date)

        candidates = await self._subscriptions.list_subscriptions_for_generation()
        if not candidates:
            logger.info("No subscriptions to generate for cycle %s", cycle_id)
            return result

        cycles_by_date = await self._cycles.list_cycles()
        enabled_box_types = await self._pricing.list_enabled_box_types()

        logger.info(
            "Generating orders for cycle %s (%s): %d candidate subscriptions",
            cycle_id, cycle.delivery_date, len(candidates),
        )

        for subscription in candidates:
            subscription_id = subscription.id
            if not should_include_in_cycle(
                subscription, cycle, cycles_by_date, enabled_box_types
            ):
                result.excluded += 1
                continue

            try:
                outcome = await self._materializer.materialize(
                    subscription, cycle, performed_by, late_addition=False
                )
            except Exception as e:
                result.record_error(subscription_id, str(e), getattr(e, "code", "E-4001"))
                logger.error("Subscription %s failed: %s", subscription_id, e)
                continue

            if outcome is MaterializationOutcome.CREATED:
                result.generated += 1
            else:
                result.skipped += 1

        logger.info(
            "Generation finished for cycle %s: generated=%d skipped=%d "
            "excluded=%d errors=%d",
            cycle_id, result.generated, result.skipped, result.excluded, result.errors,
        )
        return result
