"""Entry points that invoke batch generation.

The admin trigger generates for an explicit cycle or auto-detects one.
The scheduled trigger always auto-detects, records its last run in site
config and notifies the operator.
"""

import json
import logging
from datetime import UTC, datetime

from src.delivery.generator import BatchOrderGenerator
from src.delivery.models import GenerationResult
from src.delivery.notifications import GenerationNotifier
from src.delivery.protocols import SiteConfigStore

logger = logging.getLogger(__name__)

CRON_LAST_RUN_KEY = "cron_last_run"
CRON_LAST_RESULT_KEY = "cron_last_result"

SCHEDULED_ACTOR = "system"


async def run_admin_generation(
    generator: BatchOrderGenerator,
    cycle_id: str | None,
    performed_by: str,
) -> GenerationResult:
    """Run generation on operator request.

    Args:
        generator: Batch generator.
        cycle_id: Explicit cycle, or None to use the earliest due cycle.
        performed_by: Operator id recorded in history entries.

    Raises:
        NotFoundError: cycle_id was given but does not exist.
    """
    logger.info(
        "Admin generation requested by %s for cycle %s",
        performed_by, cycle_id or "<auto>",
    )
    if cycle_id:
        return await generator.generate_orders_for_specific_cycle(cycle_id, performed_by)
    return await generator.generate_orders_for_active_cycle(performed_by)


async def run_scheduled_generation(
    generator: BatchOrderGenerator,
    notifier: GenerationNotifier,
    site_config: SiteConfigStore,
) -> GenerationResult:
    """Run the scheduled generation pass.

    The notification is dispatched in the background; callers that exit
    right after (CLI) should await notifier.drain().

    Raises:
        Exception: Whatever escaped the batch call, after the failure was
            recorded and the run-failure notification dispatched.
    """
    started_at = datetime.now(UTC).isoformat()
    try:
        result = await generator.generate_orders_for_active_cycle(SCHEDULED_ACTOR)
    except Exception as e:
        logger.error("Scheduled generation failed: %s", e)
        await _record_run(
            site_config, started_at, {"success": False, "error": str(e)}
        )
        notifier.dispatch_failure(e)
        raise

    await _record_run(site_config, started_at, {"success": True, **result.to_dict()})
    notifier.dispatch_result(result)
    return result


async def _record_run(
    site_config: SiteConfigStore, started_at: str, summary: dict
) -> None:
    try:
        await site_config.upsert(CRON_LAST_RUN_KEY, started_at)
        await site_config.upsert(CRON_LAST_RESULT_KEY, json.dumps(summary))
    except Exception as e:
        logger.error("Failed to record scheduled run bookkeeping: %s", e)
