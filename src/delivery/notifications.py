"""Operator and customer notifications for order generation.

Each run is classified into one outcome and a transactional template
email is sent to the operator address:

- SUCCESS: no errors and a cycle was generated -> counts summary
- PARTIAL_FAILURE: some subscriptions failed -> counts + error list
- RUN_FAILURE: the run raised before producing a result -> error message

Sending is fire-and-forget relative to generation: dispatch_* schedules a
background task and returns immediately. Send failures are logged, never
retried, and never reach the generation result.

CustomerNotifier sends the delivery-upcoming email for each order a batch
run creates, with the same fire-and-forget contract.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from src.delivery.models import GenerationResult
from src.delivery.protocols import NotificationSender

logger = logging.getLogger(__name__)


class GenerationOutcome(str, Enum):
    """Classification of a generation run for notification purposes."""

    SUCCESS = "success"
    PARTIAL_FAILURE = "errors"
    RUN_FAILURE = "failure"


@dataclass(frozen=True)
class NotificationTemplates:
    """Transactional template ids per outcome. 0 disables that notification."""

    success: int = 0
    errors: int = 0
    failure: int = 0

    def for_outcome(self, outcome: GenerationOutcome) -> int:
        return {
            GenerationOutcome.SUCCESS: self.success,
            GenerationOutcome.PARTIAL_FAILURE: self.errors,
            GenerationOutcome.RUN_FAILURE: self.failure,
        }[outcome]


def classify_outcome(result: GenerationResult) -> GenerationOutcome | None:
    """Classify a completed run.

    Returns:
        PARTIAL_FAILURE when any subscription failed, SUCCESS when a cycle
        was generated cleanly, None for an empty run (no cycle found).
    """
    if result.errors > 0:
        return GenerationOutcome.PARTIAL_FAILURE
    if result.cycle_id is not None:
        return GenerationOutcome.SUCCESS
    return None


def format_error_details(result: GenerationResult) -> str:
    """Flatten per-subscription failures into one line each."""
    return "\n".join(
        f"• {d.subscription_id}: {d.error}" for d in result.error_details
    )


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


class _BackgroundSends:
    """Holds detached send tasks until they finish."""

    def __init__(self) -> None:
        self._pending: set[asyncio.Task] = set()

    async def drain(self) -> None:
        """Wait for all background sends to finish.

        Short-lived processes (CLI) call this before the event loop closes.
        """
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _spawn(self, coro: Any) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task


class GenerationNotifier(_BackgroundSends):
    """Sends generation summaries and alerts to the operator.

    Attributes:
        _sender: Transactional email sender
        _admin_email: Recipient of all generation notifications
        _templates: Template id per outcome
    """

    def __init__(
        self,
        sender: NotificationSender,
        admin_email: str,
        templates: NotificationTemplates,
    ) -> None:
        super().__init__()
        self._sender = sender
        self._admin_email = admin_email
        self._templates = templates

    async def notify_result(self, result: GenerationResult) -> GenerationOutcome | None:
        """Send the notification for a completed run.

        Returns:
            The outcome that was notified, or None if nothing was sent.
        """
        outcome = classify_outcome(result)
        if outcome is None:
            logger.info("Generation run had no eligible cycle; no notification sent")
            return None

        params: dict[str, Any] = {
            "cycleId": result.cycle_id or "",
            "cycleDate": result.cycle_date.isoformat() if result.cycle_date else "",
            "generated": result.generated,
            "skipped": result.skipped,
            "excluded": result.excluded,
            "errors": result.errors,
            "timestamp": _timestamp(),
        }
        if outcome is GenerationOutcome.PARTIAL_FAILURE:
            params["errorDetails"] = format_error_details(result)

        sent = await self._send(outcome, params)
        return outcome if sent else None

    async def notify_failure(self, error: BaseException) -> GenerationOutcome | None:
        """Send the run-failure notification for a run that raised."""
        params = {
            "error": str(error) or type(error).__name__,
            "timestamp": _timestamp(),
        }
        sent = await self._send(GenerationOutcome.RUN_FAILURE, params)
        return GenerationOutcome.RUN_FAILURE if sent else None

    def dispatch_result(self, result: GenerationResult) -> asyncio.Task:
        """Schedule notify_result in the background and return immediately."""
        return self._spawn(self.notify_result(result))

    def dispatch_failure(self, error: BaseException) -> asyncio.Task:
        """Schedule notify_failure in the background and return immediately."""
        return self._spawn(self.notify_failure(error))

    async def _send(self, outcome: GenerationOutcome, params: dict[str, Any]) -> bool:
        template_id = self._templates.for_outcome(outcome)
        if not template_id:
            logger.warning(
                "Skipping %s notification: template id not configured", outcome.value
            )
            return False

        try:
            await self._sender.send_template(
                to_email=self._admin_email,
                template_id=template_id,
                params=params,
                tags=["cron", "order-generation", outcome.value],
            )
        except Exception as e:
            logger.error("Failed to send %s notification email: %s", outcome.value, e)
            return False

        logger.info("Sent %s notification to %s", outcome.value, self._admin_email)
        return True


DEFAULT_TRACK_URL = "https://boxcycle.local/order/track"


class CustomerNotifier(_BackgroundSends):
    """Sends the delivery-upcoming email to a customer whose order was generated.

    Attributes:
        _sender: Transactional email sender
        _template_id: Delivery-upcoming template id; 0 disables the email
        _track_url: Order tracking page, completed with ?orderId=<id>
    """

    def __init__(
        self,
        sender: NotificationSender,
        template_id: int = 0,
        track_url: str = DEFAULT_TRACK_URL,
    ) -> None:
        super().__init__()
        self._sender = sender
        self._template_id = template_id
        self._track_url = track_url

    @property
    def enabled(self) -> bool:
        return bool(self._template_id)

    async def notify_delivery_upcoming(
        self, email: str, box_type: str, delivery_date: date, order_id: str
    ) -> bool:
        """Send the email now.

        Returns:
            True if the sender accepted the email.
        """
        if not self.enabled:
            logger.warning("Skipping delivery-upcoming email: template id not configured")
            return False
        if not email:
            logger.warning("Skipping delivery-upcoming email for order %s: no address", order_id)
            return False

        try:
            await self._sender.send_template(
                to_email=email,
                template_id=self._template_id,
                params={
                    "boxType": box_type,
                    "deliveryDate": delivery_date.isoformat(),
                    "trackUrl": f"{self._track_url}?orderId={order_id}",
                },
                tags=["subscription", "delivery-upcoming"],
            )
        except Exception as e:
            logger.error("Delivery-upcoming email failed for order %s: %s", order_id, e)
            return False
        return True

    def dispatch_delivery_upcoming(
        self, email: str, box_type: str, delivery_date: date, order_id: str
    ) -> asyncio.Task | None:
        """Schedule the email in the background.

        Returns None without scheduling when the template is not configured.
        """
        if not self.enabled:
            logger.debug("Delivery-upcoming email disabled; order %s not notified", order_id)
            return None
        return self._spawn(
            self.notify_delivery_upcoming(email, box_type, delivery_date, order_id)
        )
