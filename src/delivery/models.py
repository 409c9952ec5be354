"""Data models for order generation.

Defines transient dataclasses passed between the generation components:
price quotes, order drafts, assignment decisions and the per-run
generation summary. None of these are persisted as-is.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


def _cents_to_eur(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class PriceQuote:
    """Authoritative price snapshot from the pricing collaborator."""

    original_price_cents: int
    """List price of the box in euro cents."""

    final_price_cents: int
    """Price after the promo discount in euro cents."""

    discount_percent: int = 0
    """Applied discount (0 when no valid promo code)."""

    promo_code: str | None = None
    """Promo code that produced the discount, if any."""

    @property
    def original_price_eur(self) -> Decimal:
        return _cents_to_eur(self.original_price_cents)

    @property
    def final_price_eur(self) -> Decimal:
        return _cents_to_eur(self.final_price_cents)


@dataclass
class OrderDraft:
    """Everything needed to insert a subscription order row.

    All customer, address and pricing fields are snapshots taken at
    materialization time.
    """

    user_id: str
    customer_email: str
    customer_full_name: str
    customer_phone: str | None
    shipping_address: dict[str, Any]
    address_id: str
    box_type: str
    wants_personalization: bool
    preferences: dict[str, Any]
    price: PriceQuote
    subscription_id: str
    delivery_cycle_id: str


class MaterializationOutcome(str, Enum):
    """Result of materializing one (subscription, cycle) pair."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


@dataclass(frozen=True)
class FirstCycleAssignment:
    """Which cycle a new subscription joins."""

    cycle_id: str
    """Cycle the subscription is attached to."""

    needs_immediate_order: bool
    """True when generation already ran for the cycle (late join)."""


@dataclass(frozen=True)
class GenerationErrorDetail:
    """One subscription that failed during a batch run."""

    subscription_id: str
    error: str
    """Error message, captured verbatim."""

    code: str = "E-4001"
    """E-XXXX error code of the failure."""

    def to_dict(self) -> dict[str, str]:
        return {
            "subscriptionId": self.subscription_id,
            "error": self.error,
            "code": self.code,
        }


@dataclass
class GenerationResult:
    """Summary of one batch generation run.

    Returned for every completed run, including runs where individual
    subscriptions failed. A run that could not even resolve its cycle
    raises instead of returning this.
    """

    cycle_id: str | None
    """Cycle that was generated (None when no eligible cycle was found)."""

    cycle_date: date | None
    """Delivery date of that cycle."""

    generated: int = 0
    """Orders created in this run."""

    skipped: int = 0
    """Subscriptions that already had an order for the cycle."""

    excluded: int = 0
    """Subscriptions filtered out by the inclusion rules."""

    errors: int = 0
    """Subscriptions whose materialization failed."""

    error_details: list[GenerationErrorDetail] = field(default_factory=list)
    """One entry per failed subscription."""

    message: str | None = None
    """Explanation for a run that had nothing to do."""

    @classmethod
    def empty(cls, message: str) -> "GenerationResult":
        """Result for a run that found no eligible cycle."""
        return cls(cycle_id=None, cycle_date=None, message=message)

    @property
    def has_errors(self) -> bool:
        return self.errors > 0

    def record_error(self, subscription_id: str, error: str, code: str) -> None:
        """Count a failed subscription and keep its details."""
        self.errors += 1
        self.error_details.append(
            GenerationErrorDetail(subscription_id=subscription_id, error=error, code=code)
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used by the HTTP surfaces."""
        data: dict[str, Any] = {
            "cycleId": self.cycle_id,
            "cycleDate": self.cycle_date.isoformat() if self.cycle_date else None,
            "generated": self.generated,
            "skipped": self.skipped,
            "excluded": self.excluded,
            "errors": self.errors,
            "errorDetails": [d.to_dict() for d in self.error_details],
        }
        if self.message is not None:
            data["message"] = self.message
        return data
