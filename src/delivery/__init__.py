"""Delivery scheduling and subscription order generation.

This package provides:
- Delivery configuration parsing and date calculation
- Cycle state derivation for admin views
- First-cycle assignment for new subscriptions
- Idempotent per-subscription order materialization
- Batch generation with per-subscription failure isolation
- Operator notifications for generation runs and customer delivery emails
"""

from src.delivery.assignment import CycleAssignmentResolver
from src.delivery.config import DeliveryConfig, get_delivery_config
from src.delivery.cycle_state import CYCLE_STATUS_LABELS, CycleState, compute_cycle_state
from src.delivery.generator import BatchOrderGenerator
from src.delivery.inclusion import should_include_in_cycle
from src.delivery.materializer import OrderMaterializer
from src.delivery.models import (
    FirstCycleAssignment,
    GenerationErrorDetail,
    GenerationResult,
    MaterializationOutcome,
    OrderDraft,
    PriceQuote,
)
from src.delivery.notifications import (
    CustomerNotifier,
    GenerationNotifier,
    GenerationOutcome,
    NotificationTemplates,
    classify_outcome,
)
from src.delivery.schedule import (
    calculate_next_delivery_date,
    calculate_next_n_delivery_dates,
    is_first_delivery,
)
from src.delivery.triggers import run_admin_generation, run_scheduled_generation

__all__ = [
    "DeliveryConfig",
    "get_delivery_config",
    "calculate_next_delivery_date",
    "calculate_next_n_delivery_dates",
    "is_first_delivery",
    "CycleState",
    "CYCLE_STATUS_LABELS",
    "compute_cycle_state",
    "should_include_in_cycle",
    "PriceQuote",
    "OrderDraft",
    "MaterializationOutcome",
    "FirstCycleAssignment",
    "GenerationErrorDetail",
    "GenerationResult",
    "OrderMaterializer",
    "BatchOrderGenerator",
    "CycleAssignmentResolver",
    "GenerationNotifier",
    "CustomerNotifier",
    "GenerationOutcome",
    "NotificationTemplates",
    "classify_outcome",
    "run_admin_generation",
    "run_scheduled_generation",
]
