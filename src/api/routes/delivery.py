"""FastAPI routes for delivery scheduling, cycles and order generation.

Provides the admin generation trigger, the next-delivery schedule, cycle
state derivation and the forward-only cycle lifecycle transitions.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from src.api.routes.cron import get_customer_notifier
from src.api.schemas import (
    CycleResponse,
    CycleStateResponse,
    DeliveryScheduleResponse,
    ErrorResponse,
    GenerateOrdersRequest,
    GenerationResultResponse,
)
from src.db.connection import get_db
from src.delivery.config import get_delivery_config
from src.delivery.cycle_state import compute_cycle_state
from src.delivery.factory import build_generator
from src.delivery.generator import BatchOrderGenerator
from src.delivery.notifications import CustomerNotifier
from src.delivery.schedule import calculate_next_n_delivery_dates, is_first_delivery
from src.delivery.triggers import run_admin_generation
from src.errors import NotFoundError
from src.services import DeliveryCycleService, InvalidStateTransition, SiteConfigService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/delivery", tags=["delivery"])


def get_generator(
    db: Session = Depends(get_db),
    customer_notifier: CustomerNotifier = Depends(get_customer_notifier),
) -> BatchOrderGenerator:
    """Dependency to get a BatchOrderGenerator bound to the request session."""
    return build_generator(db, customer_notifier)


def get_cycle_service(db: Session = Depends(get_db)) -> DeliveryCycleService:
    """Dependency to get DeliveryCycleService instance."""
    return DeliveryCycleService(db)


@router.post(
    "/generate",
    response_model=GenerationResultResponse,
    responses={404: {"model": ErrorResponse}},
)
async def generate_orders(
    request: GenerateOrdersRequest | None = None,
    performed_by: str = Query("admin", alias="performedBy"),
    generator: BatchOrderGenerator = Depends(get_generator),
) -> GenerationResultResponse:
    """Generate subscription orders for a cycle.

    Args:
        request: Optional body with an explicit cycleId.
        performed_by: Operator recorded in history entries.
        generator: Batch generator dependency.

    Returns:
        Counts of generated, skipped, excluded and failed subscriptions.
    """
    cycle_id = request.cycle_id if request else None
    result = await run_admin_generation(generator, cycle_id, performed_by)
    return GenerationResultResponse.model_validate(result.to_dict())


@router.get("/schedule", response_model=DeliveryScheduleResponse)
async def get_schedule(
    count: int = Query(3, ge=1, le=24),
    db: Session = Depends(get_db),
) -> DeliveryScheduleResponse:
    """Return the next delivery dates computed from site config."""
    config = get_delivery_config(await SiteConfigService(db).get_config_map())
    today = date.today()
    return DeliveryScheduleResponse(
        delivery_day=config.delivery_day,
        subscription_enabled=config.subscription_enabled,
        is_first_delivery=is_first_delivery(config, today),
        next_delivery_dates=calculate_next_n_delivery_dates(config, count, today),
    )


@router.get(
    "/cycles/{cycle_id}/state",
    response_model=CycleStateResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_cycle_state(
    cycle_id: str,
    cycle_svc: DeliveryCycleService = Depends(get_cycle_service),
) -> CycleStateResponse:
    """Return derived flags and labels for a cycle."""
    cycle = await cycle_svc.get_delivery_cycle_by_id(cycle_id)
    if cycle is None:
        raise NotFoundError("Delivery cycle", cycle_id)
    return CycleStateResponse.model_validate(compute_cycle_state(cycle))


@router.post("/cycles/{cycle_id}/deliver", response_model=CycleResponse)
def mark_cycle_delivered(
    cycle_id: str,
    cycle_svc: DeliveryCycleService = Depends(get_cycle_service),
) -> CycleResponse:
    """Transition an upcoming cycle to delivered."""
    try:
        cycle = cycle_svc.mark_delivered(cycle_id)
    except InvalidStateTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CycleResponse.model_validate(cycle)


@router.post(
    "/cycles/{cycle_id}/reveal",
    response_model=CycleResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def reveal_cycle(
    cycle_id: str,
    cycle_svc: DeliveryCycleService = Depends(get_cycle_service),
) -> CycleResponse:
    """Reveal the contents of a delivered cycle."""
    return CycleResponse.model_validate(cycle_svc.reveal(cycle_id))


@router.post("/cycles/{cycle_id}/archive", response_model=CycleResponse)
def archive_cycle(
    cycle_id: str,
    cycle_svc: DeliveryCycleService = Depends(get_cycle_service),
) -> CycleResponse:
    """Transition a delivered cycle to archived."""
    try:
        cycle = cycle_svc.archive(cycle_id)
    except InvalidStateTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CycleResponse.model_validate(cycle)
