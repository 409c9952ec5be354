"""FastAPI route for the scheduled order generation trigger.

Called by an external scheduler. Always auto-detects the due cycle,
records the run in site config and notifies the operator in the
background.
"""

from functools import lru_cache

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.schemas import ErrorResponse, GenerationResultResponse
from src.cli.config import load_config
from src.db.connection import get_db
from src.delivery.factory import build_customer_notifier, build_generator, build_notifier
from src.delivery.notifications import CustomerNotifier, GenerationNotifier
from src.delivery.triggers import run_scheduled_generation
from src.services import SiteConfigService

router = APIRouter(prefix="/cron", tags=["cron"])


@lru_cache(maxsize=1)
def get_notifier() -> GenerationNotifier:
    """Process-wide notifier; it owns the pending background sends."""
    return build_notifier(load_config().notifications)


@lru_cache(maxsize=1)
def get_customer_notifier() -> CustomerNotifier:
    """Process-wide delivery-upcoming notifier shared by both triggers."""
    return build_customer_notifier(load_config().notifications)


@router.get(
    "/generate-orders",
    response_model=GenerationResultResponse,
    responses={500: {"model": ErrorResponse}},
)
async def generate_orders_scheduled(
    db: Session = Depends(get_db),
    notifier: GenerationNotifier = Depends(get_notifier),
    customer_notifier: CustomerNotifier = Depends(get_customer_notifier),
) -> GenerationResultResponse:
    """Run scheduled generation for the earliest due cycle."""
    result = await run_scheduled_generation(
        build_generator(db, customer_notifier), notifier, SiteConfigService(db)
    )
    return GenerationResultResponse.model_validate(result.to_dict())
