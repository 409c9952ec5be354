"""FastAPI routes for subscription cycle assignment and history."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.schemas import (
    AssignFirstCycleRequest,
    ErrorResponse,
    FirstCycleAssignmentResponse,
    SubscriptionHistoryResponse,
)
from src.db.connection import get_db
from src.delivery.assignment import CycleAssignmentResolver
from src.delivery.factory import build_assignment_resolver
from src.errors import NotFoundError
from src.services import SubscriptionHistoryService, SubscriptionService

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


def get_assignment_resolver(db: Session = Depends(get_db)) -> CycleAssignmentResolver:
    """Dependency to get a CycleAssignmentResolver bound to the request session."""
    return build_assignment_resolver(db)


@router.post(
    "/{subscription_id}/first-cycle",
    response_model=FirstCycleAssignmentResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def assign_first_cycle(
    subscription_id: str,
    request: AssignFirstCycleRequest | None = None,
    resolver: CycleAssignmentResolver = Depends(get_assignment_resolver),
) -> FirstCycleAssignmentResponse:
    """Attach a new subscription to its first delivery cycle.

    For a late join the order is generated immediately.
    """
    performed_by = request.performed_by if request else "admin"
    assignment = await resolver.attach_new_subscription(subscription_id, performed_by)
    return FirstCycleAssignmentResponse.model_validate(assignment)


@router.get(
    "/{subscription_id}/history",
    response_model=list[SubscriptionHistoryResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_subscription_history(
    subscription_id: str,
    db: Session = Depends(get_db),
) -> list[SubscriptionHistoryResponse]:
    """Audit trail for one subscription, newest first."""
    if await SubscriptionService(db).get_subscription_by_id(subscription_id) is None:
        raise NotFoundError("Subscription", subscription_id)
    entries = SubscriptionHistoryService(db).list_for_subscription(subscription_id)
    return [SubscriptionHistoryResponse.model_validate(e) for e in entries]
