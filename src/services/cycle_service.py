"""Delivery cycle service with lifecycle state machine validation.

Implements the cycle repository consumed by the generation engine and the
forward-only admin transitions (deliver, reveal, archive).
"""

import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.db.models import CycleStatus, DeliveryCycle, SiteConfig, utc_now_iso
from src.delivery.config import REVEALED_BOX_ENABLED_KEY
from src.errors import NotFoundError, PreconditionError

logger = logging.getLogger(__name__)


class InvalidStateTransition(Exception):
    """Raised when attempting an invalid cycle state transition.

    Attributes:
        current_state: The current state of the cycle.
        attempted_state: The state that was attempted.
        allowed_transitions: List of valid transition targets from current state.
    """

    def __init__(
        self,
        current_state: CycleStatus,
        attempted_state: CycleStatus,
        allowed_transitions: list[CycleStatus],
    ) -> None:
        self.current_state = current_state
        self.attempted_state = attempted_state
        self.allowed_transitions = allowed_transitions
        allowed_str = ", ".join(s.value for s in allowed_transitions) or "none (terminal)"
        super().__init__(
            f"Cannot transition cycle from '{current_state.value}' to "
            f"'{attempted_state.value}'. Allowed transitions: {allowed_str}"
        )


# Forward-only cycle lifecycle
VALID_TRANSITIONS: dict[CycleStatus, list[CycleStatus]] = {
    CycleStatus.upcoming: [CycleStatus.delivered],
    CycleStatus.delivered: [CycleStatus.archived],
    CycleStatus.archived: [],  # terminal
}


class DeliveryCycleService:
    """Delivery cycle reads and lifecycle transitions.

    Attributes:
        db: SQLAlchemy session for database operations.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    # =========================================================================
    # Repository reads
    # =========================================================================

    async def get_delivery_cycle_by_id(self, cycle_id: str) -> DeliveryCycle | None:
        return self.db.query(DeliveryCycle).filter(DeliveryCycle.id == cycle_id).first()

    async def get_earliest_eligible_cycle(self, today: date) -> DeliveryCycle | None:
        """Earliest upcoming cycle that is due (delivery_date <= today)."""
        return (
            self.db.query(DeliveryCycle)
            .filter(DeliveryCycle.status == CycleStatus.upcoming.value)
            .filter(DeliveryCycle.delivery_date <= today)
            .order_by(DeliveryCycle.delivery_date.asc())
            .first()
        )

    async def get_upcoming_cycle(self, today: date) -> DeliveryCycle | None:
        """Nearest upcoming cycle that has not passed yet (delivery_date >= today)."""
        return (
            self.db.query(DeliveryCycle)
            .filter(DeliveryCycle.status == CycleStatus.upcoming.value)
            .filter(DeliveryCycle.delivery_date >= today)
            .order_by(DeliveryCycle.delivery_date.asc())
            .first()
        )

    async def get_latest_cycle_with_status(
        self, status: CycleStatus
    ) -> DeliveryCycle | None:
        return (
            self.db.query(DeliveryCycle)
            .filter(DeliveryCycle.status == status.value)
            .order_by(DeliveryCycle.delivery_date.desc())
            .first()
        )

    async def list_cycles(self) -> list[DeliveryCycle]:
        return self.db.query(DeliveryCycle).order_by(DeliveryCycle.delivery_date.asc()).all()

    # =========================================================================
    # Admin operations
    # =========================================================================

    def mark_delivered(self, cycle_id: str) -> DeliveryCycle:
        """Transition an upcoming cycle to delivered."""
        return self._transition(cycle_id, CycleStatus.delivered)

    def archive(self, cycle_id: str) -> DeliveryCycle:
        """Transition a delivered cycle to archived."""
        return self._transition(cycle_id, CycleStatus.archived)

    def reveal(self, cycle_id: str) -> DeliveryCycle:
        """Reveal the contents of a delivered cycle.

        Also switches the storefront's revealed-box section on.

        Raises:
            NotFoundError: The cycle does not exist.
            PreconditionError: The cycle is not delivered.
        """
        cycle = self._require(cycle_id)
        if cycle.status != CycleStatus.delivered.value:
            raise PreconditionError(
                f"Delivery cycle '{cycle_id}' must be delivered before it can be "
                f"revealed (status: {cycle.status})."
            )

        cycle.is_revealed = True
        cycle.revealed_at = utc_now_iso()
        flag = self.db.get(SiteConfig, REVEALED_BOX_ENABLED_KEY)
        if flag is None:
            self.db.add(SiteConfig(key=REVEALED_BOX_ENABLED_KEY, value="true"))
        else:
            flag.value = "true"
        self._commit()
        self.db.refresh(cycle)
        logger.info("Revealed delivery cycle %s", cycle_id)
        return cycle

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _require(self, cycle_id: str) -> DeliveryCycle:
        cycle = self.db.get(DeliveryCycle, cycle_id)
        if cycle is None:
            raise NotFoundError("Delivery cycle", cycle_id)
        return cycle

    def _transition(self, cycle_id: str, new_status: CycleStatus) -> DeliveryCycle:
        cycle = self._require(cycle_id)
        current = CycleStatus(cycle.status)
        allowed = VALID_TRANSITIONS[current]
        if new_status not in allowed:
            raise InvalidStateTransition(current, new_status, allowed)

        cycle.status = new_status.value
        self._commit()
        self.db.refresh(cycle)
        logger.info(
            "Delivery cycle %s: %s -> %s", cycle_id, current.value, new_status.value
        )
        return cycle
