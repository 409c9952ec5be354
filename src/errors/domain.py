"""Typed domain exceptions for order generation and API error mapping.

Every exception carries an E-XXXX code from the registry so batch runs
can record tagged per-subscription failures and routes can map the
exception type to an HTTP status code.

Usage:
    # In service layer
    raise NotFoundError("Subscription", subscription_id)

    # In route handler
    try:
        result = await generator.generate_orders_for_specific_cycle(cycle_id, "admin")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
"""

from src.errors.registry import get_error

# Resource type -> E-1xxx code
_NOT_FOUND_CODES = {
    "Subscription": "E-1001",
    "Delivery cycle": "E-1002",
    "Address": "E-1003",
    "Customer profile": "E-1004",
    "Customer account": "E-1005",
}


class DomainError(Exception):
    """Base exception for all domain errors."""

    code = "E-4001"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code

    @property
    def remediation(self) -> str:
        """Remediation text from the registry, empty for unknown codes."""
        error_def = get_error(self.code)
        return error_def.remediation if error_def else ""


class NotFoundError(DomainError):
    """Resource was not found. Maps to HTTP 404."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        super().__init__(
            f"{resource_type} '{identifier}' not found",
            code=_NOT_FOUND_CODES.get(resource_type, "E-4001"),
        )
        self.resource_type = resource_type
        self.identifier = identifier


class PreconditionError(DomainError):
    """A record exists but is not in a state that allows the operation.

    Maps to HTTP 422.
    """

    code = "E-2001"


class NoCycleAvailableError(PreconditionError):
    """Neither an upcoming nor a delivered cycle exists for assignment."""

    code = "E-2002"

    def __init__(self) -> None:
        super().__init__("No delivery cycle is available. Please try again later.")


class CollaboratorError(DomainError):
    """An external collaborator (pricing, identity) failed. Maps to HTTP 502."""

    code = "E-3001"


class ConflictError(DomainError):
    """Resource conflict (e.g., duplicate). Maps to HTTP 409."""

    code = "E-4002"


class DuplicateOrderError(ConflictError):
    """An order already exists for the (subscription, cycle) pair."""

    def __init__(self, subscription_id: str, cycle_id: str) -> None:
        super().__init__(
            f"Order already exists for subscription '{subscription_id}' "
            f"in cycle '{cycle_id}'"
        )
        self.subscription_id = subscription_id
        self.cycle_id = cycle_id
