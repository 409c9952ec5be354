"""Error handling framework for BoxCycle.

This package provides:
- Error code registry with E-XXXX format codes
- Typed domain exceptions carrying those codes

Error categories:
- E-1xxx: Missing records
- E-2xxx: Precondition failures
- E-3xxx: Collaborator failures
- E-4xxx: System/internal errors
"""

from src.errors.domain import (
    CollaboratorError,
    ConflictError,
    DomainError,
    DuplicateOrderError,
    NoCycleAvailableError,
    NotFoundError,
    PreconditionError,
)
from src.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    get_error,
    get_errors_by_category,
)

__all__ = [
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "get_error",
    "get_errors_by_category",
    # Domain exceptions
    "DomainError",
    "NotFoundError",
    "PreconditionError",
    "NoCycleAvailableError",
    "CollaboratorError",
    "ConflictError",
    "DuplicateOrderError",
]
