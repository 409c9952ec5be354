"""Error code registry with E-XXXX format codes.

This module defines the error code system for BoxCycle, organizing errors
into categories:
- E-1xxx: Missing records (subscription, cycle, address, identity)
- E-2xxx: Precondition failures
- E-3xxx: Collaborator failures (pricing, identity, notifications)
- E-4xxx: System/internal errors

Each error includes a code, title, message template, and remediation steps.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    NOT_FOUND = "not_found"  # E-1xxx
    PRECONDITION = "precondition"  # E-2xxx
    COLLABORATOR = "collaborator"  # E-3xxx
    SYSTEM = "system"  # E-4xxx


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for display.
        message_template: Message with {placeholders} for context.
        remediation: Action the operator should take to resolve.
        is_retryable: Whether the operation can be retried without changes.
    """

    code: str
    category: ErrorCategory
    title: str
    message_template: str
    remediation: str
    is_retryable: bool = False


ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Not found (E-1xxx)
    "E-1001": ErrorCode(
        code="E-1001",
        category=ErrorCategory.NOT_FOUND,
        title="Subscription Not Found",
        message_template="Subscription '{identifier}' not found",
        remediation="Verify the subscription id. It may have been deleted.",
    ),
    "E-1002": ErrorCode(
        code="E-1002",
        category=ErrorCategory.NOT_FOUND,
        title="Delivery Cycle Not Found",
        message_template="Delivery cycle '{identifier}' not found",
        remediation="Pick an existing cycle or omit the id to auto-detect.",
    ),
    "E-1003": ErrorCode(
        code="E-1003",
        category=ErrorCategory.NOT_FOUND,
        title="Address Not Found",
        message_template="Address '{identifier}' not found",
        remediation="Ask the customer to save a new default address.",
    ),
    "E-1004": ErrorCode(
        code="E-1004",
        category=ErrorCategory.NOT_FOUND,
        title="Customer Profile Not Found",
        message_template="Customer profile '{identifier}' not found",
        remediation="Recreate the customer profile before regenerating.",
    ),
    "E-1005": ErrorCode(
        code="E-1005",
        category=ErrorCategory.NOT_FOUND,
        title="Customer Account Not Found",
        message_template="Customer account '{identifier}' not found",
        remediation="Check that the customer account still exists.",
    ),
    # Preconditions (E-2xxx)
    "E-2001": ErrorCode(
        code="E-2001",
        category=ErrorCategory.PRECONDITION,
        title="Missing Default Address",
        message_template="No default address configured on subscription '{subscription_id}'.",
        remediation="Set a default address on the subscription and rerun generation.",
    ),
    "E-2002": ErrorCode(
        code="E-2002",
        category=ErrorCategory.PRECONDITION,
        title="No Delivery Cycle Available",
        message_template="No delivery cycle is available for assignment.",
        remediation="Create an upcoming delivery cycle, then attach the subscription.",
        is_retryable=True,
    ),
    "E-2003": ErrorCode(
        code="E-2003",
        category=ErrorCategory.PRECONDITION,
        title="Invalid Box Type",
        message_template="Invalid box type: {box_type}",
        remediation="Update the subscription to a box type that exists in the catalog.",
    ),
    # Collaborators (E-3xxx)
    "E-3001": ErrorCode(
        code="E-3001",
        category=ErrorCategory.COLLABORATOR,
        title="Pricing Unavailable",
        message_template="Price calculation failed: {reason}",
        remediation="Rerun generation. Already generated orders are skipped.",
        is_retryable=True,
    ),
    "E-3002": ErrorCode(
        code="E-3002",
        category=ErrorCategory.COLLABORATOR,
        title="Identity Lookup Failed",
        message_template="Customer identity lookup failed: {reason}",
        remediation="Rerun generation. Already generated orders are skipped.",
        is_retryable=True,
    ),
    "E-3003": ErrorCode(
        code="E-3003",
        category=ErrorCategory.COLLABORATOR,
        title="Notification Delivery Failed",
        message_template="Transactional email could not be sent: {reason}",
        remediation="Check the email provider API key and template ids.",
        is_retryable=True,
    ),
    # System (E-4xxx)
    "E-4001": ErrorCode(
        code="E-4001",
        category=ErrorCategory.SYSTEM,
        title="Unexpected Error",
        message_template="Unexpected error: {reason}",
        remediation="Check the server logs for the full traceback.",
    ),
    "E-4002": ErrorCode(
        code="E-4002",
        category=ErrorCategory.SYSTEM,
        title="Duplicate Order",
        message_template=(
            "An order already exists for subscription '{subscription_id}' "
            "in cycle '{cycle_id}'."
        ),
        remediation="No action needed. The existing order is kept.",
    ),
}


def get_error(code: str) -> ErrorCode | None:
    """Look up an error code in the registry.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Get all error codes in a category.

    Args:
        category: The category to filter by.

    Returns:
        List of ErrorCode objects in the category.
    """
    return [e for e in ERROR_REGISTRY.values() if e.category == category]
