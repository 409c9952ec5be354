"""Unit tests for src/errors/registry.py and the domain exceptions.

Tests verify:
- Every code raised by the domain exceptions is registered
- Codes are grouped under the category matching their prefix
"""

import pytest

from src.errors import (
    CollaboratorError,
    DomainError,
    DuplicateOrderError,
    NoCycleAvailableError,
    NotFoundError,
    PreconditionError,
)
from src.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    get_error,
    get_errors_by_category,
)


@pytest.mark.parametrize(
    "code,category,title",
    [
        ("E-1001", ErrorCategory.NOT_FOUND, "Subscription Not Found"),
        ("E-1002", ErrorCategory.NOT_FOUND, "Delivery Cycle Not Found"),
        ("E-2001", ErrorCategory.PRECONDITION, "Missing Default Address"),
        ("E-2002", ErrorCategory.PRECONDITION, "No Delivery Cycle Available"),
        ("E-2003", ErrorCategory.PRECONDITION, "Invalid Box Type"),
        ("E-3001", ErrorCategory.COLLABORATOR, "Pricing Unavailable"),
        ("E-3003", ErrorCategory.COLLABORATOR, "Notification Delivery Failed"),
        ("E-4001", ErrorCategory.SYSTEM, "Unexpected Error"),
        ("E-4002", ErrorCategory.SYSTEM, "Duplicate Order"),
    ],
)
def test_error_codes_registered(code, category, title):
    error = get_error(code)
    assert error is not None, f"{code} not found in registry"
    assert error.category == category
    assert error.title == title


def test_unknown_code():
    assert get_error("E-9999") is None


def test_prefix_matches_category():
    prefixes = {
        ErrorCategory.NOT_FOUND: "E-1",
        ErrorCategory.PRECONDITION: "E-2",
        ErrorCategory.COLLABORATOR: "E-3",
        ErrorCategory.SYSTEM: "E-4",
    }
    for category, prefix in prefixes.items():
        codes = get_errors_by_category(category)
        assert codes
        assert all(e.code.startswith(prefix) for e in codes)
    assert sum(len(get_errors_by_category(c)) for c in ErrorCategory) == len(ERROR_REGISTRY)


@pytest.mark.parametrize(
    "error",
    [
        NotFoundError("Subscription", "s"),
        NotFoundError("Delivery cycle", "c"),
        NotFoundError("Address", "a"),
        NotFoundError("Customer profile", "u"),
        NotFoundError("Customer account", "u"),
        PreconditionError("no address"),
        PreconditionError("bad box", code="E-2003"),
        NoCycleAvailableError(),
        CollaboratorError("down"),
        CollaboratorError("down", code="E-3002"),
        DuplicateOrderError("s", "c"),
        DomainError("unexpected"),
    ],
)
def test_domain_errors_carry_registered_codes(error):
    assert get_error(error.code) is not None
    assert error.remediation


def test_not_found_message():
    error = NotFoundError("Subscription", "sub-1")
    assert str(error) == "Subscription 'sub-1' not found"
    assert error.code == "E-1001"


def test_collaborator_message_preserved_verbatim():
    assert str(CollaboratorError("catalog offline")) == "catalog offline"
