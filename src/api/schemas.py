"""Pydantic schemas for API request/response validation.

This module defines the data contracts for the BoxCycle REST API:
order generation, delivery schedule, cycle state and lifecycle,
first-cycle assignment and subscription history. Generation payloads
use camelCase keys.
"""

import json
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for schemas exchanged with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Generation schemas


class GenerateOrdersRequest(CamelModel):
    """Request schema for an admin generation run.

    Omit cycleId to generate for the earliest due cycle.
    """

    cycle_id: str | None = None


class GenerationErrorDetailResponse(CamelModel):
    subscription_id: str
    error: str
    code: str


class GenerationResultResponse(CamelModel):
    """Summary of a generation run."""

    cycle_id: str | None
    cycle_date: date | None
    generated: int
    skipped: int
    excluded: int
    errors: int
    error_details: list[GenerationErrorDetailResponse] = []
    message: str | None = None


# Schedule schemas


class DeliveryScheduleResponse(CamelModel):
    """Next delivery dates computed from site config."""

    delivery_day: int
    subscription_enabled: bool
    is_first_delivery: bool
    next_delivery_dates: list[date]


# Cycle schemas


class CycleResponse(CamelModel):
    """Response schema for a delivery cycle."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    delivery_date: date
    status: str
    is_revealed: bool
    revealed_at: str | None = None
    title: str | None = None


class CycleStateResponse(CamelModel):
    """Derived state of a delivery cycle."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    is_past: bool
    is_upcoming: bool
    is_revealed: bool
    can_reveal: bool
    can_mark_delivered: bool
    days_until_delivery: int | None
    formatted_date: str
    month_year: str
    status_label: str


# Assignment schemas


class AssignFirstCycleRequest(CamelModel):
    performed_by: str = Field("admin", min_length=1, max_length=100)


class FirstCycleAssignmentResponse(CamelModel):
    """Cycle a new subscription was attached to."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    cycle_id: str
    needs_immediate_order: bool


class ErrorResponse(BaseModel):
    """Error body returned for domain errors."""

    error_code: str
    message: str
    remediation: str


# History schemas


class SubscriptionHistoryResponse(CamelModel):
    """One audit entry, details decoded from their stored JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    action: str
    details: dict[str, Any] = Field(default_factory=dict)
    performed_by: str
    created_at: str

    @field_validator("details", mode="before")
    @classmethod
    def decode_details(cls, value: Any) -> Any:
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            return json.loads(value)
        return value
