"""
Pydantic schemas for strategies API request/response validation.

These schemas enforce input validation and define the API contract.
JSON field names are camelCase; snake_case names are accepted on input.
Decimal amounts serialize as strings to keep cents exact.
No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NAME_MIN_LEN = 1
NAME_MAX_LEN = 120
DESCRIPTION_MAX_LEN = 2000
AMOUNT_MAX_DIGITS = 18
AMOUNT_DECIMAL_PLACES = 2


class ApiModel(BaseModel):
    """Base model for all schemas: camelCase aliases on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateStrategyRequest(ApiModel):
    """Request schema for creating a strategy.

    Attributes:
        name: Display label (1-120 chars).
        description: Optional free text.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LEN)


class UpdateStrategyRequest(ApiModel):
    """Request schema for partially updating a strategy.

    Every field is optional; omitted fields are left unchanged.

    Attributes:
        name: New display label.
        description: New description.
        is_active: Whether the strategy should trade.
        allocated_amount: New reserved capital, checked against available funds.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(
        default=None, min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN
    )
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LEN)
    is_active: bool | None = None
    allocated_amount: Decimal | None = Field(
        default=None,
        ge=0,
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        description="Capital reserved for the strategy",
    )


class StrategyResponse(ApiModel):
    """Response schema for a single strategy."""

    id: str
    user_id: str
    name: str
    description: str | None
    is_active: bool
    allocated_amount: Decimal | None
    created_at: datetime
    updated_at: datetime


class AllocationItem(ApiModel):
    """One strategy's share of the funds."""

    id: str
    name: str
    allocated_amount: Decimal
    is_active: bool


class AllocationCountsSchema(ApiModel):
    """Aggregate strategy counts."""

    total_strategies: int
    active_strategies: int
    strategies_with_allocation: int


class AllocationSummaryResponse(ApiModel):
    """Response schema for the allocation summary.

    ``available_to_allocate`` is negative when the account balance has
    dropped below the committed allocations; ``over_allocated`` is then true.
    """

    available_funds: Decimal
    total_allocated: Decimal
    available_to_allocate: Decimal
    over_allocated: bool
    allocations: list[AllocationItem]
    summary: AllocationCountsSchema


class ErrorResponse(ApiModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class InsufficientFundsResponse(ErrorResponse):
    """Error body for allocations that exceed the available funds."""

    requested_amount: Decimal
    available_funds: Decimal
    currently_allocated: Decimal
    max_allowable: Decimal


class HealthResponse(ApiModel):
    """Response schema for the health endpoint."""

    status: str
    version: str
    database: str
