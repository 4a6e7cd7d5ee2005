"""
Data Transfer Objects for the strategies application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class CreateStrategyCommand:
    """Input DTO for creating a strategy.

    Attributes:
        user_id: The authenticated owner.
        name: Display label, must not be blank.
        description: Optional free text.
    """

    user_id: str
    name: str
    description: str | None = None


@dataclass(frozen=True)
class ListStrategiesQuery:
    """Input DTO for listing a user's strategies."""

    user_id: str


@dataclass(frozen=True)
class GetStrategyQuery:
    """Input DTO for fetching one strategy."""

    user_id: str
    strategy_id: str


@dataclass(frozen=True)
class UpdateStrategyCommand:
    """Input DTO for a partial strategy update.

    Fields left as None are not changed. When ``allocated_amount`` is
    set the update is validated against the user's available funds.
    ``clear_description`` removes the stored description.
    """

    user_id: str
    strategy_id: str
    name: str | None = None
    description: str | None = None
    is_active: bool | None = None
    allocated_amount: Decimal | None = None
    clear_description: bool = False


@dataclass(frozen=True)
class DeleteStrategyCommand:
    """Input DTO for deleting a strategy."""

    user_id: str
    strategy_id: str


@dataclass(frozen=True)
class GetAllocationSummaryQuery:
    """Input DTO for the allocation summary of one user."""

    user_id: str


@dataclass(frozen=True)
class StrategyResult:
    """Output DTO for a single strategy.

    Attributes:
        id: Strategy identifier.
        user_id: Owning user.
        name: Display label.
        description: Optional free text.
        is_active: Whether the strategy currently trades.
        allocated_amount: Reserved capital, None if never allocated.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    id: str
    user_id: str
    name: str
    description: str | None
    is_active: bool
    allocated_amount: Decimal | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class AllocationItemResult:
    """Output DTO for one strategy's share of the funds."""

    id: str
    name: str
    allocated_amount: Decimal
    is_active: bool


@dataclass(frozen=True)
class AllocationSummaryResult:
    """Output DTO for the allocation summary.

    Attributes:
        available_funds: Brokerage funds at computation time.
        total_allocated: Sum of all strategy allocations.
        available_to_allocate: Funds minus allocations, may be negative.
        over_allocated: True when available_to_allocate is negative.
        allocations: Per-strategy breakdown.
        total_strategies: Number of strategies.
        active_strategies: Number of active strategies.
        strategies_with_allocation: Number of strategies with a positive amount.
    """

    available_funds: Decimal
    total_allocated: Decimal
    available_to_allocate: Decimal
    over_allocated: bool
    allocations: list[AllocationItemResult]
    total_strategies: int
    active_strategies: int
    strategies_with_allocation: int
