"""
Domain entities for the strategies bounded context.

Entities represent core business objects with identity and lifecycle.
They contain no framework imports and no IO operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

ZERO = Decimal("0")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Strategy:
    """A user-defined trading strategy and the capital reserved for it.

    ``allocated_amount`` is None until the owner first allocates capital;
    None is treated as zero everywhere in the ledger. ``is_active`` says
    whether the strategy trades, not whether its allocation counts.
    """

    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    is_active: bool = False
    allocated_amount: Optional[Decimal] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def allocation(self) -> Decimal:
        """Return the allocated amount with None mapped to zero."""
        return self.allocated_amount if self.allocated_amount is not None else ZERO

    @classmethod
    def new(
        cls, user_id: str, name: str, description: Optional[str] = None
    ) -> "Strategy":
        """Build a fresh, inactive and unallocated strategy."""
        now = _utcnow()
        return cls(
            id=str(uuid4()),
            user_id=user_id,
            name=name,
            description=description,
            is_active=False,
            allocated_amount=None,
            created_at=now,
            updated_at=now,
        )


@dataclass(frozen=True)
class StrategyChanges:
    """A partial update to a strategy. None means "leave unchanged".

    ``clear_description`` removes the description; it wins over
    ``description``.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    allocated_amount: Optional[Decimal] = None
    clear_description: bool = False

    def is_empty(self) -> bool:
        return (
            self.name is None
            and self.description is None
            and not self.clear_description
            and self.is_active is None
            and self.allocated_amount is None
        )


@dataclass(frozen=True)
class UserAccount:
    """Link between an application user and their brokerage account."""

    user_id: str
    trading_id: Optional[str] = None


@dataclass(frozen=True)
class StrategyAllocation:
    """One line of the per-strategy allocation breakdown."""

    id: str
    name: str
    allocated_amount: Decimal
    is_active: bool


@dataclass(frozen=True)
class AllocationCounts:
    """Aggregate counts over one strategy snapshot."""

    total_strategies: int
    active_strategies: int
    strategies_with_allocation: int


@dataclass(frozen=True)
class AllocationSummary:
    """Point-in-time view of how a user's funds are divided.

    Derived on every read and never persisted. ``available_to_allocate``
    may be negative when the brokerage balance has fallen below the
    committed allocations; ``over_allocated`` flags that case.
    """

    available_funds: Decimal
    total_allocated: Decimal
    available_to_allocate: Decimal
    allocations: list[StrategyAllocation]
    counts: AllocationCounts

    @property
    def over_allocated(self) -> bool:
        return self.available_to_allocate < ZERO
