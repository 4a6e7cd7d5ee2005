"""
Shared fixtures and in-memory fakes for the test suite.

The fakes implement the domain ports with plain dictionaries so the
ledger and use cases can be tested without a database or brokerage.
"""

import os

# Settings are read at import time; configure before importing allocator.
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from allocator.domain.strategies.allocation_ledger import (
    AllocationLedger,
    UserLockRegistry,
)
from allocator.domain.strategies.entities import Strategy, StrategyChanges, UserAccount
from allocator.domain.strategies.errors import (
    PersistenceFailureError,
    StrategyNotFoundError,
    TradingAccountNotFoundError,
    UpstreamUnavailableError,
)
from allocator.domain.strategies.ports import (
    AccountBalancePort,
    StrategyRepository,
    UserAccountRepository,
)
from allocator.infrastructure.strategies.schema import create_schema

USER = "user-1"
OTHER_USER = "user-2"

BASE_TIME = datetime(2026, 1, 5, 14, 30, tzinfo=timezone.utc)


# ══════════════════════════════════════════════════════════════
# In-memory port implementations
# ══════════════════════════════════════════════════════════════


class InMemoryStrategyRepository(StrategyRepository):
    """Dictionary-backed strategy store with switchable failures."""

    def __init__(self) -> None:
        self._rows: dict[str, Strategy] = {}
        self._lock = threading.Lock()
        self.fail_reads = False
        self.fail_writes = False
        self.list_calls = 0
        self.write_calls = 0

    def list_by_user(self, user_id: str) -> list[Strategy]:
        if self.fail_reads:
            raise UpstreamUnavailableError("strategy store", "down")
        with self._lock:
            self.list_calls += 1
            rows = [s for s in self._rows.values() if s.user_id == user_id]
        return sorted(rows, key=lambda s: s.created_at, reverse=True)

    def get(self, strategy_id: str) -> Optional[Strategy]:
        if self.fail_reads:
            raise UpstreamUnavailableError("strategy store", "down")
        with self._lock:
            return self._rows.get(strategy_id)

    def add(self, strategy: Strategy) -> Strategy:
        if self.fail_writes:
            raise PersistenceFailureError("down")
        with self._lock:
            self._rows[strategy.id] = strategy
        return strategy

    def update_allocation(self, strategy_id: str, amount: Decimal) -> Strategy:
        return self.update(strategy_id, StrategyChanges(allocated_amount=amount))

    def update(self, strategy_id: str, changes: StrategyChanges) -> Strategy:
        self.write_calls += 1
        if self.fail_writes:
            raise PersistenceFailureError("down")
        with self._lock:
            current = self._rows.get(strategy_id)
            if current is None:
                raise StrategyNotFoundError(strategy_id)
            updated = replace(
                current,
                name=changes.name if changes.name is not None else current.name,
                description=(
                    None
                    if changes.clear_description
                    else changes.description
                    if changes.description is not None
                    else current.description
                ),
                is_active=(
                    changes.is_active
                    if changes.is_active is not None
                    else current.is_active
                ),
                allocated_amount=(
                    changes.allocated_amount
                    if changes.allocated_amount is not None
                    else current.allocated_amount
                ),
                updated_at=current.updated_at + timedelta(seconds=1),
            )
            self._rows[strategy_id] = updated
            return updated

    def delete(self, strategy_id: str) -> bool:
        if self.fail_writes:
            raise PersistenceFailureError("down")
        with self._lock:
            return self._rows.pop(strategy_id, None) is not None

    def total_for(self, user_id: str) -> Decimal:
        return sum(
            (s.allocation for s in self._rows.values() if s.user_id == user_id),
            Decimal("0"),
        )


class InMemoryUserAccountRepository(UserAccountRepository):
    """Dictionary-backed user account registry."""

    def __init__(self) -> None:
        self._accounts: dict[str, UserAccount] = {}

    def get(self, user_id: str) -> Optional[UserAccount]:
        return self._accounts.get(user_id)

    def save(self, account: UserAccount) -> None:
        self._accounts[account.user_id] = account


class FakeBalance(AccountBalancePort):
    """Balance provider returning a settable figure.

    ``gate`` lets a test hold the call open; ``error`` makes it raise.
    """

    def __init__(self, funds: Decimal = Decimal("10000")) -> None:
        self.funds = funds
        self.calls = 0
        self.error: Optional[Exception] = None
        self.gate: Optional[threading.Event] = None
        self.delay_seconds = 0.0
        self._lock = threading.Lock()

    def get_available_funds(self, user_id: str) -> Decimal:
        with self._lock:
            self.calls += 1
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.delay_seconds:
            threading.Event().wait(self.delay_seconds)
        if self.error is not None:
            raise self.error
        if user_id not in (USER, OTHER_USER):
            raise TradingAccountNotFoundError(user_id)
        return self.funds


# ══════════════════════════════════════════════════════════════
# Builders
# ══════════════════════════════════════════════════════════════


def make_strategy(
    strategy_id: str,
    allocated: Optional[str] = None,
    user_id: str = USER,
    is_active: bool = False,
    name: Optional[str] = None,
    age_minutes: int = 0,
) -> Strategy:
    """Build a Strategy with a deterministic creation time."""
    created = BASE_TIME - timedelta(minutes=age_minutes)
    return Strategy(
        id=strategy_id,
        user_id=user_id,
        name=name or f"Strategy {strategy_id}",
        description=None,
        is_active=is_active,
        allocated_amount=Decimal(allocated) if allocated is not None else None,
        created_at=created,
        updated_at=created,
    )


# ══════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def store() -> InMemoryStrategyRepository:
    return InMemoryStrategyRepository()


@pytest.fixture
def accounts() -> InMemoryUserAccountRepository:
    repo = InMemoryUserAccountRepository()
    repo.save(UserAccount(user_id=USER, trading_id="acct-1"))
    repo.save(UserAccount(user_id=OTHER_USER, trading_id="acct-2"))
    return repo


@pytest.fixture
def balance() -> FakeBalance:
    return FakeBalance(Decimal("10000"))


@pytest.fixture
def locks() -> UserLockRegistry:
    return UserLockRegistry()


@pytest.fixture
def ledger(
    store: InMemoryStrategyRepository, balance: FakeBalance, locks: UserLockRegistry
) -> AllocationLedger:
    return AllocationLedger(
        strategies=store, balance=balance, locks=locks, timeout=2.0, lock_timeout=2.0
    )


@pytest.fixture
def seeded_store(store: InMemoryStrategyRepository) -> InMemoryStrategyRepository:
    """A=3000 (active), B=2000 (inactive) for USER; one foreign strategy."""
    store.add(make_strategy("A", "3000", is_active=True, age_minutes=10))
    store.add(make_strategy("B", "2000", age_minutes=5))
    store.add(make_strategy("X", "9999", user_id=OTHER_USER))
    return store


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine shared across threads, schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(engine)
    yield engine
    engine.dispose()
