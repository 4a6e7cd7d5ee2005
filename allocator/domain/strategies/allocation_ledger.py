"""
Allocation ledger for the strategies bounded context.

Tracks how a user's available funds are divided among their strategies
and guards the single invariant of this context:

    new_amount(X) + sum(amount of every other strategy of the user)
        <= available_funds

at the moment a write is committed.

The two reads the ledger needs (the user's strategies and the brokerage
balance) are independent and are issued concurrently. Writes for one
user are serialized through a UserLockRegistry so that two concurrent
updates cannot both validate against the same stale total.
"""

import logging
import threading
import time
import weakref
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from typing import Optional

from allocator.domain.strategies.entities import (
    ZERO,
    AllocationCounts,
    AllocationSummary,
    Strategy,
    StrategyAllocation,
    StrategyChanges,
)
from allocator.domain.strategies.errors import (
    AllocationConflictError,
    InsufficientFundsError,
    InvalidArgumentError,
    StrategyAccessDeniedError,
    StrategyNotFoundError,
    UpstreamUnavailableError,
)
from allocator.domain.strategies.ports import AccountBalancePort, StrategyRepository

logger = logging.getLogger(__name__)

STORE_SOURCE = "strategy store"
BALANCE_SOURCE = "balance provider"

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0


def summarize(strategies: list[Strategy], available_funds: Decimal) -> AllocationSummary:
    """Build an allocation summary from one strategy snapshot.

    The total, the per-strategy breakdown and the counts all come from
    the same list, so they always agree with each other.

    Args:
        strategies: Every strategy of one user, active or not.
        available_funds: The user's current brokerage funds.

    Returns:
        The derived AllocationSummary. ``available_to_allocate`` is not
        clamped and is negative when funds fell below the allocations.
    """
    allocations = [
        StrategyAllocation(
            id=s.id,
            name=s.name,
            allocated_amount=s.allocation,
            is_active=s.is_active,
        )
        for s in strategies
    ]
    total_allocated = sum((a.allocated_amount for a in allocations), ZERO)
    counts = AllocationCounts(
        total_strategies=len(allocations),
        active_strategies=sum(1 for a in allocations if a.is_active),
        strategies_with_allocation=sum(
            1 for a in allocations if a.allocated_amount > ZERO
        ),
    )
    return AllocationSummary(
        available_funds=available_funds,
        total_allocated=total_allocated,
        available_to_allocate=available_funds - total_allocated,
        allocations=allocations,
        counts=counts,
    )


def load_owned_strategy(
    strategies: StrategyRepository, user_id: str, strategy_id: str
) -> Strategy:
    """Return a strategy if it exists and belongs to the user.

    Raises:
        StrategyNotFoundError: If the strategy does not exist.
        StrategyAccessDeniedError: If another user owns it.
    """
    strategy = strategies.get(strategy_id)
    if strategy is None:
        raise StrategyNotFoundError(strategy_id)
    if strategy.user_id != user_id:
        raise StrategyAccessDeniedError(strategy_id, user_id)
    return strategy


class UserLockRegistry:
    """Hands out one lock per user ID.

    A single registry must be shared by every ledger in the process;
    build it once in the composition root. Locks are held weakly, so a
    user's entry disappears once no request holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

    def lock_for(self, user_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock


class AllocationLedger:
    """Reads and changes strategy allocations against the brokerage balance.

    Dependencies are injected; the ledger holds no process-wide state
    of its own.
    """

    def __init__(
        self,
        strategies: StrategyRepository,
        balance: AccountBalancePort,
        locks: UserLockRegistry,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    ) -> None:
        self._strategies = strategies
        self._balance = balance
        self._locks = locks
        self._timeout = timeout
        self._lock_timeout = lock_timeout

    # ── Read path ─────────────────────────────────────────────────

    def get_summary(
        self, user_id: str, timeout: Optional[float] = None
    ) -> AllocationSummary:
        """Return the user's current allocation summary.

        Args:
            user_id: The authenticated user.
            timeout: Seconds to wait for both collaborators. Defaults to
                the ledger's configured timeout.

        Raises:
            UpstreamUnavailableError: If either collaborator fails or times out.
            TradingAccountNotFoundError: If the user has no trading account.
        """
        strategies, available_funds = self._snapshot(user_id, timeout)
        summary = summarize(strategies, available_funds)

        if summary.over_allocated:
            logger.warning(
                "User %s is over-allocated: funds=%s allocated=%s",
                user_id,
                summary.available_funds,
                summary.total_allocated,
            )
        return summary

    # ── Write path ────────────────────────────────────────────────

    def set_allocation(
        self,
        user_id: str,
        strategy_id: str,
        new_amount: Decimal,
        changes: Optional[StrategyChanges] = None,
        timeout: Optional[float] = None,
    ) -> Strategy:
        """Validate and persist a new allocated amount for a strategy.

        Other field changes passed in ``changes`` are committed in the
        same store transaction as the amount, or not at all.

        Args:
            user_id: The authenticated user.
            strategy_id: Strategy whose allocation changes.
            new_amount: The new non-negative allocated amount.
            changes: Optional extra field updates to commit alongside.
            timeout: Seconds to wait for the collaborators.

        Returns:
            The updated strategy as stored.

        Raises:
            InvalidArgumentError: If ``new_amount`` is negative or not a number.
            StrategyNotFoundError: If the strategy does not exist.
            StrategyAccessDeniedError: If another user owns the strategy.
            InsufficientFundsError: If the allocation exceeds the funds.
            UpstreamUnavailableError: If a collaborator fails or times out.
            PersistenceFailureError: If the validated write is not committed.
            AllocationConflictError: If the per-user lock cannot be taken in time.
        """
        amount = _validate_amount(new_amount)

        lock = self._locks.lock_for(user_id)
        if not lock.acquire(timeout=self._lock_timeout):
            raise AllocationConflictError(user_id)
        try:
            strategy = load_owned_strategy(self._strategies, user_id, strategy_id)

            # Shrinking or keeping an allocation can never break the invariant.
            if amount > strategy.allocation:
                self._check_funds(user_id, strategy_id, amount, timeout)

            if changes is not None and not changes.is_empty():
                updated = self._strategies.update(
                    strategy_id, replace(changes, allocated_amount=amount)
                )
            else:
                updated = self._strategies.update_allocation(strategy_id, amount)
        finally:
            lock.release()

        logger.info(
            "Allocation set: user=%s strategy=%s amount=%s (was %s)",
            user_id,
            strategy_id,
            amount,
            strategy.allocation,
        )
        return updated

    # ── Internals ─────────────────────────────────────────────────

    def _check_funds(
        self,
        user_id: str,
        strategy_id: str,
        amount: Decimal,
        timeout: Optional[float],
    ) -> None:
        strategies, available_funds = self._snapshot(user_id, timeout)
        others = sum(
            (s.allocation for s in strategies if s.id != strategy_id), ZERO
        )
        max_allowable = available_funds - others

        if amount > max_allowable:
            logger.warning(
                "Insufficient funds: user=%s strategy=%s requested=%s max=%s",
                user_id,
                strategy_id,
                amount,
                max_allowable,
            )
            raise InsufficientFundsError(
                requested_amount=amount,
                available_funds=available_funds,
                currently_allocated=others,
                max_allowable=max_allowable,
            )

    def _snapshot(
        self, user_id: str, timeout: Optional[float]
    ) -> tuple[list[Strategy], Decimal]:
        """Fetch strategies and funds concurrently, bounded by one deadline."""
        limit = self._timeout if timeout is None else timeout
        deadline = time.monotonic() + limit

        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="ledger")
        try:
            strategies_future = pool.submit(self._strategies.list_by_user, user_id)
            funds_future = pool.submit(self._balance.get_available_funds, user_id)
            strategies = _await(strategies_future, STORE_SOURCE, deadline, limit)
            funds = _await(funds_future, BALANCE_SOURCE, deadline, limit)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        if not isinstance(funds, Decimal) or not funds.is_finite():
            raise UpstreamUnavailableError(BALANCE_SOURCE, "non-numeric balance")
        return strategies, funds


def _await(future: Future, source: str, deadline: float, limit: float):
    remaining = max(0.0, deadline - time.monotonic())
    try:
        return future.result(timeout=remaining)
    except FutureTimeoutError:
        future.cancel()
        raise UpstreamUnavailableError(
            source, f"timed out after {limit:g}s"
        ) from None


def _validate_amount(value) -> Decimal:
    if isinstance(value, bool):
        raise InvalidArgumentError("allocated_amount", "must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidArgumentError("allocated_amount", "must be a number") from None
    if not amount.is_finite():
        raise InvalidArgumentError("allocated_amount", "must be a finite number")
    if amount < ZERO:
        raise InvalidArgumentError("allocated_amount", "cannot be negative")
    return amount
