"""
Port interfaces (ABCs) for the strategies bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from allocator.domain.strategies.entities import Strategy, StrategyChanges, UserAccount


class StrategyRepository(ABC):
    """Port for persisting and retrieving strategies.

    Read failures must surface as UpstreamUnavailableError and write
    failures as PersistenceFailureError. A failed write leaves the
    stored row unchanged.
    """

    @abstractmethod
    def list_by_user(self, user_id: str) -> list[Strategy]:
        """Return every strategy owned by the user, newest first."""
        raise NotImplementedError

    @abstractmethod
    def get(self, strategy_id: str) -> Optional[Strategy]:
        """Return a strategy by its ID, or None if not found."""
        raise NotImplementedError

    @abstractmethod
    def add(self, strategy: Strategy) -> Strategy:
        """Persist a new strategy and return it."""
        raise NotImplementedError

    @abstractmethod
    def update_allocation(self, strategy_id: str, amount: Decimal) -> Strategy:
        """Set the allocated amount of a strategy and return the stored row."""
        raise NotImplementedError

    @abstractmethod
    def update(self, strategy_id: str, changes: StrategyChanges) -> Strategy:
        """Apply a partial update in one transaction and return the stored row."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, strategy_id: str) -> bool:
        """Delete a strategy. Returns False if it did not exist."""
        raise NotImplementedError


class UserAccountRepository(ABC):
    """Port for looking up which brokerage account belongs to a user."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[UserAccount]:
        """Return the user's account record, or None if not provisioned."""
        raise NotImplementedError

    @abstractmethod
    def save(self, account: UserAccount) -> None:
        """Create or replace a user's account record."""
        raise NotImplementedError


class AccountBalancePort(ABC):
    """Port for reading a user's total tradable funds from the brokerage."""

    @abstractmethod
    def get_available_funds(self, user_id: str) -> Decimal:
        """Return the user's current available funds.

        Raises:
            TradingAccountNotFoundError: If the user has no trading account.
            UpstreamUnavailableError: If the brokerage cannot be reached
                or returns a non-numeric balance.
        """
        raise NotImplementedError
