"""
Domain-specific errors for the strategies bounded context.

All errors raised from the domain layer must be defined here.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""

from decimal import Decimal


class StrategyDomainError(Exception):
    """Base error for all strategies domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class InvalidArgumentError(StrategyDomainError):
    """Raised when an input value is malformed. Always raised before any IO."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Invalid {field}: {reason}")
        self.field = field
        self.reason = reason


class StrategyNotFoundError(StrategyDomainError):
    """Raised when a strategy does not exist."""

    def __init__(self, strategy_id: str) -> None:
        super().__init__(f"Strategy not found: {strategy_id}")
        self.strategy_id = strategy_id


class StrategyAccessDeniedError(StrategyDomainError):
    """Raised when a strategy belongs to a different user."""

    def __init__(self, strategy_id: str, user_id: str) -> None:
        super().__init__(
            f"Strategy {strategy_id} is not owned by user {user_id}"
        )
        self.strategy_id = strategy_id
        self.user_id = user_id


class UserNotProvisionedError(StrategyDomainError):
    """Raised when an authenticated user has no account record in the system."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not provisioned: {user_id}")
        self.user_id = user_id


class TradingAccountNotFoundError(StrategyDomainError):
    """Raised when a user has no associated brokerage trading account."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"No trading account for user: {user_id}")
        self.user_id = user_id


class InsufficientFundsError(StrategyDomainError):
    """Raised when an allocation would exceed the user's available funds.

    Carries the ceiling the caller may allocate to this strategy so a
    client can show it without a second request.
    """

    def __init__(
        self,
        requested_amount: Decimal,
        available_funds: Decimal,
        currently_allocated: Decimal,
        max_allowable: Decimal,
    ) -> None:
        super().__init__(
            f"Insufficient funds: requested {requested_amount}, "
            f"maximum allowable {max_allowable}"
        )
        self.requested_amount = requested_amount
        self.available_funds = available_funds
        self.currently_allocated = currently_allocated
        self.max_allowable = max_allowable


class UpstreamUnavailableError(StrategyDomainError):
    """Raised when the strategy store or balance provider cannot answer."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason


class PersistenceFailureError(StrategyDomainError):
    """Raised when a validated write could not be committed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Persistence failure: {reason}")
        self.reason = reason


class AllocationConflictError(StrategyDomainError):
    """Raised when another allocation change for the same user holds the lock too long."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            f"Another allocation update is in progress for user {user_id}"
        )
        self.user_id = user_id
