"""
Use case: Create a new strategy for a provisioned user.

Input: CreateStrategyCommand (user_id, name, description)
Output: StrategyResult
Side effects: Persists a new, inactive, unallocated strategy.
Failure cases: InvalidArgumentError, UserNotProvisionedError, PersistenceFailureError.
"""

import logging

from allocator.application.strategies.dtos import CreateStrategyCommand, StrategyResult
from allocator.application.strategies.mappers import to_strategy_result
from allocator.domain.strategies.entities import Strategy
from allocator.domain.strategies.errors import (
    InvalidArgumentError,
    UserNotProvisionedError,
)
from allocator.domain.strategies.ports import StrategyRepository, UserAccountRepository

logger = logging.getLogger(__name__)


class CreateStrategyUseCase:
    """Creates strategies for users that exist in the account registry."""

    def __init__(
        self,
        strategy_repo: StrategyRepository,
        account_repo: UserAccountRepository,
    ) -> None:
        self._strategy_repo = strategy_repo
        self._account_repo = account_repo

    def execute(self, command: CreateStrategyCommand) -> StrategyResult:
        """Run the create strategy use case.

        Raises:
            InvalidArgumentError: If the name is blank.
            UserNotProvisionedError: If the user has no account record.
        """
        name = command.name.strip()
        if not name:
            raise InvalidArgumentError("name", "must not be blank")

        if self._account_repo.get(command.user_id) is None:
            raise UserNotProvisionedError(command.user_id)

        strategy = self._strategy_repo.add(
            Strategy.new(
                user_id=command.user_id,
                name=name,
                description=command.description,
            )
        )
        logger.info(
            "Created strategy id=%s for user=%s", strategy.id, command.user_id
        )
        return to_strategy_result(strategy)
