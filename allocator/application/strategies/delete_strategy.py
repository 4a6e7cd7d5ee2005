"""
Use case: Delete a strategy owned by the caller.

Input: DeleteStrategyCommand (user_id, strategy_id)
Output: None
Side effects: Removes the strategy. Its allocated capital returns to the
    available pool because later summaries no longer see it.
Failure cases: StrategyNotFoundError, StrategyAccessDeniedError,
    PersistenceFailureError.
"""

import logging

from allocator.application.strategies.dtos import DeleteStrategyCommand
from allocator.domain.strategies.allocation_ledger import load_owned_strategy
from allocator.domain.strategies.errors import StrategyNotFoundError
from allocator.domain.strategies.ports import StrategyRepository

logger = logging.getLogger(__name__)


class DeleteStrategyUseCase:
    """Deletes a strategy after checking ownership."""

    def __init__(self, strategy_repo: StrategyRepository) -> None:
        self._strategy_repo = strategy_repo

    def execute(self, command: DeleteStrategyCommand) -> None:
        strategy = load_owned_strategy(
            self._strategy_repo, command.user_id, command.strategy_id
        )
        if not self._strategy_repo.delete(command.strategy_id):
            # Deleted concurrently between the lookup and the delete.
            raise StrategyNotFoundError(command.strategy_id)

        logger.info(
            "Deleted strategy id=%s for user=%s, released %s",
            command.strategy_id,
            command.user_id,
            strategy.allocation,
        )
