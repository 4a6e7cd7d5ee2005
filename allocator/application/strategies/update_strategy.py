"""
Use case: Partially update a strategy.

Input: UpdateStrategyCommand (user_id, strategy_id, optional fields)
Output: StrategyResult
Side effects: Persists the changed fields in one transaction.
Failure cases: InvalidArgumentError, StrategyNotFoundError,
    StrategyAccessDeniedError, InsufficientFundsError,
    UpstreamUnavailableError, PersistenceFailureError, AllocationConflictError.
"""

import logging

from allocator.application.strategies.dtos import StrategyResult, UpdateStrategyCommand
from allocator.application.strategies.mappers import to_strategy_result
from allocator.domain.strategies.allocation_ledger import (
    AllocationLedger,
    load_owned_strategy,
)
from allocator.domain.strategies.entities import StrategyChanges
from allocator.domain.strategies.errors import InvalidArgumentError
from allocator.domain.strategies.ports import StrategyRepository

logger = logging.getLogger(__name__)


class UpdateStrategyUseCase:
    """Orchestrates strategy updates.

    Updates that touch the allocated amount go through the
    AllocationLedger so the funds check and the write of every changed
    field happen together. Other updates only need an ownership check.
    """

    def __init__(
        self, strategy_repo: StrategyRepository, ledger: AllocationLedger
    ) -> None:
        self._strategy_repo = strategy_repo
        self._ledger = ledger

    def execute(self, command: UpdateStrategyCommand) -> StrategyResult:
        """Run the update strategy use case.

        Args:
            command: The fields to change. None means unchanged.

        Returns:
            The strategy as stored after the update.
        """
        name = command.name
        if name is not None:
            name = name.strip()
            if not name:
                raise InvalidArgumentError("name", "must not be blank")

        changes = StrategyChanges(
            name=name,
            description=command.description,
            is_active=command.is_active,
            clear_description=command.clear_description,
        )

        if command.allocated_amount is not None:
            strategy = self._ledger.set_allocation(
                user_id=command.user_id,
                strategy_id=command.strategy_id,
                new_amount=command.allocated_amount,
                changes=changes,
            )
            return to_strategy_result(strategy)

        strategy = load_owned_strategy(
            self._strategy_repo, command.user_id, command.strategy_id
        )
        if changes.is_empty():
            return to_strategy_result(strategy)

        logger.info(
            "Updating strategy id=%s for user=%s", command.strategy_id, command.user_id
        )
        return to_strategy_result(
            self._strategy_repo.update(command.strategy_id, changes)
        )
