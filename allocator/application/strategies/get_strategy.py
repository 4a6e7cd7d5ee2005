"""
Use case: Fetch one strategy owned by the caller.

Input: GetStrategyQuery (user_id, strategy_id)
Output: StrategyResult
Side effects: None (read-only query).
Failure cases: StrategyNotFoundError, StrategyAccessDeniedError.
"""

from allocator.application.strategies.dtos import GetStrategyQuery, StrategyResult
from allocator.application.strategies.mappers import to_strategy_result
from allocator.domain.strategies.allocation_ledger import load_owned_strategy
from allocator.domain.strategies.ports import StrategyRepository


class GetStrategyUseCase:
    """Returns a single strategy after checking ownership."""

    def __init__(self, strategy_repo: StrategyRepository) -> None:
        self._strategy_repo = strategy_repo

    def execute(self, query: GetStrategyQuery) -> StrategyResult:
        strategy = load_owned_strategy(
            self._strategy_repo, query.user_id, query.strategy_id
        )
        return to_strategy_result(strategy)
