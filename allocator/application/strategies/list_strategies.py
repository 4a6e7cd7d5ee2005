"""
Use case: List a user's strategies.

Input: ListStrategiesQuery (user_id)
Output: list[StrategyResult]
Side effects: None (read-only query).
Failure cases: UpstreamUnavailableError.
"""

import logging

from allocator.application.strategies.dtos import ListStrategiesQuery, StrategyResult
from allocator.application.strategies.mappers import to_strategy_result
from allocator.domain.strategies.ports import StrategyRepository

logger = logging.getLogger(__name__)


class ListStrategiesUseCase:
    """Returns every strategy of a user, newest first."""

    def __init__(self, strategy_repo: StrategyRepository) -> None:
        self._strategy_repo = strategy_repo

    def execute(self, query: ListStrategiesQuery) -> list[StrategyResult]:
        logger.debug("Listing strategies for user=%s", query.user_id)
        return [
            to_strategy_result(s)
            for s in self._strategy_repo.list_by_user(query.user_id)
        ]
