"""
Entity-to-DTO mapping shared by the strategies use cases.
"""

from allocator.application.strategies.dtos import StrategyResult
from allocator.domain.strategies.entities import Strategy


def to_strategy_result(strategy: Strategy) -> StrategyResult:
    """Map a Strategy entity to its output DTO."""
    return StrategyResult(
        id=strategy.id,
        user_id=strategy.user_id,
        name=strategy.name,
        description=strategy.description,
        is_active=strategy.is_active,
        allocated_amount=strategy.allocated_amount,
        created_at=strategy.created_at,
        updated_at=strategy.updated_at,
    )
