"""
Use case: Summarize how a user's funds are allocated across strategies.

Input: GetAllocationSummaryQuery (user_id)
Output: AllocationSummaryResult
Side effects: None (read-only query, nothing is persisted).
Failure cases: UpstreamUnavailableError, TradingAccountNotFoundError.
"""

import logging

from allocator.application.strategies.dtos import (
    AllocationItemResult,
    AllocationSummaryResult,
    GetAllocationSummaryQuery,
)
from allocator.domain.strategies.allocation_ledger import AllocationLedger

logger = logging.getLogger(__name__)


class GetAllocationSummaryUseCase:
    """Orchestrates the allocation summary read.

    Delegates to the AllocationLedger, which reads the strategy set and
    the brokerage balance and derives the summary from one snapshot.
    """

    def __init__(self, ledger: AllocationLedger) -> None:
        self._ledger = ledger

    def execute(self, query: GetAllocationSummaryQuery) -> AllocationSummaryResult:
        """Run the allocation summary use case.

        Args:
            query: The user whose allocations are summarized.

        Returns:
            The allocation summary, with a negative available_to_allocate
            left as-is when the account is over-allocated.
        """
        logger.info("Computing allocation summary for user=%s", query.user_id)

        summary = self._ledger.get_summary(query.user_id)

        return AllocationSummaryResult(
            available_funds=summary.available_funds,
            total_allocated=summary.total_allocated,
            available_to_allocate=summary.available_to_allocate,
            over_allocated=summary.over_allocated,
            allocations=[
                AllocationItemResult(
                    id=a.id,
                    name=a.name,
                    allocated_amount=a.allocated_amount,
                    is_active=a.is_active,
                )
                for a in summary.allocations
            ],
            total_strategies=summary.counts.total_strategies,
            active_strategies=summary.counts.active_strategies,
            strategies_with_allocation=summary.counts.strategies_with_allocation,
        )
