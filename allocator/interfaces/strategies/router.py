"""
FastAPI router for the strategies bounded context.

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas.
Error mapping is handled by centralized error handlers.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, Request, Response

from allocator.application.strategies.create_strategy import CreateStrategyUseCase
from allocator.application.strategies.delete_strategy import DeleteStrategyUseCase
from allocator.application.strategies.dtos import (
    CreateStrategyCommand,
    DeleteStrategyCommand,
    GetAllocationSummaryQuery,
    GetStrategyQuery,
    ListStrategiesQuery,
    StrategyResult,
    UpdateStrategyCommand,
)
from allocator.application.strategies.get_allocation_summary import (
    GetAllocationSummaryUseCase,
)
from allocator.application.strategies.get_strategy import GetStrategyUseCase
from allocator.application.strategies.list_strategies import ListStrategiesUseCase
from allocator.application.strategies.update_strategy import UpdateStrategyUseCase
from allocator.core.config import settings
from allocator.interfaces.strategies.dependencies import (
    get_allocation_summary_use_case,
    get_create_strategy_use_case,
    get_current_user_id,
    get_delete_strategy_use_case,
    get_list_strategies_use_case,
    get_strategy_use_case,
    get_update_strategy_use_case,
)
from allocator.interfaces.strategies.schemas import (
    AllocationCountsSchema,
    AllocationItem,
    AllocationSummaryResponse,
    CreateStrategyRequest,
    ErrorResponse,
    InsufficientFundsResponse,
    StrategyResponse,
    UpdateStrategyRequest,
)
from allocator.shared.security.rate_limiting import limiter

router = APIRouter(prefix="/strategies", tags=["strategies"])

OWNERSHIP_ERRORS = {
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


def _to_response(result: StrategyResult) -> StrategyResponse:
    return StrategyResponse(
        id=result.id,
        user_id=result.user_id,
        name=result.name,
        description=result.description,
        is_active=result.is_active,
        allocated_amount=result.allocated_amount,
        created_at=result.created_at,
        updated_at=result.updated_at,
    )


@router.get(
    "/allocation-summary",
    response_model=AllocationSummaryResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Get allocation summary",
    description=(
        "How the caller's brokerage funds are divided among their strategies. "
        "availableToAllocate is negative when the account is over-allocated."
    ),
)
def get_allocation_summary(
    user_id: str = Depends(get_current_user_id),
    use_case: GetAllocationSummaryUseCase = Depends(get_allocation_summary_use_case),
) -> AllocationSummaryResponse:
    """Return the caller's allocation summary."""
    result = use_case.execute(GetAllocationSummaryQuery(user_id=user_id))
    return AllocationSummaryResponse(
        available_funds=result.available_funds,
        total_allocated=result.total_allocated,
        available_to_allocate=result.available_to_allocate,
        over_allocated=result.over_allocated,
        allocations=[
            AllocationItem(
                id=a.id,
                name=a.name,
                allocated_amount=a.allocated_amount,
                is_active=a.is_active,
            )
            for a in result.allocations
        ],
        summary=AllocationCountsSchema(
            total_strategies=result.total_strategies,
            active_strategies=result.active_strategies,
            strategies_with_allocation=result.strategies_with_allocation,
        ),
    )


@router.post(
    "",
    status_code=201,
    response_model=StrategyResponse,
    responses={403: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Create a strategy",
    description="Create an inactive strategy with no capital allocated.",
)
@limiter.limit(settings.rate_limit_write)
def create_strategy(
    request: Request,
    payload: CreateStrategyRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: CreateStrategyUseCase = Depends(get_create_strategy_use_case),
) -> StrategyResponse:
    """Create a strategy owned by the caller."""
    result = use_case.execute(
        CreateStrategyCommand(
            user_id=user_id,
            name=payload.name,
            description=payload.description,
        )
    )
    return _to_response(result)


@router.get(
    "",
    response_model=list[StrategyResponse],
    summary="List strategies",
    description="List the caller's strategies, newest first.",
)
def list_strategies(
    user_id: str = Depends(get_current_user_id),
    use_case: ListStrategiesUseCase = Depends(get_list_strategies_use_case),
) -> list[StrategyResponse]:
    """List the caller's strategies."""
    results = use_case.execute(ListStrategiesQuery(user_id=user_id))
    return [_to_response(r) for r in results]


@router.get(
    "/{strategy_id}",
    response_model=StrategyResponse,
    responses=OWNERSHIP_ERRORS,
    summary="Get a strategy",
)
def get_strategy(
    strategy_id: str,
    user_id: str = Depends(get_current_user_id),
    use_case: GetStrategyUseCase = Depends(get_strategy_use_case),
) -> StrategyResponse:
    """Return one of the caller's strategies."""
    result = use_case.execute(GetStrategyQuery(user_id=user_id, strategy_id=strategy_id))
    return _to_response(result)


@router.patch(
    "/{strategy_id}",
    response_model=StrategyResponse,
    responses={
        **OWNERSHIP_ERRORS,
        409: {"model": ErrorResponse},
        422: {"model": InsufficientFundsResponse},
        503: {"model": ErrorResponse},
    },
    summary="Update a strategy",
    description=(
        "Partially update a strategy. A new allocatedAmount is checked against "
        "the caller's available funds; on failure the response carries maxAllowable."
    ),
)
@limiter.limit(settings.rate_limit_write)
def update_strategy(
    request: Request,
    strategy_id: str,
    payload: UpdateStrategyRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: UpdateStrategyUseCase = Depends(get_update_strategy_use_case),
) -> StrategyResponse:
    """Update a strategy owned by the caller.

    An explicit null ``allocatedAmount`` releases the allocation (zero);
    an explicit null ``description`` clears it. Omitted fields are unchanged.
    """
    sent = payload.model_fields_set
    allocated_amount = payload.allocated_amount
    if allocated_amount is None and "allocated_amount" in sent:
        allocated_amount = Decimal("0")

    result = use_case.execute(
        UpdateStrategyCommand(
            user_id=user_id,
            strategy_id=strategy_id,
            name=payload.name,
            description=payload.description,
            is_active=payload.is_active,
            allocated_amount=allocated_amount,
            clear_description=payload.description is None and "description" in sent,
        )
    )
    return _to_response(result)


@router.delete(
    "/{strategy_id}",
    status_code=204,
    response_class=Response,
    responses=OWNERSHIP_ERRORS,
    summary="Delete a strategy",
    description="Delete a strategy; its allocated capital returns to the pool.",
)
@limiter.limit(settings.rate_limit_write)
def delete_strategy(
    request: Request,
    strategy_id: str,
    user_id: str = Depends(get_current_user_id),
    use_case: DeleteStrategyUseCase = Depends(get_delete_strategy_use_case),
) -> Response:
    """Delete a strategy owned by the caller."""
    use_case.execute(DeleteStrategyCommand(user_id=user_id, strategy_id=strategy_id))
    return Response(status_code=204)
