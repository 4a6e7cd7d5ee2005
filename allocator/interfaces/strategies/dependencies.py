"""
Dependency injection for the strategies bounded context.

Provides FastAPI dependency functions that wire infrastructure
adapters into the allocation ledger and use cases via constructor
injection. These are the composition root for the strategies context.

Long-lived resources (database engine, brokerage HTTP client, per-user
lock registry) are built once per process and released by
close_resources() on shutdown.
"""

from functools import lru_cache

import httpx
from fastapi import Depends, HTTPException, Request
from sqlalchemy.engine import Engine

from allocator.application.strategies.create_strategy import CreateStrategyUseCase
from allocator.application.strategies.delete_strategy import DeleteStrategyUseCase
from allocator.application.strategies.get_allocation_summary import (
    GetAllocationSummaryUseCase,
)
from allocator.application.strategies.get_strategy import GetStrategyUseCase
from allocator.application.strategies.list_strategies import ListStrategiesUseCase
from allocator.application.strategies.update_strategy import UpdateStrategyUseCase
from allocator.core.config import settings
from allocator.domain.strategies.allocation_ledger import (
    AllocationLedger,
    UserLockRegistry,
)
from allocator.domain.strategies.ports import (
    AccountBalancePort,
    StrategyRepository,
    UserAccountRepository,
)
from allocator.infrastructure.strategies.alpaca_balance_adapter import (
    AlpacaBalanceAdapter,
    build_broker_client,
)
from allocator.infrastructure.strategies.schema import build_engine
from allocator.infrastructure.strategies.strategy_repository import (
    StrategyRepositoryAdapter,
)
from allocator.infrastructure.strategies.user_account_repository import (
    UserAccountRepositoryAdapter,
)

HTTP_401 = 401


# ── Process-wide resources ────────────────────────────────────────


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Build the SQLAlchemy engine from application settings."""
    return build_engine(settings.get_database_url())


@lru_cache(maxsize=1)
def get_broker_client() -> httpx.Client:
    """Build the Alpaca Broker API client from application settings."""
    return build_broker_client(
        base_url=settings.alpaca_broker_base_url,
        api_key=settings.alpaca_broker_api_key,
        api_secret=settings.alpaca_broker_api_secret,
        timeout=settings.upstream_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_lock_registry() -> UserLockRegistry:
    """Return the single per-user lock registry of this process."""
    return UserLockRegistry()


def close_resources() -> None:
    """Close the HTTP client and dispose the engine if they were created."""
    if get_broker_client.cache_info().currsize:
        get_broker_client().close()
        get_broker_client.cache_clear()
    if get_engine.cache_info().currsize:
        get_engine().dispose()
        get_engine.cache_clear()


# ── Principal ─────────────────────────────────────────────────────


def get_current_user_id(request: Request) -> str:
    """Return the authenticated user ID set by the upstream gateway.

    Token verification happens before requests reach this service.

    Raises:
        HTTPException: 401 if no principal header is present.
    """
    user_id = request.headers.get(settings.user_id_header, "").strip()
    if not user_id:
        raise HTTPException(
            status_code=HTTP_401, detail="Unauthorized: no authenticated user"
        )
    return user_id


# ── Adapters ──────────────────────────────────────────────────────


def get_strategy_repository() -> StrategyRepository:
    """Build the strategy repository adapter."""
    return StrategyRepositoryAdapter(engine=get_engine())


def get_user_account_repository() -> UserAccountRepository:
    """Build the user account repository adapter."""
    return UserAccountRepositoryAdapter(engine=get_engine())


def get_balance_port(
    account_repo: UserAccountRepository = Depends(get_user_account_repository),
) -> AccountBalancePort:
    """Build the brokerage balance adapter."""
    return AlpacaBalanceAdapter(
        account_repo=account_repo,
        client=get_broker_client(),
        balance_field=settings.alpaca_balance_field,
    )


def get_allocation_ledger(
    strategy_repo: StrategyRepository = Depends(get_strategy_repository),
    balance: AccountBalancePort = Depends(get_balance_port),
    locks: UserLockRegistry = Depends(get_lock_registry),
) -> AllocationLedger:
    """Build the AllocationLedger with its collaborators."""
    return AllocationLedger(
        strategies=strategy_repo,
        balance=balance,
        locks=locks,
        timeout=settings.upstream_timeout_seconds,
        lock_timeout=settings.allocation_lock_timeout_seconds,
    )


# ── Use cases ─────────────────────────────────────────────────────


def get_allocation_summary_use_case(
    ledger: AllocationLedger = Depends(get_allocation_ledger),
) -> GetAllocationSummaryUseCase:
    """Build GetAllocationSummaryUseCase with its dependencies."""
    return GetAllocationSummaryUseCase(ledger=ledger)


def get_create_strategy_use_case(
    strategy_repo: StrategyRepository = Depends(get_strategy_repository),
    account_repo: UserAccountRepository = Depends(get_user_account_repository),
) -> CreateStrategyUseCase:
    """Build CreateStrategyUseCase with its dependencies."""
    return CreateStrategyUseCase(strategy_repo=strategy_repo, account_repo=account_repo)


def get_list_strategies_use_case(
    strategy_repo: StrategyRepository = Depends(get_strategy_repository),
) -> ListStrategiesUseCase:
    """Build ListStrategiesUseCase with its dependencies."""
    return ListStrategiesUseCase(strategy_repo=strategy_repo)


def get_strategy_use_case(
    strategy_repo: StrategyRepository = Depends(get_strategy_repository),
) -> GetStrategyUseCase:
    """Build GetStrategyUseCase with its dependencies."""
    return GetStrategyUseCase(strategy_repo=strategy_repo)


def get_update_strategy_use_case(
    strategy_repo: StrategyRepository = Depends(get_strategy_repository),
    ledger: AllocationLedger = Depends(get_allocation_ledger),
) -> UpdateStrategyUseCase:
    """Build UpdateStrategyUseCase with its dependencies."""
    return UpdateStrategyUseCase(strategy_repo=strategy_repo, ledger=ledger)


def get_delete_strategy_use_case(
    strategy_repo: StrategyRepository = Depends(get_strategy_repository),
) -> DeleteStrategyUseCase:
    """Build DeleteStrategyUseCase with its dependencies."""
    return DeleteStrategyUseCase(strategy_repo=strategy_repo)
