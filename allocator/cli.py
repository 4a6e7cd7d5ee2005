"""
Administrative CLI for the strategy allocator.

Usage:
    # Create missing tables
    python -m allocator.cli init-db

    # Register a user and link their brokerage account
    python -m allocator.cli provision-user USER_ID --trading-id ACCOUNT_ID

    # Print a user's allocation summary as JSON
    python -m allocator.cli summary USER_ID
"""

import argparse
import json
import logging
import sys

from allocator.core.config import settings
from allocator.domain.strategies.allocation_ledger import (
    AllocationLedger,
    UserLockRegistry,
)
from allocator.domain.strategies.entities import AllocationSummary, UserAccount
from allocator.domain.strategies.errors import StrategyDomainError
from allocator.infrastructure.strategies.alpaca_balance_adapter import (
    AlpacaBalanceAdapter,
    build_broker_client,
)
from allocator.infrastructure.strategies.schema import build_engine, create_schema
from allocator.infrastructure.strategies.strategy_repository import (
    StrategyRepositoryAdapter,
)
from allocator.infrastructure.strategies.user_account_repository import (
    UserAccountRepositoryAdapter,
)
from allocator.shared.logging import configure_logging

logger = logging.getLogger(__name__)


def cmd_init_db(args: argparse.Namespace) -> None:
    """Create the database schema."""
    create_schema(build_engine(settings.get_database_url()))


def cmd_provision_user(args: argparse.Namespace) -> None:
    """Create or update a user's account record."""
    engine = build_engine(settings.get_database_url())
    UserAccountRepositoryAdapter(engine=engine).save(
        UserAccount(user_id=args.user_id, trading_id=args.trading_id)
    )


def cmd_summary(args: argparse.Namespace) -> None:
    """Print a user's allocation summary."""
    engine = build_engine(settings.get_database_url())
    client = build_broker_client(
        base_url=settings.alpaca_broker_base_url,
        api_key=settings.alpaca_broker_api_key,
        api_secret=settings.alpaca_broker_api_secret,
        timeout=settings.upstream_timeout_seconds,
    )
    with client:
        ledger = AllocationLedger(
            strategies=StrategyRepositoryAdapter(engine=engine),
            balance=AlpacaBalanceAdapter(
                account_repo=UserAccountRepositoryAdapter(engine=engine),
                client=client,
                balance_field=settings.alpaca_balance_field,
            ),
            locks=UserLockRegistry(),
            timeout=settings.upstream_timeout_seconds,
        )
        summary = ledger.get_summary(args.user_id)

    print(json.dumps(summary_to_json(summary), indent=2))


def summary_to_json(summary: AllocationSummary) -> dict:
    """Render a summary with the same keys as the HTTP response."""
    return {
        "availableFunds": str(summary.available_funds),
        "totalAllocated": str(summary.total_allocated),
        "availableToAllocate": str(summary.available_to_allocate),
        "overAllocated": summary.over_allocated,
        "allocations": [
            {
                "id": a.id,
                "name": a.name,
                "allocatedAmount": str(a.allocated_amount),
                "isActive": a.is_active,
            }
            for a in summary.allocations
        ],
        "summary": {
            "totalStrategies": summary.counts.total_strategies,
            "activeStrategies": summary.counts.active_strategies,
            "strategiesWithAllocation": summary.counts.strategies_with_allocation,
        },
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="allocator",
        description="Strategy allocator administration",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init-db", help="Create missing database tables")
    p_init.set_defaults(func=cmd_init_db)

    p_user = sub.add_parser("provision-user", help="Register a user account")
    p_user.add_argument("user_id", help="Authenticated user ID")
    p_user.add_argument("--trading-id", default=None, help="Brokerage account ID")
    p_user.set_defaults(func=cmd_provision_user)

    p_sum = sub.add_parser("summary", help="Show a user's allocation summary")
    p_sum.add_argument("user_id", help="Authenticated user ID")
    p_sum.set_defaults(func=cmd_summary)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(level=settings.log_level)
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except StrategyDomainError as exc:
        logger.error("%s", exc.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
