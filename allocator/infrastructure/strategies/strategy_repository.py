"""
Adapter: Strategy repository.

Implements StrategyRepository port.
Persists strategies, including their allocated amount, with SQLAlchemy.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine, RowMapping
from sqlalchemy.exc import SQLAlchemyError

from allocator.domain.strategies.entities import Strategy, StrategyChanges
from allocator.domain.strategies.errors import (
    PersistenceFailureError,
    StrategyNotFoundError,
    UpstreamUnavailableError,
)
from allocator.domain.strategies.ports import StrategyRepository
from allocator.infrastructure.strategies.schema import strategies

logger = logging.getLogger(__name__)

SOURCE = "strategy store"


def _to_entity(row: RowMapping) -> Strategy:
    return Strategy(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        description=row["description"],
        is_active=bool(row["is_active"]),
        allocated_amount=row["allocated_amount"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class StrategyRepositoryAdapter(StrategyRepository):
    """SQLAlchemy implementation of the strategy repository.

    Read failures are reported as UpstreamUnavailableError, write
    failures as PersistenceFailureError. Every write runs in its own
    transaction, so a failed write leaves the row unchanged.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def list_by_user(self, user_id: str) -> list[Strategy]:
        """Return every strategy owned by the user, newest first.

        Args:
            user_id: Owning user.

        Returns:
            List of Strategy entities ordered by created_at descending.
        """
        stmt = (
            select(strategies)
            .where(strategies.c.user_id == user_id)
            .order_by(strategies.c.created_at.desc(), strategies.c.id)
        )
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            logger.error("Failed to list strategies for user=%s", user_id)
            raise UpstreamUnavailableError(SOURCE, type(exc).__name__) from exc

        return [_to_entity(row) for row in rows]

    def get(self, strategy_id: str) -> Optional[Strategy]:
        """Return a strategy by its ID, or None if not found."""
        stmt = select(strategies).where(strategies.c.id == strategy_id)
        try:
            with self._engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError as exc:
            logger.error("Failed to load strategy id=%s", strategy_id)
            raise UpstreamUnavailableError(SOURCE, type(exc).__name__) from exc

        return _to_entity(row) if row is not None else None

    def add(self, strategy: Strategy) -> Strategy:
        """Persist a new strategy.

        Args:
            strategy: Strategy entity to insert.

        Returns:
            The inserted strategy.
        """
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    strategies.insert().values(
                        id=strategy.id,
                        user_id=strategy.user_id,
                        name=strategy.name,
                        description=strategy.description,
                        is_active=strategy.is_active,
                        allocated_amount=strategy.allocated_amount,
                        created_at=strategy.created_at,
                        updated_at=strategy.updated_at,
                    )
                )
        except SQLAlchemyError as exc:
            logger.error("Failed to insert strategy id=%s", strategy.id)
            raise PersistenceFailureError(type(exc).__name__) from exc

        return strategy

    def update_allocation(self, strategy_id: str, amount) -> Strategy:
        """Set the allocated amount of a strategy."""
        return self.update(strategy_id, StrategyChanges(allocated_amount=amount))

    def update(self, strategy_id: str, changes: StrategyChanges) -> Strategy:
        """Apply a partial update in a single transaction.

        Args:
            strategy_id: Strategy to update.
            changes: Fields to set. None fields are left unchanged.

        Returns:
            The strategy as stored after the update.

        Raises:
            StrategyNotFoundError: If no row matched.
            PersistenceFailureError: If the transaction failed.
        """
        values: dict[str, Any] = {"updated_at": datetime.now(timezone.utc)}
        if changes.name is not None:
            values["name"] = changes.name
        if changes.clear_description:
            values["description"] = None
        elif changes.description is not None:
            values["description"] = changes.description
        if changes.is_active is not None:
            values["is_active"] = changes.is_active
        if changes.allocated_amount is not None:
            values["allocated_amount"] = changes.allocated_amount

        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    strategies.update()
                    .where(strategies.c.id == strategy_id)
                    .values(**values)
                )
                if result.rowcount == 0:
                    raise StrategyNotFoundError(strategy_id)
                row = conn.execute(
                    select(strategies).where(strategies.c.id == strategy_id)
                ).mappings().one()
        except SQLAlchemyError as exc:
            logger.error("Failed to update strategy id=%s", strategy_id)
            raise PersistenceFailureError(type(exc).__name__) from exc

        logger.debug("Updated strategy id=%s fields=%s", strategy_id, sorted(values))
        return _to_entity(row)

    def delete(self, strategy_id: str) -> bool:
        """Delete a strategy. Returns False if it did not exist."""
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    strategies.delete().where(strategies.c.id == strategy_id)
                )
        except SQLAlchemyError as exc:
            logger.error("Failed to delete strategy id=%s", strategy_id)
            raise PersistenceFailureError(type(exc).__name__) from exc

        return result.rowcount > 0
