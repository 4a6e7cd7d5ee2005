"""
Adapter: User account repository.

Implements UserAccountRepository port.
Maps application users to their brokerage trading account IDs.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from allocator.domain.strategies.entities import UserAccount
from allocator.domain.strategies.errors import (
    PersistenceFailureError,
    UpstreamUnavailableError,
)
from allocator.domain.strategies.ports import UserAccountRepository
from allocator.infrastructure.strategies.schema import user_accounts

logger = logging.getLogger(__name__)


class UserAccountRepositoryAdapter(UserAccountRepository):
    """SQLAlchemy implementation of the user account repository."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, user_id: str) -> Optional[UserAccount]:
        stmt = select(user_accounts).where(user_accounts.c.user_id == user_id)
        try:
            with self._engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError as exc:
            logger.error("Failed to load account for user=%s", user_id)
            raise UpstreamUnavailableError("account store", type(exc).__name__) from exc

        if row is None:
            return None
        return UserAccount(user_id=row["user_id"], trading_id=row["trading_id"])

    def save(self, account: UserAccount) -> None:
        """Create or replace a user's account record.

        Args:
            account: The account link to store.
        """
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    user_accounts.update()
                    .where(user_accounts.c.user_id == account.user_id)
                    .values(trading_id=account.trading_id)
                )
                if result.rowcount == 0:
                    conn.execute(
                        user_accounts.insert().values(
                            user_id=account.user_id,
                            trading_id=account.trading_id,
                        )
                    )
        except SQLAlchemyError as exc:
            logger.error("Failed to save account for user=%s", account.user_id)
            raise PersistenceFailureError(type(exc).__name__) from exc

        logger.info("Saved account for user=%s", account.user_id)
