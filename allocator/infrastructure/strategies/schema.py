"""
Relational schema for the strategies bounded context.

The allocation ledger has no table of its own: the only persisted
ledger state is the allocated_amount column on each strategy row.
"""

import logging

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

user_accounts = Table(
    "user_accounts",
    metadata,
    Column("user_id", String(128), primary_key=True),
    Column("trading_id", String(128), nullable=True),
)

strategies = Table(
    "strategies",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(128), nullable=False, index=True),
    Column("name", String(120), nullable=False),
    Column("description", Text, nullable=True),
    Column("is_active", Boolean, nullable=False, default=False),
    Column("allocated_amount", Numeric(18, 2, asdecimal=True), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)


def build_engine(url: str, **kwargs) -> Engine:
    """Build a SQLAlchemy engine with connection health checks enabled."""
    return create_engine(url, pool_pre_ping=True, **kwargs)


def create_schema(engine: Engine) -> None:
    """Create any missing tables. Existing tables are left untouched."""
    metadata.create_all(engine)
    logger.info("Schema ensured: %s", ", ".join(sorted(metadata.tables)))
