"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here, with no scattered magic strings.
"""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        rate_limit_enabled: Turn request rate limiting on or off.
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_write: Rate limit for endpoints that change allocations.
        user_id_header: Header carrying the authenticated principal, set by
            the gateway that verified the caller's token.
        database_url: Explicit SQLAlchemy URL. Built from postgres_* when unset.
        auto_create_schema: Create missing tables on startup.
        alpaca_broker_base_url: Alpaca Broker API base URL.
        alpaca_broker_api_key: Broker API key ID.
        alpaca_broker_api_secret: Broker API secret.
        alpaca_balance_field: Account field used as the user's available funds.
        upstream_timeout_seconds: Timeout for the store and brokerage reads.
        allocation_lock_timeout_seconds: Max wait for a user's allocation lock.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    project_name: str = "Strategy Allocator"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    rate_limit_enabled: bool = True
    rate_limit_default: str = "60/minute"
    rate_limit_write: str = "20/minute"
    user_id_header: str = "X-User-Id"

    database_url: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "strategy_allocator"
    auto_create_schema: bool = False

    alpaca_broker_base_url: str = "https://broker-api.sandbox.alpaca.markets/v1"
    alpaca_broker_api_key: Optional[str] = None
    alpaca_broker_api_secret: Optional[str] = None
    alpaca_balance_field: Literal["buying_power", "portfolio_value", "cash"] = (
        "buying_power"
    )

    upstream_timeout_seconds: float = 10.0
    allocation_lock_timeout_seconds: float = 5.0

    def get_database_url(self) -> str:
        """Return the effective SQLAlchemy database URL.

        Priority:
        1. Explicit `DATABASE_URL`
        2. Build a Postgres URL from postgres_* values (Docker Compose or local setups)
        """
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}@"
            f"{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
