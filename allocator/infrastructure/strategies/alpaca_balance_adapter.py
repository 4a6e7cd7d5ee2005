"""
Adapter: Alpaca brokerage balance.

Implements AccountBalancePort.
Reads the user's trading account from the Alpaca Broker API and
returns one of its balance figures (buying power by default).

There is no fallback figure: when the brokerage cannot be reached or
answers with something that is not a number, the failure propagates.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from allocator.domain.strategies.errors import (
    TradingAccountNotFoundError,
    UpstreamUnavailableError,
)
from allocator.domain.strategies.ports import AccountBalancePort, UserAccountRepository

logger = logging.getLogger(__name__)

SOURCE = "balance provider"


def build_broker_client(
    base_url: str,
    api_key: Optional[str],
    api_secret: Optional[str],
    timeout: float,
) -> httpx.Client:
    """Build an HTTP client for the Alpaca Broker API.

    The Broker API uses HTTP Basic auth with the key ID and secret.
    """
    auth = (api_key, api_secret) if api_key and api_secret else None
    if auth is None:
        logger.warning("Alpaca broker credentials are not configured.")
    return httpx.Client(
        base_url=base_url,
        auth=auth,
        timeout=timeout,
        headers={"Accept": "application/json"},
    )


class AlpacaBalanceAdapter(AccountBalancePort):
    """Balance provider backed by the Alpaca Broker API.

    Args:
        account_repo: Resolves a user to their brokerage trading ID.
        client: HTTP client with base URL and credentials configured.
        balance_field: Account field to report as available funds.
    """

    def __init__(
        self,
        account_repo: UserAccountRepository,
        client: httpx.Client,
        balance_field: str = "buying_power",
    ) -> None:
        self._account_repo = account_repo
        self._client = client
        self._balance_field = balance_field

    def get_available_funds(self, user_id: str) -> Decimal:
        """Return the user's available funds from their brokerage account.

        Args:
            user_id: The application user.

        Returns:
            The configured balance field as a Decimal.

        Raises:
            TradingAccountNotFoundError: If the user has no trading account.
            UpstreamUnavailableError: If the call fails or the balance is
                missing or non-numeric.
        """
        account = self._account_repo.get(user_id)
        if account is None or not account.trading_id:
            raise TradingAccountNotFoundError(user_id)

        path = f"/trading/accounts/{account.trading_id}/account"
        try:
            response = self._client.get(path)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            logger.error("Brokerage timed out for user=%s", user_id)
            raise UpstreamUnavailableError(SOURCE, "timed out") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("Brokerage returned HTTP %d for user=%s", status, user_id)
            if status == 404:
                raise TradingAccountNotFoundError(user_id) from exc
            raise UpstreamUnavailableError(SOURCE, f"HTTP {status}") from exc
        except httpx.HTTPError as exc:
            logger.error("Brokerage request failed for user=%s", user_id)
            raise UpstreamUnavailableError(SOURCE, type(exc).__name__) from exc
        except ValueError as exc:
            raise UpstreamUnavailableError(SOURCE, "malformed response") from exc

        return self._parse_balance(payload)

    def _parse_balance(self, payload) -> Decimal:
        raw = payload.get(self._balance_field) if isinstance(payload, dict) else None
        if raw is None or isinstance(raw, bool):
            raise UpstreamUnavailableError(
                SOURCE, f"missing {self._balance_field}"
            )
        try:
            value = Decimal(str(raw))
        except InvalidOperation:
            raise UpstreamUnavailableError(SOURCE, "non-numeric balance") from None
        if not value.is_finite():
            raise UpstreamUnavailableError(SOURCE, "non-numeric balance")
        return value
