"""
Centralized error handlers for FastAPI.

Maps domain-specific errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse shape: {"error": ..., "detail": ...}.

Client-correctable failures (bad input, insufficient funds, ownership)
are 4xx; upstream and persistence failures are 5xx.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from allocator.domain.strategies.errors import (
    AllocationConflictError,
    InsufficientFundsError,
    InvalidArgumentError,
    PersistenceFailureError,
    StrategyAccessDeniedError,
    StrategyDomainError,
    StrategyNotFoundError,
    TradingAccountNotFoundError,
    UpstreamUnavailableError,
    UserNotProvisionedError,
)

logger = logging.getLogger(__name__)

HTTP_403 = 403
HTTP_404 = 404
HTTP_409 = 409
HTTP_422 = 422
HTTP_500 = 500
HTTP_503 = 503


def _error_response(
    status_code: int,
    error: str,
    detail: str | None = None,
    **extra: Any,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, Any] = {"error": error}
    if detail:
        body["detail"] = detail
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle malformed request bodies, paths and query strings."""
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        detail = f"{location}: {first.get('msg', 'invalid value')}" if location else None
        logger.warning("Request validation failed: %s", detail)
        return _error_response(HTTP_422, "Invalid request", detail)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        _request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Keep framework-raised HTTP errors in the application's error shape."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(InvalidArgumentError)
    async def handle_invalid_argument(
        _request: Request, exc: InvalidArgumentError
    ) -> JSONResponse:
        """Handle invalid input caught by the domain."""
        logger.warning("Invalid argument: %s", exc.message)
        return _error_response(HTTP_422, exc.message)

    @app.exception_handler(InsufficientFundsError)
    async def handle_insufficient_funds(
        _request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        """Handle allocations that exceed the available funds.

        The body carries the ceiling so clients can show it directly.
        """
        logger.warning("Insufficient funds: max allowable %s", exc.max_allowable)
        return _error_response(
            HTTP_422,
            "Insufficient funds for allocation",
            f"Maximum available: {exc.max_allowable}",
            requestedAmount=str(exc.requested_amount),
            availableFunds=str(exc.available_funds),
            currentlyAllocated=str(exc.currently_allocated),
            maxAllowable=str(exc.max_allowable),
        )

    @app.exception_handler(StrategyNotFoundError)
    async def handle_strategy_not_found(
        _request: Request, exc: StrategyNotFoundError
    ) -> JSONResponse:
        """Handle missing strategy errors."""
        logger.warning("Strategy not found: %s", exc.strategy_id)
        return _error_response(HTTP_404, "Strategy not found")

    @app.exception_handler(TradingAccountNotFoundError)
    async def handle_trading_account_not_found(
        _request: Request, exc: TradingAccountNotFoundError
    ) -> JSONResponse:
        """Handle users without a brokerage account."""
        logger.warning("Trading account not found for user: %s", exc.user_id)
        return _error_response(HTTP_404, "Trading account not found")

    @app.exception_handler(StrategyAccessDeniedError)
    async def handle_access_denied(
        _request: Request, exc: StrategyAccessDeniedError
    ) -> JSONResponse:
        """Handle access to another user's strategy."""
        logger.warning("Access denied: user=%s strategy=%s", exc.user_id, exc.strategy_id)
        return _error_response(HTTP_403, "Forbidden")

    @app.exception_handler(UserNotProvisionedError)
    async def handle_user_not_provisioned(
        _request: Request, exc: UserNotProvisionedError
    ) -> JSONResponse:
        """Handle authenticated users that have no account record."""
        logger.warning("User not provisioned: %s", exc.user_id)
        return _error_response(HTTP_403, "User not provisioned")

    @app.exception_handler(AllocationConflictError)
    async def handle_allocation_conflict(
        _request: Request, exc: AllocationConflictError
    ) -> JSONResponse:
        """Handle allocation updates that could not take the user's lock."""
        logger.warning("Allocation conflict for user: %s", exc.user_id)
        return _error_response(
            HTTP_409, "Allocation update in progress", "Retry the request"
        )

    @app.exception_handler(UpstreamUnavailableError)
    async def handle_upstream_unavailable(
        _request: Request, exc: UpstreamUnavailableError
    ) -> JSONResponse:
        """Handle unreachable or timed-out collaborators."""
        logger.error("Upstream unavailable: %s (%s)", exc.source, exc.reason)
        return _error_response(HTTP_503, "Upstream unavailable", exc.source)

    @app.exception_handler(PersistenceFailureError)
    async def handle_persistence_failure(
        _request: Request, exc: PersistenceFailureError
    ) -> JSONResponse:
        """Handle validated writes that could not be committed."""
        logger.error("Persistence failure: %s", exc.reason)
        return _error_response(HTTP_500, "Failed to save changes")

    @app.exception_handler(StrategyDomainError)
    async def handle_strategy_domain(
        _request: Request, exc: StrategyDomainError
    ) -> JSONResponse:
        """Catch-all for unhandled strategies domain errors."""
        logger.error("Unhandled strategies domain error: %s", exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
