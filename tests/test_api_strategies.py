"""
Tests for the strategies API endpoints.

Tests FastAPI routes with in-memory ports injected through
dependency overrides. Validates request validation, response schemas,
the principal header, and error mapping.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from allocator.core.config import settings
from allocator.domain.strategies.errors import UpstreamUnavailableError
from allocator.interfaces.strategies.dependencies import (
    get_balance_port,
    get_engine,
    get_lock_registry,
    get_strategy_repository,
    get_user_account_repository,
)
from allocator.main import app
from tests.conftest import OTHER_USER, USER

client = TestClient(app)

BASE = "/api/v1/strategies"
AUTH = {"X-User-Id": USER}


@pytest.fixture(autouse=True)
def wired(seeded_store, accounts, balance, locks, sqlite_engine):
    """Route every port to the in-memory fakes for the duration of a test."""
    app.dependency_overrides[get_strategy_repository] = lambda: seeded_store
    app.dependency_overrides[get_user_account_repository] = lambda: accounts
    app.dependency_overrides[get_balance_port] = lambda: balance
    app.dependency_overrides[get_lock_registry] = lambda: locks
    app.dependency_overrides[get_engine] = lambda: sqlite_engine
    yield
    app.dependency_overrides.clear()


class TestAllocationSummaryEndpoint:
    """Tests for GET /api/v1/strategies/allocation-summary."""

    def test_summary_shape(self) -> None:
        """Amounts are exact decimal strings; keys are camelCase."""
        response = client.get(f"{BASE}/allocation-summary", headers=AUTH)
        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["availableFunds"]) == Decimal("10000")
        assert Decimal(body["totalAllocated"]) == Decimal("5000")
        assert Decimal(body["availableToAllocate"]) == Decimal("5000")
        assert body["overAllocated"] is False
        assert body["summary"] == {
            "totalStrategies": 2,
            "activeStrategies": 1,
            "strategiesWithAllocation": 2,
        }
        assert {a["id"] for a in body["allocations"]} == {"A", "B"}

    def test_over_allocated_reported_negative(self, balance) -> None:
        balance.funds = Decimal("4000")
        body = client.get(f"{BASE}/allocation-summary", headers=AUTH).json()
        assert Decimal(body["availableToAllocate"]) == Decimal("-1000")
        assert body["overAllocated"] is True

    def test_missing_principal(self) -> None:
        """Requests without the user header are rejected with 401."""
        response = client.get(f"{BASE}/allocation-summary")
        assert response.status_code == 401
        assert "error" in response.json()

    def test_balance_unavailable(self, balance) -> None:
        balance.error = UpstreamUnavailableError("balance provider", "HTTP 502")
        response = client.get(f"{BASE}/allocation-summary", headers=AUTH)
        assert response.status_code == 503
        assert response.json() == {
            "error": "Upstream unavailable",
            "detail": "balance provider",
        }

    def test_no_trading_account(self) -> None:
        response = client.get(
            f"{BASE}/allocation-summary", headers={"X-User-Id": "nobody"}
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Trading account not found"


class TestStrategyCrudEndpoints:
    """Tests for create, list, get and delete."""

    def test_create(self, seeded_store) -> None:
        response = client.post(
            BASE, json={"name": "Breakout", "description": "daily"}, headers=AUTH
        )
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Breakout"
        assert body["isActive"] is False
        assert body["allocatedAmount"] is None
        assert seeded_store.get(body["id"]) is not None

    def test_create_unknown_field_rejected(self) -> None:
        response = client.post(
            BASE, json={"name": "x", "allocatedAmount": "100"}, headers=AUTH
        )
        assert response.status_code == 422
        assert response.json()["error"] == "Invalid request"

    def test_create_unprovisioned_user(self) -> None:
        response = client.post(
            BASE, json={"name": "x"}, headers={"X-User-Id": "stranger"}
        )
        assert response.status_code == 403

    def test_list_own_only(self) -> None:
        response = client.get(BASE, headers=AUTH)
        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == ["B", "A"]

    def test_get_own(self) -> None:
        body = client.get(f"{BASE}/A", headers=AUTH).json()
        assert Decimal(body["allocatedAmount"]) == Decimal("3000")
        assert body["userId"] == USER

    def test_get_foreign_forbidden(self) -> None:
        response = client.get(f"{BASE}/X", headers=AUTH)
        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden"}

    def test_get_missing(self) -> None:
        assert client.get(f"{BASE}/missing", headers=AUTH).status_code == 404

    def test_delete_releases_capital(self) -> None:
        response = client.delete(f"{BASE}/B", headers=AUTH)
        assert response.status_code == 204
        assert response.content == b""
        body = client.get(f"{BASE}/allocation-summary", headers=AUTH).json()
        assert Decimal(body["availableToAllocate"]) == Decimal("7000")

    def test_delete_foreign_forbidden(self, seeded_store) -> None:
        response = client.delete(f"{BASE}/X", headers={"X-User-Id": USER})
        assert response.status_code == 403
        assert seeded_store.get("X").user_id == OTHER_USER


class TestUpdateStrategyEndpoint:
    """Tests for PATCH /api/v1/strategies/{id}."""

    def test_allocation_within_funds(self) -> None:
        response = client.patch(
            f"{BASE}/B", json={"allocatedAmount": "7000"}, headers=AUTH
        )
        assert response.status_code == 200
        assert Decimal(response.json()["allocatedAmount"]) == Decimal("7000")

    def test_insufficient_funds_reports_ceiling(self, seeded_store) -> None:
        response = client.patch(
            f"{BASE}/B", json={"allocatedAmount": "7001"}, headers=AUTH
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "Insufficient funds for allocation"
        assert Decimal(body["maxAllowable"]) == Decimal("7000")
        assert Decimal(body["requestedAmount"]) == Decimal("7001")
        assert Decimal(body["availableFunds"]) == Decimal("10000")
        assert Decimal(body["currentlyAllocated"]) == Decimal("3000")
        assert seeded_store.get("B").allocated_amount == Decimal("2000")

    def test_snake_case_accepted(self) -> None:
        response = client.patch(
            f"{BASE}/A", json={"is_active": False}, headers=AUTH
        )
        assert response.status_code == 200
        assert response.json()["isActive"] is False

    def test_null_allocation_releases_capital(self, seeded_store) -> None:
        """An explicit null allocatedAmount sets the allocation to zero."""
        response = client.patch(
            f"{BASE}/B", json={"allocatedAmount": None}, headers=AUTH
        )
        assert response.status_code == 200
        assert Decimal(response.json()["allocatedAmount"]) == Decimal("0")
        assert seeded_store.get("B").allocated_amount == Decimal("0")

    def test_omitted_allocation_unchanged(self, seeded_store) -> None:
        response = client.patch(f"{BASE}/B", json={"name": "Swing"}, headers=AUTH)
        assert response.status_code == 200
        assert seeded_store.get("B").allocated_amount == Decimal("2000")

    def test_null_description_clears_it(self, seeded_store) -> None:
        client.patch(f"{BASE}/A", json={"description": "notes"}, headers=AUTH)
        assert seeded_store.get("A").description == "notes"

        response = client.patch(f"{BASE}/A", json={"description": None}, headers=AUTH)
        assert response.status_code == 200
        assert response.json()["description"] is None
        assert seeded_store.get("A").description is None

    def test_omitted_description_unchanged(self, seeded_store) -> None:
        client.patch(f"{BASE}/A", json={"description": "notes"}, headers=AUTH)
        client.patch(f"{BASE}/A", json={"isActive": False}, headers=AUTH)
        assert seeded_store.get("A").description == "notes"

    @pytest.mark.parametrize("amount", ["-1", "NaN", "abc", "1.234"])
    def test_invalid_amount_rejected(self, amount, balance) -> None:
        response = client.patch(
            f"{BASE}/B", json={"allocatedAmount": amount}, headers=AUTH
        )
        assert response.status_code == 422
        assert response.json()["error"] == "Invalid request"
        assert balance.calls == 0

    def test_foreign_strategy_forbidden(self) -> None:
        response = client.patch(
            f"{BASE}/X", json={"allocatedAmount": "1"}, headers=AUTH
        )
        assert response.status_code == 403

    def test_balance_unavailable_is_not_insufficient_funds(self, balance) -> None:
        balance.error = UpstreamUnavailableError("balance provider", "timed out")
        response = client.patch(
            f"{BASE}/B", json={"allocatedAmount": "2500"}, headers=AUTH
        )
        assert response.status_code == 503

    def test_decrease_without_balance(self, balance) -> None:
        balance.error = UpstreamUnavailableError("balance provider", "down")
        response = client.patch(
            f"{BASE}/A", json={"allocatedAmount": "0"}, headers=AUTH
        )
        assert response.status_code == 200
        assert Decimal(response.json()["allocatedAmount"]) == Decimal("0")

    def test_persistence_failure(self, seeded_store) -> None:
        seeded_store.fail_writes = True
        response = client.patch(
            f"{BASE}/B", json={"allocatedAmount": "2500"}, headers=AUTH
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save changes"}

    def test_lock_contention(self, locks, seeded_store) -> None:
        original = settings.allocation_lock_timeout_seconds
        settings.allocation_lock_timeout_seconds = 0.05
        lock = locks.lock_for(USER)
        lock.acquire()
        try:
            response = client.patch(
                f"{BASE}/B", json={"allocatedAmount": "2500"}, headers=AUTH
            )
        finally:
            lock.release()
            settings.allocation_lock_timeout_seconds = original
        assert response.status_code == 409


class TestHealthEndpoint:
    """Tests for GET /api/v1/health."""

    def test_health_returns_ok(self) -> None:
        """Health endpoint must return 200 with status and database ok."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["database"] == "ok"
        assert "version" in data

    def test_health_degraded_when_database_down(self) -> None:
        engine = create_engine("sqlite:////nonexistent-dir/allocator.db")
        app.dependency_overrides[get_engine] = lambda: engine
        data = client.get("/api/v1/health").json()
        assert data["status"] == "degraded"
        assert data["database"] == "unavailable"


class TestSecurityHeaders:
    """Tests for security headers on responses."""

    def test_security_headers_present(self) -> None:
        """All security headers must be present on every response."""
        response = client.get("/api/v1/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Cache-Control"] == "no-store"
        assert "Content-Security-Policy" in response.headers

    def test_security_headers_on_errors(self) -> None:
        response = client.get(f"{BASE}/allocation-summary")
        assert response.status_code == 401
        assert response.headers["X-Frame-Options"] == "DENY"
