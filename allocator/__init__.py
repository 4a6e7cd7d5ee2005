"""
Strategy Allocator: fund-allocation ledger for trading strategies.

Application package root. This is a small service using
hexagonal architecture (ports & adapters).

Bounded contexts:
    - strategies: Strategy lifecycle and the capital allocated to each strategy.

Layers:
    - domain: Pure business logic, entities, ports (ABCs), errors, the ledger.
    - application: Use cases, DTOs, orchestration.
    - infrastructure: Adapters (SQL store, brokerage API) implementing domain ports.
    - interfaces: FastAPI routers, Pydantic schemas, dependency wiring.
    - shared: Cross-cutting concerns (errors, security, logging).
"""
