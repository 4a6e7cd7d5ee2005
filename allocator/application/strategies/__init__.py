"""
Application layer for the strategies bounded context.

Use cases coordinate domain entities, the allocation ledger and ports
to fulfill business operations. No framework or infrastructure imports allowed.
"""
