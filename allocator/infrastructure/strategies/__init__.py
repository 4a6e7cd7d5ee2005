"""
Infrastructure adapters for the strategies bounded context.

Each adapter implements a domain port (ABC) and connects
to an external system: the relational store or the brokerage API.
"""
