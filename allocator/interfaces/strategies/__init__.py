"""
HTTP interface for the strategies bounded context.
"""
