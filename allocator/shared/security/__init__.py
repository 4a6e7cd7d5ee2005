"""
Security middleware and request throttling.
"""
