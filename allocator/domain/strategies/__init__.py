"""
Strategies bounded context: domain layer.

Owns the allocation invariant: the capital reserved by a user's
strategies never exceeds the funds available in the user's
brokerage account at the moment an allocation is committed.
"""
