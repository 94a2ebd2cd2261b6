"""Caching Service Implementation.

Provides the in-memory response cache implementing the CacheService
interface, keyed by canonical request identity with per-entry TTLs.
Bounded Context: Cache Management
"""
