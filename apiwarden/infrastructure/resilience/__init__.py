"""API Resilience Implementations.

Contains the request rate limiter (fixed-budget and reset-aware) and the
page-level retry service with exponential backoff.
Bounded Context: API Resilience
"""
