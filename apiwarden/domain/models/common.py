"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like URLs, HTTP methods,
cache keys and header maps, ensuring consistency across layers.
"""

from typing import Dict, NewType

# === HTTP Context ===
Url = NewType("Url", str)                    # Fully built request URL
HttpMethod = NewType("HttpMethod", str)      # 'GET', 'POST', ...
Headers = Dict[str, str]                     # Header name -> value

JSON_CONTENT = "application/json"

# === Caching Context ===
CacheKey = NewType("CacheKey", str)          # Canonical request identity

# === Directory Context ===
UserId = NewType("UserId", str)              # Provider-side user identifier
Subject = NewType("Subject", str)            # Identity to impersonate (e.g. an email)
