"""Service-specific wrappers built on the shared request path."""
