"""Domain Events emitted by the request path (deferrals, retries, realignments)."""
