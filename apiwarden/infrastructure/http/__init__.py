"""HTTP request path: the blocking transport adapter and the request executor."""
