"""apiwarden: shared access layer for rate-limited, paginated JSON REST APIs."""

__version__ = "0.1.0"
