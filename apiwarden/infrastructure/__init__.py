"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (HTTP transport, provider
APIs, configuration, console) by implementing the interfaces defined in the
domain layer. Also includes the resilience and caching services.
"""
