"""Domain models shared by the core services and the provider wrappers."""
