"""Credential adapters that turn externally obtained tokens into auth headers."""
