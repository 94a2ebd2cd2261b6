"""Okta user directory wrapper."""
