"""Google Workspace directory wrapper."""
