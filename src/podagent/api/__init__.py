"""Agent HTTP API."""
