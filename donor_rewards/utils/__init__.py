"""Shared helpers: logging, scoring audit trail, timestamp handling."""
