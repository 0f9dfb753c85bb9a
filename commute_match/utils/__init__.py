"""Shared helpers: error taxonomy and Redis cache wrapper."""
