"""Shared helpers: error hierarchy and API error responses."""
