"""Core models, errors and shared utilities."""
