"""Core configuration, errors and wire-format helpers."""
