"""Errors raised while reading toolkit configuration."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when an environment value such as ``CL_DRY_RUN`` cannot be parsed."""
