"""Utility functions for environment-based configuration."""

from .config import (
    AmbiguityPolicy,
    AnySchemaSettings,
    get_settings,
    load_environment,
)

__all__ = [
    "AmbiguityPolicy",
    "AnySchemaSettings",
    "get_settings",
    "load_environment",
]
