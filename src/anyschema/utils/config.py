"""Configuration utilities for environment-based setup."""

import os
from enum import Enum

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from anyschema.exceptions import ConfigurationException

ENV_AMBIGUITY = "ANYSCHEMA_AMBIGUITY"
ENV_SCHEMA_URI = "ANYSCHEMA_SCHEMA_URI"
ENV_STRICT_COMPILE = "ANYSCHEMA_STRICT_COMPILE"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class AmbiguityPolicy(str, Enum):
    """How the adapter registry reacts when several adapters match a value."""

    FIRST_MATCH = "first"
    WARN = "warn"
    ERROR = "error"


class AnySchemaSettings(BaseModel):
    """Runtime settings for compilation and adapter resolution.

    Attributes:
        ambiguity: Resolution policy for values claimed by several adapters
        schema_uri: Optional ``$schema`` URI added to compiled roots
        strict_compile: Propagate adapter failures instead of emitting ``{}``
    """

    ambiguity: AmbiguityPolicy = Field(
        default=AmbiguityPolicy.FIRST_MATCH,
        description="Resolution policy for values claimed by several adapters",
    )
    schema_uri: str | None = Field(
        default=None, description="Optional $schema URI added to compiled roots"
    )
    strict_compile: bool = Field(
        default=False,
        description="Propagate adapter failures instead of degrading to {}",
    )


def load_environment() -> None:
    """Load environment variables from .env file if it exists."""
    load_dotenv()


def _parse_flag(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationException(
        f"Invalid boolean for {key}: {raw!r}. Use true or false.",
        config_key=key,
        config_value=raw,
    )


def get_settings() -> AnySchemaSettings:
    """Build settings from the environment.

    Returns:
        Settings populated from ``ANYSCHEMA_*`` variables, defaults otherwise

    Raises:
        ConfigurationException: If a variable holds an invalid value
    """
    load_environment()

    ambiguity = os.getenv(ENV_AMBIGUITY, AmbiguityPolicy.FIRST_MATCH.value)
    schema_uri = os.getenv(ENV_SCHEMA_URI) or None
    strict_compile = _parse_flag(
        ENV_STRICT_COMPILE, os.getenv(ENV_STRICT_COMPILE, "false")
    )

    try:
        return AnySchemaSettings(
            ambiguity=ambiguity.strip().lower(),
            schema_uri=schema_uri,
            strict_compile=strict_compile,
        )
    except ValidationError as e:
        raise ConfigurationException(
            f"Invalid value for {ENV_AMBIGUITY}: {ambiguity!r}. "
            "Expected one of: first, warn, error.",
            config_key=ENV_AMBIGUITY,
            config_value=ambiguity,
        ) from e
