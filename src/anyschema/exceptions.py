"""Custom exceptions for anyschema."""

from typing import Any


class AnySchemaException(Exception):
    """Base exception for anyschema.

    All custom exceptions in this package should inherit from this base class.
    """

    pass


class SchemaValidationException(AnySchemaException):
    """Raised when data does not satisfy a schema.

    This exception is raised when:
    - ``parse`` or ``parse_async`` receives invalid data
    - ``assert_valid`` fails

    Attributes:
        issues: Normalized validation issues reported by the vendor
        schema: The schema the data was checked against
    """

    def __init__(
        self,
        message: str,
        issues: list[Any] | None = None,
        schema: Any = None,
    ):
        super().__init__(message)
        self.issues = issues or []
        self.schema = schema


class SchemaCompileException(AnySchemaException):
    """Raised when a top-level value cannot be treated as a schema at all.

    Unrecognized schema objects compile to the empty schema; this is only
    raised for bare scalars (``None``, strings, numbers, booleans, bytes)
    that no registered adapter claims.

    Attributes:
        schema: The rejected value
    """

    def __init__(self, message: str, schema: Any = None):
        super().__init__(message)
        self.schema = schema


class AmbiguousAdapterException(AnySchemaException):
    """Raised when several adapters claim the same value.

    Only raised when the registry runs with the ``error`` ambiguity policy.

    Attributes:
        vendors: Vendors of every adapter whose ``match`` accepted the value
    """

    def __init__(self, message: str, vendors: list[str] | None = None):
        super().__init__(message)
        self.vendors = vendors or []


class ConfigurationException(AnySchemaException):
    """Raised when configuration errors occur.

    This exception is raised when:
    - Invalid configuration values are provided
    - Environment setup is incorrect

    Attributes:
        config_key: The configuration key that caused the error
        config_value: The invalid configuration value
    """

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        config_value: str | None = None,
    ):
        super().__init__(message)
        self.config_key = config_key
        self.config_value = config_value
