"""anyschema - JSON Schema and validation for any schema library."""

__version__ = "0.1.0"

# Built-in vendor adapters
from .adapters import PydanticAdapter, TypingAdapter, register_builtin_adapters

# Module-level entry points
from .api import (
    SchemaMetadata,
    assert_valid,
    find_adapter,
    get_adapters,
    get_default_registry,
    get_default_settings,
    get_metadata,
    is_valid,
    parse,
    parse_async,
    register_adapter,
    reset_default_registry,
    to_json_schema,
    validate,
    validate_async,
)

# Custom exceptions
from .exceptions import (
    AmbiguousAdapterException,
    AnySchemaException,
    ConfigurationException,
    SchemaCompileException,
    SchemaValidationException,
)

# Core machinery
from .schema import (
    UNSET,
    AdapterRegistry,
    BaseSchemaAdapter,
    SchemaCompiler,
    SchemaConstraints,
    SchemaValidator,
    ValidationIssue,
    ValidationResult,
    define_adapter,
    normalize_path,
    normalize_result,
)

# Configuration utilities
from .utils import AmbiguityPolicy, AnySchemaSettings, get_settings, load_environment

__all__ = [
    "__version__",
    "to_json_schema",
    "validate",
    "validate_async",
    "is_valid",
    "assert_valid",
    "parse",
    "parse_async",
    "get_metadata",
    "SchemaMetadata",
    "register_adapter",
    "find_adapter",
    "get_adapters",
    "get_default_registry",
    "get_default_settings",
    "reset_default_registry",
    "UNSET",
    "AdapterRegistry",
    "BaseSchemaAdapter",
    "SchemaCompiler",
    "SchemaConstraints",
    "SchemaValidator",
    "ValidationIssue",
    "ValidationResult",
    "define_adapter",
    "normalize_path",
    "normalize_result",
    "PydanticAdapter",
    "TypingAdapter",
    "register_builtin_adapters",
    "AmbiguityPolicy",
    "AnySchemaSettings",
    "get_settings",
    "load_environment",
    # Exceptions
    "AnySchemaException",
    "AmbiguousAdapterException",
    "ConfigurationException",
    "SchemaCompileException",
    "SchemaValidationException",
]
