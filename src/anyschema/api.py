"""Module-level entry points backed by a process-wide default registry."""

import logging
import threading
from typing import Any

from pydantic import BaseModel, Field

from anyschema.adapters import register_builtin_adapters
from anyschema.schema.capabilities import BaseSchemaAdapter
from anyschema.schema.compiler import JSONSchema, SchemaCompiler
from anyschema.schema.registry import AdapterRegistry
from anyschema.schema.validators import SchemaValidator, ValidationResult
from anyschema.utils.config import AnySchemaSettings, get_settings

logger = logging.getLogger(__name__)

_default_registry: AdapterRegistry | None = None
_default_settings: AnySchemaSettings | None = None
_default_lock = threading.Lock()


class SchemaMetadata(BaseModel):
    """Documentation attached to the root of a schema."""

    title: str | None = None
    description: str | None = None
    examples: list[Any] | None = None
    deprecated: bool = False
    default: Any = Field(default=None, description="Root default, if any")
    has_default: bool = False


def get_default_settings() -> AnySchemaSettings:
    """Return settings read from the environment, loading them on first use.

    Settings are cached until ``reset_default_registry`` is called, so the
    ``.env`` file is read once rather than on every compile.
    """
    global _default_settings
    if _default_settings is None:
        with _default_lock:
            if _default_settings is None:
                _default_settings = get_settings()
    return _default_settings


def get_default_registry() -> AdapterRegistry:
    """Return the process-wide registry, creating it on first use.

    The registry starts with the built-in pydantic and typing adapters and
    uses the ambiguity policy from ``ANYSCHEMA_AMBIGUITY``.
    """
    global _default_registry
    if _default_registry is None:
        settings = get_default_settings()
        with _default_lock:
            if _default_registry is None:
                registry = AdapterRegistry(ambiguity=settings.ambiguity)
                _default_registry = register_builtin_adapters(registry)
                logger.debug(
                    "Created default registry with vendors %s", registry.vendors()
                )
    return _default_registry


def reset_default_registry() -> None:
    """Drop the default registry and settings so both are rebuilt on next use."""
    global _default_registry, _default_settings
    with _default_lock:
        _default_registry = None
        _default_settings = None


def register_adapter(adapter: BaseSchemaAdapter) -> None:
    """Append an adapter to the default registry.

    Registered adapters are tried after the ones already present.
    """
    get_default_registry().register(adapter)


def find_adapter(schema: Any) -> BaseSchemaAdapter | None:
    """Return the adapter of the default registry that claims ``schema``."""
    return get_default_registry().resolve(schema)


def get_adapters() -> list[BaseSchemaAdapter]:
    """Return the adapters of the default registry in resolution order."""
    return list(get_default_registry().adapters)


def to_json_schema(schema: Any, registry: AdapterRegistry | None = None) -> JSONSchema:
    """Compile a schema of any registered vendor into JSON Schema.

    Args:
        schema: Schema object
        registry: Registry to use instead of the default one

    Returns:
        JSON Schema document

    Raises:
        SchemaCompileException: If ``schema`` is a bare scalar no adapter claims
    """
    if registry is None:
        registry = get_default_registry()
    compiler = SchemaCompiler(registry, settings=get_default_settings())
    return compiler.compile(schema)


def get_metadata(schema: Any, registry: AdapterRegistry | None = None) -> SchemaMetadata:
    """Return the title, description, examples and default of a schema's root."""
    document = to_json_schema(schema, registry)
    return SchemaMetadata(
        title=document.get("title"),
        description=document.get("description"),
        examples=document.get("examples"),
        deprecated=bool(document.get("deprecated", False)),
        default=document.get("default"),
        has_default="default" in document,
    )


def _validator(registry: AdapterRegistry | None) -> SchemaValidator:
    return SchemaValidator(registry if registry is not None else get_default_registry())


def validate(
    schema: Any, data: Any, registry: AdapterRegistry | None = None
) -> ValidationResult:
    """Validate data against a schema of any registered vendor; never raises."""
    return _validator(registry).validate(schema, data)


async def validate_async(
    schema: Any, data: Any, registry: AdapterRegistry | None = None
) -> ValidationResult:
    """Validate data using the vendor's async path when it has one."""
    return await _validator(registry).validate_async(schema, data)


def is_valid(schema: Any, data: Any, registry: AdapterRegistry | None = None) -> bool:
    """Check whether data satisfies a schema."""
    return _validator(registry).is_valid(schema, data)


def assert_valid(
    schema: Any, data: Any, registry: AdapterRegistry | None = None
) -> None:
    """Raise ``SchemaValidationException`` if data does not satisfy a schema."""
    _validator(registry).assert_valid(schema, data)


def parse(schema: Any, data: Any, registry: AdapterRegistry | None = None) -> Any:
    """Validate data and return the vendor's parsed value.

    Raises:
        SchemaValidationException: If the data is invalid
    """
    return _validator(registry).parse(schema, data)


async def parse_async(
    schema: Any, data: Any, registry: AdapterRegistry | None = None
) -> Any:
    """Async version of ``parse``."""
    return await _validator(registry).parse_async(schema, data)
