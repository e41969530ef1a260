"""Capability interface every vendor adapter implements.

The compiler never inspects a vendor's schema objects directly. It only asks
the questions defined here: type predicates, an ``unwrap`` step for modifier
nodes, structural extractors, constraint and metadata getters. Every
capability has a harmless default (``False``, ``None``, ``UNSET`` or an empty
list), so a vendor only overrides what its representation can answer.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from typing import Any


class _Unset:
    """Sentinel for "no value" where ``None`` is a legitimate value."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

_CAMEL_KEYS = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "exclusiveMin": "exclusive_min",
    "exclusiveMax": "exclusive_max",
    "exclusiveMinimum": "exclusive_min",
    "exclusiveMaximum": "exclusive_max",
    "multipleOf": "multiple_of",
    "minimum": "min",
    "maximum": "max",
}


@dataclass(frozen=True)
class SchemaConstraints:
    """Flat constraint record attached to a single schema node.

    Which JSON Schema keywords a constraint becomes depends on the base type
    of the compiled fragment, see ``to_json_schema``.
    """

    min: float | None = None
    max: float | None = None
    exclusive_min: float | None = None
    exclusive_max: float | None = None
    multiple_of: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    format: str | None = None

    @classmethod
    def coerce(cls, value: Any) -> "SchemaConstraints | None":
        """Accept constraints as an instance or a mapping of snake/camel keys."""
        if value is None or isinstance(value, SchemaConstraints):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(
                f"Constraints must be SchemaConstraints or a mapping, "
                f"got {type(value).__name__}"
            )
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, item in value.items():
            name = _CAMEL_KEYS.get(key, key)
            if name in known and item is not None:
                kwargs[name] = item
        return cls(**kwargs)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_json_schema(self, schema_type: str | None) -> dict[str, Any]:
        """Translate to JSON Schema keywords for a fragment of ``schema_type``.

        Args:
            schema_type: The ``type`` keyword of the compiled fragment, if any

        Returns:
            Keywords to merge onto the fragment
        """
        keywords: dict[str, Any] = {}

        if schema_type == "string":
            _put(keywords, "minLength", _first(self.min_length, self.min))
            _put(keywords, "maxLength", _first(self.max_length, self.max))
            _put(keywords, "pattern", self.pattern)
        elif schema_type in ("number", "integer"):
            _put(keywords, "minimum", self.min)
            _put(keywords, "maximum", self.max)
            _put(keywords, "exclusiveMinimum", self.exclusive_min)
            _put(keywords, "exclusiveMaximum", self.exclusive_max)
            _put(keywords, "multipleOf", self.multiple_of)
        elif schema_type == "array":
            _put(keywords, "minItems", _first(self.min_length, self.min))
            _put(keywords, "maxItems", _first(self.max_length, self.max))
        elif schema_type == "object":
            _put(keywords, "minProperties", _first(self.min_length, self.min))
            _put(keywords, "maxProperties", _first(self.max_length, self.max))

        _put(keywords, "format", self.format)
        return keywords


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _put(target: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        target[key] = value


class BaseSchemaAdapter(ABC):
    """Base class for vendor adapters.

    Subclasses set ``vendor`` and implement ``match``; everything else is
    optional. Unsupported concepts are simply never detected, and unsupported
    shapes compile to the empty schema.
    """

    vendor: str = ""

    @abstractmethod
    def match(self, value: Any) -> bool:
        """Check whether ``value`` belongs to this vendor.

        Must be cheap, side-effect free and must not raise for arbitrary
        input, including ``None``, primitives and functions.
        """
        pass

    # ============ Type detection ============

    def is_string(self, node: Any) -> bool:
        return False

    def is_number(self, node: Any) -> bool:
        return False

    def is_integer(self, node: Any) -> bool:
        return False

    def is_boolean(self, node: Any) -> bool:
        return False

    def is_null(self, node: Any) -> bool:
        return False

    def is_undefined(self, node: Any) -> bool:
        return False

    def is_void(self, node: Any) -> bool:
        return False

    def is_any(self, node: Any) -> bool:
        return False

    def is_unknown(self, node: Any) -> bool:
        return False

    def is_never(self, node: Any) -> bool:
        return False

    def is_object(self, node: Any) -> bool:
        return False

    def is_array(self, node: Any) -> bool:
        return False

    def is_union(self, node: Any) -> bool:
        return False

    def is_literal(self, node: Any) -> bool:
        return False

    def is_enum(self, node: Any) -> bool:
        return False

    def is_optional(self, node: Any) -> bool:
        return False

    def is_nullable(self, node: Any) -> bool:
        return False

    def is_tuple(self, node: Any) -> bool:
        return False

    def is_record(self, node: Any) -> bool:
        return False

    def is_map(self, node: Any) -> bool:
        return False

    def is_set(self, node: Any) -> bool:
        return False

    def is_intersection(self, node: Any) -> bool:
        return False

    def is_lazy(self, node: Any) -> bool:
        return False

    def is_transform(self, node: Any) -> bool:
        return False

    def is_refine(self, node: Any) -> bool:
        return False

    def is_default(self, node: Any) -> bool:
        return False

    def is_catch(self, node: Any) -> bool:
        return False

    def is_branded(self, node: Any) -> bool:
        return False

    def is_date(self, node: Any) -> bool:
        return False

    def is_big_int(self, node: Any) -> bool:
        return False

    def is_symbol(self, node: Any) -> bool:
        return False

    def is_function(self, node: Any) -> bool:
        return False

    def is_promise(self, node: Any) -> bool:
        return False

    def is_instance_of(self, node: Any) -> bool:
        return False

    # ============ Unwrap ============

    def unwrap(self, node: Any) -> Any:
        """Return the single inner node of a modifier, or None at a terminal."""
        return None

    # ============ Extract ============

    def get_object_entries(self, node: Any) -> list[tuple[str, Any]]:
        return []

    def get_array_element(self, node: Any) -> Any:
        return None

    def get_union_options(self, node: Any) -> list[Any]:
        return []

    def get_literal_value(self, node: Any) -> Any:
        return UNSET

    def get_enum_values(self, node: Any) -> list[Any]:
        return []

    def get_tuple_items(self, node: Any) -> list[Any]:
        return []

    def get_tuple_rest(self, node: Any) -> Any:
        return None

    def get_record_key_type(self, node: Any) -> Any:
        return None

    def get_record_value_type(self, node: Any) -> Any:
        return None

    def get_map_key_type(self, node: Any) -> Any:
        return None

    def get_map_value_type(self, node: Any) -> Any:
        return None

    def get_set_element(self, node: Any) -> Any:
        return None

    def get_intersection_schemas(self, node: Any) -> list[Any]:
        return []

    def get_promise_inner(self, node: Any) -> Any:
        return None

    def get_instance_of_class(self, node: Any) -> Any:
        return None

    # ============ Constraints & metadata ============

    def get_constraints(self, node: Any) -> SchemaConstraints | None:
        return None

    def get_description(self, node: Any) -> str | None:
        return None

    def get_title(self, node: Any) -> str | None:
        return None

    def get_default(self, node: Any) -> Any:
        return UNSET

    def get_examples(self, node: Any) -> list[Any] | None:
        return None

    def is_deprecated(self, node: Any) -> bool:
        return False

    def get_name(self, node: Any) -> str | None:
        """Identifier hint used to name ``$defs`` entries."""
        return None

    # ============ Validation ============

    def supports_validation(self) -> bool:
        """Check if this adapter can validate data natively."""
        return False

    def supports_async_validation(self) -> bool:
        """Check if this adapter has a native asynchronous validation path."""
        return False

    def validate(self, schema: Any, data: Any) -> Any:
        """Validate ``data`` with the vendor's own validator.

        Returns:
            A ``ValidationResult`` or any native result shape understood by
            ``normalize_result``
        """
        raise NotImplementedError(f"{self.vendor or type(self).__name__} cannot validate")

    async def validate_async(self, schema: Any, data: Any) -> Any:
        """Asynchronous counterpart of ``validate``."""
        return self.validate(schema, data)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} vendor={self.vendor!r}>"


CAPABILITIES: frozenset[str] = frozenset(
    name
    for name, member in vars(BaseSchemaAdapter).items()
    if callable(member)
    and not name.startswith("_")
    and name not in ("match", "supports_validation", "supports_async_validation")
)


class _DefinedAdapter(BaseSchemaAdapter):
    """Adapter assembled from a partial table of capability functions."""

    def __init__(
        self,
        vendor: str,
        match: Callable[[Any], bool],
        capabilities: dict[str, Callable[..., Any]],
    ) -> None:
        self.vendor = vendor
        self._match = match
        self._capabilities = capabilities
        for name, func in capabilities.items():
            setattr(self, name, func)

    def match(self, value: Any) -> bool:
        return bool(self._match(value))

    def supports_validation(self) -> bool:
        return "validate" in self._capabilities

    def supports_async_validation(self) -> bool:
        return "validate_async" in self._capabilities


def define_adapter(
    vendor: str,
    match: Callable[[Any], bool],
    **capabilities: Callable[..., Any],
) -> BaseSchemaAdapter:
    """Create an adapter from a partial set of capability functions.

    Omitted capabilities keep the defaults of ``BaseSchemaAdapter``. The
    functions take the same arguments as the methods they replace, without
    ``self``.

    Args:
        vendor: Vendor identifier
        match: Predicate claiming values for this vendor
        **capabilities: Capability functions keyed by method name

    Returns:
        Adapter instance

    Raises:
        ValueError: If a keyword is not a known capability
    """
    unknown = sorted(set(capabilities) - CAPABILITIES)
    if unknown:
        raise ValueError(f"Unknown adapter capabilities: {', '.join(unknown)}")
    return _DefinedAdapter(vendor, match, dict(capabilities))
