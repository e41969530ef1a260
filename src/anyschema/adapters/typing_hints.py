"""Adapter for plain Python type hints.

Covers builtins, ``typing`` constructs, ``Annotated`` metadata, enums,
dataclasses, ``TypedDict`` and ``NamedTuple`` classes. Validation goes through
pydantic's ``TypeAdapter``.
"""

import collections.abc
import dataclasses
import inspect
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import Path, PurePath
from types import NoneType, UnionType
from typing import (
    Annotated,
    Any,
    Literal,
    Never,
    NewType,
    NoReturn,
    NotRequired,
    Required,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    is_typeddict,
)
from uuid import UUID

import annotated_types
from pydantic import TypeAdapter, ValidationError
from pydantic.fields import FieldInfo
from pydantic_core import PydanticSerializationError, to_jsonable_python

from anyschema.schema.capabilities import UNSET, BaseSchemaAdapter, SchemaConstraints

logger = logging.getLogger(__name__)

# Node kinds
FIELD = "field"
NULL = "null"
ANY = "any"
NEVER = "never"
REFINE = "refine"
NULLABLE = "nullable"
UNION = "union"
LITERAL = "literal"
ENUM = "enum"
STRING = "string"
INTEGER = "integer"
NUMBER = "number"
BOOLEAN = "boolean"
DATE = "date"
ARRAY = "array"
TUPLE = "tuple"
RECORD = "record"
SET = "set"
OBJECT = "object"
FUNCTION = "function"
PROMISE = "promise"
INSTANCE_OF = "instance_of"

# Exact classes and the kind and string format they compile to.
_CLASSES: dict[type, tuple[str, str | None]] = {
    bool: (BOOLEAN, None),
    str: (STRING, None),
    int: (INTEGER, None),
    float: (NUMBER, None),
    Decimal: (NUMBER, None),
    bytes: (STRING, "binary"),
    UUID: (STRING, "uuid"),
    Path: (STRING, "path"),
    PurePath: (STRING, "path"),
    timedelta: (STRING, "duration"),
    time: (STRING, "time"),
    datetime: (DATE, None),
    date: (DATE, "date"),
    object: (ANY, None),
    list: (ARRAY, None),
    tuple: (ARRAY, None),
    dict: (RECORD, None),
    set: (SET, None),
    frozenset: (SET, None),
}


@dataclass(frozen=True, eq=False)
class FieldNode:
    """A dataclass or ``TypedDict`` field wrapping its annotation.

    Attributes:
        annotation: The field's resolved type hint
        default: Static default value, or ``UNSET``
        optional: Whether the field may be omitted
        description: Description taken from field metadata
    """

    annotation: Any
    default: Any = UNSET
    optional: bool = False
    description: str | None = None


def classify(node: Any) -> str | None:
    """Return the kind of a type hint, or None if it is not a type hint."""
    if isinstance(node, FieldNode):
        return FIELD
    if node is None or node is NoneType:
        return NULL
    if node is Any:
        return ANY
    if node is Never or node is NoReturn:
        return NEVER
    if isinstance(node, NewType):
        return REFINE

    origin = get_origin(node)
    if origin is not None:
        return _classify_generic(node, origin)

    if not isinstance(node, type):
        return None
    if node in _CLASSES:
        return _CLASSES[node][0]
    if issubclass(node, Enum):
        return ENUM
    if dataclasses.is_dataclass(node) or is_typeddict(node):
        return OBJECT
    if issubclass(node, tuple) and hasattr(node, "_fields"):
        return TUPLE
    return None


def _classify_generic(node: Any, origin: Any) -> str | None:
    args = get_args(node)

    if origin is Annotated or origin is Required or origin is NotRequired:
        return REFINE
    if origin is Literal:
        return LITERAL if len(args) == 1 else ENUM
    if origin is Union or origin is UnionType:
        return NULLABLE if NoneType in args else UNION
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return ARRAY
        return TUPLE
    if origin is type:
        return INSTANCE_OF
    if origin is collections.abc.Callable:
        return FUNCTION

    if not isinstance(origin, type):
        return None
    if issubclass(origin, collections.abc.Mapping):
        return RECORD
    if issubclass(origin, collections.abc.Set):
        return SET
    if issubclass(origin, collections.abc.Sequence):
        return ARRAY
    if issubclass(origin, collections.abc.Awaitable):
        return PROMISE
    return None


def constraints_from_metadata(metadata: Any) -> SchemaConstraints | None:
    """Collect constraints from ``Annotated`` or ``FieldInfo`` metadata.

    Understands ``annotated_types`` bounds and lengths (including grouped
    metadata such as ``Interval`` and ``Len``), pydantic ``FieldInfo``
    objects and any item exposing a string ``pattern``. Later items win.

    Args:
        metadata: Iterable of metadata items

    Returns:
        Constraints, or None when no item carries one
    """
    found: dict[str, Any] = {}
    _collect_constraints(metadata, found)
    return SchemaConstraints(**found) if found else None


def _collect_constraints(metadata: Any, found: dict[str, Any]) -> None:
    for item in metadata:
        if isinstance(item, FieldInfo):
            _collect_constraints(item.metadata, found)
        elif isinstance(item, annotated_types.GroupedMetadata):
            _collect_constraints(list(item), found)
        elif isinstance(item, annotated_types.Gt):
            found["exclusive_min"] = item.gt
        elif isinstance(item, annotated_types.Ge):
            found["min"] = item.ge
        elif isinstance(item, annotated_types.Lt):
            found["exclusive_max"] = item.lt
        elif isinstance(item, annotated_types.Le):
            found["max"] = item.le
        elif isinstance(item, annotated_types.MultipleOf):
            found["multiple_of"] = item.multiple_of
        elif isinstance(item, annotated_types.MinLen):
            found["min_length"] = item.min_length
        elif isinstance(item, annotated_types.MaxLen):
            found["max_length"] = item.max_length
        elif isinstance(getattr(item, "pattern", None), str):
            found["pattern"] = item.pattern


def jsonable(value: Any) -> Any:
    """Convert a default value to its JSON form where pydantic knows how."""
    try:
        return to_jsonable_python(value)
    except PydanticSerializationError:
        return value


def class_description(cls: type) -> str | None:
    """Return a class's own docstring, ignoring generated and inherited ones."""
    doc = cls.__dict__.get("__doc__")
    if not doc:
        return None
    # dataclasses and named tuples generate "Name(field, ...)" docstrings
    if doc.startswith(f"{cls.__name__}("):
        return None
    return inspect.cleandoc(doc)


def _field_infos(metadata: Any) -> list[FieldInfo]:
    return [item for item in metadata if isinstance(item, FieldInfo)]


def _is_class(node: Any) -> bool:
    return isinstance(node, type) and get_origin(node) is None


class TypingAdapter(BaseSchemaAdapter):
    """Schema adapter for plain Python type hints."""

    vendor = "typing"

    def match(self, value: Any) -> bool:
        try:
            return classify(value) is not None
        except TypeError:
            return False

    # ============ Type detection ============

    def is_string(self, node: Any) -> bool:
        return classify(node) == STRING

    def is_integer(self, node: Any) -> bool:
        return classify(node) == INTEGER

    def is_number(self, node: Any) -> bool:
        return classify(node) == NUMBER

    def is_boolean(self, node: Any) -> bool:
        return classify(node) == BOOLEAN

    def is_null(self, node: Any) -> bool:
        return classify(node) == NULL

    def is_any(self, node: Any) -> bool:
        return classify(node) == ANY

    def is_never(self, node: Any) -> bool:
        return classify(node) == NEVER

    def is_date(self, node: Any) -> bool:
        return classify(node) == DATE

    def is_object(self, node: Any) -> bool:
        return classify(node) == OBJECT

    def is_array(self, node: Any) -> bool:
        return classify(node) == ARRAY

    def is_tuple(self, node: Any) -> bool:
        return classify(node) == TUPLE

    def is_union(self, node: Any) -> bool:
        return classify(node) == UNION

    def is_literal(self, node: Any) -> bool:
        return classify(node) == LITERAL

    def is_enum(self, node: Any) -> bool:
        return classify(node) == ENUM

    def is_record(self, node: Any) -> bool:
        return classify(node) == RECORD

    def is_set(self, node: Any) -> bool:
        return classify(node) == SET

    def is_function(self, node: Any) -> bool:
        return classify(node) == FUNCTION

    def is_promise(self, node: Any) -> bool:
        return classify(node) == PROMISE

    def is_instance_of(self, node: Any) -> bool:
        return classify(node) == INSTANCE_OF

    def is_optional(self, node: Any) -> bool:
        return isinstance(node, FieldNode) and node.optional

    def is_nullable(self, node: Any) -> bool:
        return classify(node) == NULLABLE

    def is_default(self, node: Any) -> bool:
        return isinstance(node, FieldNode) and node.default is not UNSET

    def is_refine(self, node: Any) -> bool:
        return classify(node) in (REFINE, FIELD)

    # ============ Unwrap ============

    def unwrap(self, node: Any) -> Any:
        kind = classify(node)
        if kind == FIELD:
            return node.annotation
        if kind == REFINE:
            if isinstance(node, NewType):
                return node.__supertype__
            return get_args(node)[0]
        if kind == NULLABLE:
            rest = tuple(arg for arg in get_args(node) if arg is not NoneType)
            return rest[0] if len(rest) == 1 else Union[rest]
        return None

    # ============ Extract ============

    def get_object_entries(self, node: Any) -> list[tuple[str, Any]]:
        if not isinstance(node, type):
            return []
        hints = self._hints(node)

        if is_typeddict(node):
            optional_keys = getattr(node, "__optional_keys__", frozenset())
            entries = []
            for key, hint in hints.items():
                while get_origin(hint) in (Required, NotRequired):
                    hint = get_args(hint)[0]
                entries.append((key, FieldNode(hint, optional=key in optional_keys)))
            return entries

        if dataclasses.is_dataclass(node):
            entries = []
            for field in dataclasses.fields(node):
                has_factory = field.default_factory is not dataclasses.MISSING
                has_default = field.default is not dataclasses.MISSING
                entries.append(
                    (
                        field.name,
                        FieldNode(
                            hints.get(field.name, field.type),
                            default=field.default if has_default else UNSET,
                            optional=has_default or has_factory,
                            description=field.metadata.get("description"),
                        ),
                    )
                )
            return entries
        return []

    def get_array_element(self, node: Any) -> Any:
        args = get_args(node)
        return args[0] if args else None

    def get_tuple_items(self, node: Any) -> list[Any]:
        if isinstance(node, type) and hasattr(node, "_fields"):
            hints = self._hints(node)
            return [hints.get(name, Any) for name in node._fields]
        return list(get_args(node))

    def get_union_options(self, node: Any) -> list[Any]:
        return list(get_args(node))

    def get_literal_value(self, node: Any) -> Any:
        args = get_args(node)
        return self._plain(args[0]) if args else UNSET

    def get_enum_values(self, node: Any) -> list[Any]:
        if isinstance(node, type) and issubclass(node, Enum):
            return [member.value for member in node]
        return [self._plain(value) for value in get_args(node)]

    def get_record_key_type(self, node: Any) -> Any:
        args = get_args(node)
        return args[0] if len(args) == 2 else None

    def get_record_value_type(self, node: Any) -> Any:
        args = get_args(node)
        return args[1] if len(args) == 2 else None

    def get_set_element(self, node: Any) -> Any:
        args = get_args(node)
        return args[0] if args else None

    def get_promise_inner(self, node: Any) -> Any:
        args = get_args(node)
        return args[-1] if args else None

    def get_instance_of_class(self, node: Any) -> Any:
        args = get_args(node)
        return args[0] if args else None

    # ============ Constraints & metadata ============

    def get_constraints(self, node: Any) -> SchemaConstraints | None:
        if get_origin(node) is Annotated:
            return constraints_from_metadata(node.__metadata__)
        if isinstance(node, type) and node in _CLASSES:
            schema_format = _CLASSES[node][1]
            if schema_format:
                return SchemaConstraints(format=schema_format)
        return None

    def get_description(self, node: Any) -> str | None:
        if isinstance(node, FieldNode):
            return node.description
        if get_origin(node) is Annotated:
            for info in _field_infos(node.__metadata__):
                if info.description:
                    return info.description
            return None
        if _is_class(node) and classify(node) in (OBJECT, TUPLE):
            return class_description(node)
        return None

    def get_title(self, node: Any) -> str | None:
        if get_origin(node) is Annotated:
            for info in _field_infos(node.__metadata__):
                if info.title:
                    return info.title
        return None

    def get_default(self, node: Any) -> Any:
        if isinstance(node, FieldNode) and node.default is not UNSET:
            return jsonable(node.default)
        return UNSET

    def get_examples(self, node: Any) -> list[Any] | None:
        if get_origin(node) is Annotated:
            for info in _field_infos(node.__metadata__):
                if info.examples:
                    return list(info.examples)
        return None

    def is_deprecated(self, node: Any) -> bool:
        if get_origin(node) is Annotated:
            return any(info.deprecated for info in _field_infos(node.__metadata__))
        return False

    def get_name(self, node: Any) -> str | None:
        if isinstance(node, NewType):
            return node.__name__
        if _is_class(node) and classify(node) in (OBJECT, TUPLE, ENUM):
            return node.__name__
        return None

    # ============ Validation ============

    def supports_validation(self) -> bool:
        return True

    def validate(self, schema: Any, data: Any) -> Any:
        hint = schema.annotation if isinstance(schema, FieldNode) else schema
        try:
            value = TypeAdapter(hint).validate_python(data)
        except ValidationError as e:
            return {"success": False, "error": e}
        return {"success": True, "data": value}

    @staticmethod
    def _plain(value: Any) -> Any:
        return value.value if isinstance(value, Enum) else value

    @staticmethod
    def _hints(cls: type) -> dict[str, Any]:
        try:
            return get_type_hints(cls, include_extras=True)
        except (NameError, TypeError) as e:
            logger.debug("Could not resolve type hints of %s: %s", cls.__name__, e)
            return dict(getattr(cls, "__annotations__", {}))
