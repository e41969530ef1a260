"""Shared pytest configuration and fixtures for the test suite."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

import pytest

from anyschema.api import reset_default_registry
from anyschema.schema.capabilities import UNSET, BaseSchemaAdapter, define_adapter
from anyschema.schema.compiler import SchemaCompiler
from anyschema.schema.registry import AdapterRegistry
from anyschema.schema.validators import SchemaValidator
from anyschema.utils.config import ENV_AMBIGUITY, ENV_SCHEMA_URI, ENV_STRICT_COMPILE

MODIFIER_KINDS = {
    "optional",
    "nullable",
    "default",
    "catch",
    "refine",
    "branded",
    "transform",
    "lazy",
}


@dataclass(eq=False)
class ToyNode:
    """Schema node of the in-memory toy vendor used throughout the tests."""

    kind: str
    inner: Any = None
    entries: list[tuple[str, Any]] = field(default_factory=list)
    items: list[Any] = field(default_factory=list)
    value: Any = UNSET
    key: Any = None
    rest: Any = None
    getter: Callable[[], Any] | None = None
    constraints: dict[str, Any] | None = None
    title: str | None = None
    description: str | None = None
    examples: list[Any] | None = None
    deprecated: bool = False
    name: str | None = None


class Toy:
    """Builders for toy schema nodes, in the style of a fluent schema library."""

    @staticmethod
    def node(kind: str, **kwargs: Any) -> ToyNode:
        return ToyNode(kind, **kwargs)

    @staticmethod
    def string(**kwargs: Any) -> ToyNode:
        return ToyNode("string", **kwargs)

    @staticmethod
    def number(**kwargs: Any) -> ToyNode:
        return ToyNode("number", **kwargs)

    @staticmethod
    def integer(**kwargs: Any) -> ToyNode:
        return ToyNode("integer", **kwargs)

    @staticmethod
    def boolean(**kwargs: Any) -> ToyNode:
        return ToyNode("boolean", **kwargs)

    @staticmethod
    def literal(value: Any, **kwargs: Any) -> ToyNode:
        return ToyNode("literal", value=value, **kwargs)

    @staticmethod
    def enum(*values: Any, **kwargs: Any) -> ToyNode:
        return ToyNode("enum", value=list(values), **kwargs)

    @staticmethod
    def object(**entries: Any) -> ToyNode:
        return ToyNode("object", entries=list(entries.items()))

    @staticmethod
    def array(element: Any, **kwargs: Any) -> ToyNode:
        return ToyNode("array", inner=element, **kwargs)

    @staticmethod
    def tuple(*items: Any, rest: Any = None) -> ToyNode:
        return ToyNode("tuple", items=list(items), rest=rest)

    @staticmethod
    def union(*options: Any) -> ToyNode:
        return ToyNode("union", items=list(options))

    @staticmethod
    def intersection(*schemas: Any) -> ToyNode:
        return ToyNode("intersection", items=list(schemas))

    @staticmethod
    def record(key: Any, value: Any) -> ToyNode:
        return ToyNode("record", key=key, inner=value)

    @staticmethod
    def map(key: Any, value: Any) -> ToyNode:
        return ToyNode("map", key=key, inner=value)

    @staticmethod
    def set(element: Any) -> ToyNode:
        return ToyNode("set", inner=element)

    @staticmethod
    def promise(inner: Any) -> ToyNode:
        return ToyNode("promise", inner=inner)

    @staticmethod
    def optional(inner: Any, **kwargs: Any) -> ToyNode:
        return ToyNode("optional", inner=inner, **kwargs)

    @staticmethod
    def nullable(inner: Any, **kwargs: Any) -> ToyNode:
        return ToyNode("nullable", inner=inner, **kwargs)

    @staticmethod
    def default(inner: Any, value: Any, **kwargs: Any) -> ToyNode:
        return ToyNode("default", inner=inner, value=value, **kwargs)

    @staticmethod
    def refine(inner: Any, **kwargs: Any) -> ToyNode:
        return ToyNode("refine", inner=inner, **kwargs)

    @staticmethod
    def brand(inner: Any, **kwargs: Any) -> ToyNode:
        return ToyNode("branded", inner=inner, **kwargs)

    @staticmethod
    def transform(source: Any, **kwargs: Any) -> ToyNode:
        return ToyNode("transform", inner=source, **kwargs)

    @staticmethod
    def catch(inner: Any, **kwargs: Any) -> ToyNode:
        return ToyNode("catch", inner=inner, **kwargs)

    @staticmethod
    def lazy(getter: Callable[[], Any], **kwargs: Any) -> ToyNode:
        return ToyNode("lazy", getter=getter, **kwargs)


def _is(kind: str) -> Callable[[Any], bool]:
    return lambda node: node.kind == kind


def _unwrap(node: ToyNode) -> Any:
    if node.kind == "lazy":
        return node.getter() if node.getter is not None else None
    if node.kind in MODIFIER_KINDS:
        return node.inner
    return None


def _check(node: Any, data: Any, path: list[Any]) -> list[dict[str, Any]]:
    """Tiny native validator of the toy vendor."""
    where = ".".join(str(p) for p in path)
    kind = node.kind

    if kind == "explode":
        raise RuntimeError("toy validator exploded")
    if kind in ("optional", "nullable") and data is None:
        return []
    if kind in MODIFIER_KINDS:
        errors = _check(_unwrap(node), data, path)
        min_length = (node.constraints or {}).get("min_length")
        if not errors and min_length is not None and len(data) < min_length:
            errors.append({"message": f"Too short, min {min_length}", "path": where})
        return errors
    if kind == "string" and not isinstance(data, str):
        return [{"message": "Expected string", "path": where}]
    if kind in ("number", "integer") and (
        isinstance(data, bool) or not isinstance(data, (int, float))
    ):
        return [{"message": f"Expected {kind}", "path": where}]
    if kind == "object":
        if not isinstance(data, dict):
            return [{"message": "Expected object", "path": where}]
        errors: list[dict[str, Any]] = []
        for key, child in node.entries:
            if key not in data:
                if child.kind != "optional":
                    errors.append({"message": "Required", "path": f"{where}.{key}".strip(".")})
                continue
            errors.extend(_check(child, data[key], [*path, key]))
        return errors
    if kind == "array":
        if not isinstance(data, list):
            return [{"message": "Expected array", "path": where}]
        errors = []
        for index, item in enumerate(data):
            errors.extend(_check(node.inner, item, [*path, index]))
        return errors
    return []


def _toy_validate(schema: ToyNode, data: Any) -> dict[str, Any]:
    errors = _check(schema, data, [])
    if errors:
        return {"_tag": "Left", "left": errors}
    return {"_tag": "Right", "right": data}


async def _toy_validate_async(schema: ToyNode, data: Any) -> list[dict[str, Any]]:
    return _check(schema, data, [])


def build_toy_adapter() -> BaseSchemaAdapter:
    """Build the toy vendor adapter from a partial capability table."""
    predicates = {
        f"is_{kind}": _is(kind)
        for kind in (
            "string",
            "number",
            "integer",
            "boolean",
            "null",
            "undefined",
            "void",
            "any",
            "unknown",
            "never",
            "object",
            "array",
            "union",
            "literal",
            "enum",
            "optional",
            "nullable",
            "tuple",
            "record",
            "map",
            "set",
            "intersection",
            "lazy",
            "transform",
            "refine",
            "default",
            "catch",
            "branded",
            "date",
            "symbol",
            "function",
            "promise",
        )
    }
    return define_adapter(
        "toy",
        lambda value: isinstance(value, ToyNode),
        **predicates,
        is_big_int=_is("bigint"),
        is_instance_of=_is("instance"),
        unwrap=_unwrap,
        get_object_entries=lambda node: list(node.entries),
        get_array_element=lambda node: node.inner,
        get_union_options=lambda node: list(node.items),
        get_literal_value=lambda node: node.value,
        get_enum_values=lambda node: list(node.value),
        get_tuple_items=lambda node: list(node.items),
        get_tuple_rest=lambda node: node.rest,
        get_record_key_type=lambda node: node.key,
        get_record_value_type=lambda node: node.inner,
        get_map_key_type=lambda node: node.key,
        get_map_value_type=lambda node: node.inner,
        get_set_element=lambda node: node.inner,
        get_intersection_schemas=lambda node: list(node.items),
        get_promise_inner=lambda node: node.inner,
        get_constraints=lambda node: node.constraints,
        get_title=lambda node: node.title,
        get_description=lambda node: node.description,
        get_default=lambda node: node.value if node.kind == "default" else UNSET,
        get_examples=lambda node: node.examples,
        is_deprecated=lambda node: node.deprecated,
        get_name=lambda node: node.name,
        validate=_toy_validate,
        validate_async=_toy_validate_async,
    )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from ANYSCHEMA_* variables and the default registry."""
    for key in (ENV_AMBIGUITY, ENV_SCHEMA_URI, ENV_STRICT_COMPILE):
        monkeypatch.delenv(key, raising=False)
    reset_default_registry()
    yield
    reset_default_registry()


@pytest.fixture
def toy() -> type[Toy]:
    """Builders for toy schema nodes."""
    return Toy


@pytest.fixture
def toy_adapter() -> BaseSchemaAdapter:
    """Adapter of the toy vendor."""
    return build_toy_adapter()


@pytest.fixture
def toy_registry(toy_adapter: BaseSchemaAdapter) -> AdapterRegistry:
    """Registry holding only the toy vendor."""
    return AdapterRegistry([toy_adapter])


@pytest.fixture
def compiler(toy_registry: AdapterRegistry) -> SchemaCompiler:
    """Compiler over the toy registry."""
    return SchemaCompiler(toy_registry)


@pytest.fixture
def validator(toy_registry: AdapterRegistry) -> SchemaValidator:
    """Validator over the toy registry."""
    return SchemaValidator(toy_registry)
