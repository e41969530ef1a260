"""Generic JSON Schema compiler driven by the adapter capability interface.

Each node is compiled in three steps:

1. Modifier chain: while the node's adapter reports a modifier (optional,
   nullable, default, catch, refine, branded, transform, lazy) the node is
   recorded as a layer and replaced by ``adapter.unwrap(node)``.
2. Structural dispatch on the terminal node, in a fixed priority order.
3. Fold: layers are applied innermost first, so constraints and metadata of
   outer layers override those of inner ones.

Every node on the active path is tracked by identity. Re-entering an active
node emits ``{"$ref": "#/$defs/<name>"}`` and the node's fragment is stored
once under that name when its own compilation finishes.
"""

import copy
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from anyschema.exceptions import AmbiguousAdapterException, SchemaCompileException
from anyschema.schema.capabilities import UNSET, BaseSchemaAdapter, SchemaConstraints
from anyschema.schema.registry import AdapterRegistry
from anyschema.utils.config import AnySchemaSettings

logger = logging.getLogger(__name__)

JSONSchema = dict[str, Any]

DEFS_POINTER = "#/$defs/"

_MODIFIERS = (
    ("is_optional", "optional"),
    ("is_nullable", "nullable"),
    ("is_default", "default"),
    ("is_catch", "catch"),
    ("is_refine", "refine"),
    ("is_branded", "branded"),
    ("is_transform", "transform"),
    ("is_lazy", "lazy"),
)

# Structural predicates in priority order. Values are either a constant
# fragment or the name of a compiler method.
_DISPATCH: tuple[tuple[str, Any], ...] = (
    ("is_never", {"not": {}}),
    ("is_literal", "_compile_literal"),
    ("is_enum", "_compile_enum"),
    ("is_date", {"type": "string", "format": "date-time"}),
    ("is_big_int", {"type": "integer"}),
    ("is_promise", "_compile_promise"),
    ("is_function", {"not": {}}),
    ("is_symbol", {"not": {}}),
    ("is_instance_of", {}),
    ("is_string", {"type": "string"}),
    ("is_integer", {"type": "integer"}),
    ("is_number", {"type": "number"}),
    ("is_boolean", {"type": "boolean"}),
    ("is_null", {"type": "null"}),
    ("is_undefined", {"not": {}}),
    ("is_void", {"not": {}}),
    ("is_any", {}),
    ("is_unknown", {}),
    ("is_object", "_compile_object"),
    ("is_array", "_compile_array"),
    ("is_tuple", "_compile_tuple"),
    ("is_union", "_compile_union"),
    ("is_intersection", "_compile_intersection"),
    ("is_record", "_compile_record"),
    ("is_map", "_compile_map"),
    ("is_set", "_compile_set"),
)

_SCALAR_INPUTS = (str, bytes, int, float, bool, type(None))
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass
class _Context:
    """State of a single top-level compile call."""

    active: dict[int, Any] = field(default_factory=dict)
    names: dict[int, tuple[Any, str]] = field(default_factory=dict)
    defs: dict[str, JSONSchema] = field(default_factory=dict)
    depth: int = 0

    def enter(self, node: Any) -> None:
        self.active[id(node)] = node

    def leave(self, node: Any) -> None:
        self.active.pop(id(node), None)

    def is_active(self, node: Any) -> bool:
        return id(node) in self.active

    def name_of(self, node: Any) -> str | None:
        entry = self.names.get(id(node))
        return entry[1] if entry is not None else None


@dataclass(frozen=True)
class _Layer:
    node: Any
    adapter: BaseSchemaAdapter
    modifiers: frozenset[str]


@dataclass
class _Fragment:
    """A compiled fragment before nullability and metadata are attached."""

    core: JSONSchema
    nullable: bool = False
    meta: JSONSchema = field(default_factory=dict)

    def render(self) -> JSONSchema:
        core = self.core
        if "$ref" in core and len(core) > 1:
            siblings = {key: value for key, value in core.items() if key != "$ref"}
            core = {"allOf": [{"$ref": core["$ref"]}], **siblings}

        if self.nullable and core and core != {"type": "null"}:
            schema: JSONSchema = {"anyOf": [core, {"type": "null"}]}
        elif "$ref" in core and self.meta:
            schema = {"allOf": [core]}
        else:
            schema = dict(core)

        schema.update(self.meta)
        return schema


class SchemaCompiler:
    """Compiles schemas of any registered vendor into JSON Schema.

    The compiler holds no per-call state, so one instance can serve
    concurrent compilations as long as the registry is no longer mutated.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        settings: AnySchemaSettings | None = None,
    ) -> None:
        """Initialize SchemaCompiler.

        Args:
            registry: Registry used to resolve every node, children included
            settings: Compilation settings; defaults apply when None
        """
        self.registry = registry
        self.settings = settings or AnySchemaSettings()

    def compile(self, schema: Any) -> JSONSchema:
        """Compile a schema into a JSON Schema document.

        Args:
            schema: A schema object of any registered vendor

        Returns:
            JSON Schema document; ``$defs`` holds fragments of cyclic nodes.
            Values no adapter claims compile to ``{}``.

        Raises:
            SchemaCompileException: If ``schema`` is a bare scalar that no
                adapter claims
        """
        if isinstance(schema, _SCALAR_INPUTS) and self.registry.resolve(schema) is None:
            raise SchemaCompileException(
                f"Cannot compile {type(schema).__name__} value {schema!r}: "
                "expected a schema object",
                schema=schema,
            )

        context = _Context()
        result, _ = self._compile(schema, context)

        if context.defs:
            result = {**result, "$defs": dict(context.defs)}
        if self.settings.schema_uri:
            result = {"$schema": self.settings.schema_uri, **result}
        return result

    def _compile(self, node: Any, context: _Context) -> tuple[JSONSchema, bool]:
        """Compile one node.

        Returns:
            The fragment and whether the node was marked optional
        """
        if context.is_active(node):
            return self._reference(node, context), False

        adapter = self.registry.resolve(node)
        if adapter is None:
            logger.debug(
                "No adapter for %s value; emitting empty schema", type(node).__name__
            )
            return {}, False

        chain: list[_Layer] = []
        context.depth += 1
        try:
            return self._compile_chain(node, adapter, chain, context)
        except AmbiguousAdapterException:
            raise
        except Exception as e:
            if self.settings.strict_compile:
                raise
            logger.warning(
                "Adapter %r failed on %s: %s; emitting empty schema",
                adapter.vendor,
                type(node).__name__,
                e,
            )
            for layer in chain:
                name = context.name_of(layer.node)
                if name is not None:
                    context.defs.setdefault(name, {})
            return {}, False
        finally:
            for layer in chain:
                context.leave(layer.node)
            context.depth -= 1

    def _compile_chain(
        self,
        node: Any,
        adapter: BaseSchemaAdapter,
        chain: list[_Layer],
        context: _Context,
    ) -> tuple[JSONSchema, bool]:
        core: JSONSchema | None = None

        while True:
            modifiers = self._modifiers(adapter, node)
            context.enter(node)
            chain.append(_Layer(node, adapter, modifiers))
            if not modifiers:
                break

            inner = adapter.unwrap(node)
            if inner is None or inner is UNSET:
                break
            if context.is_active(inner):
                core = self._reference(inner, context)
                break

            inner_adapter = self.registry.resolve(inner)
            if inner_adapter is None:
                core = {}
                break
            node, adapter = inner, inner_adapter

        if core is None:
            core = self._structural(node, adapter, context)

        fragment = _Fragment(core)
        optional = False
        for layer in reversed(chain):
            fragment = self._apply_layer(fragment, layer)
            optional = optional or "optional" in layer.modifiers

            name = context.name_of(layer.node)
            if name is not None:
                context.defs[name] = fragment.render()
                # The root stays inline so the document never starts with a $ref.
                if context.depth > 1:
                    fragment = _Fragment({"$ref": DEFS_POINTER + name})

        return fragment.render(), optional

    @staticmethod
    def _modifiers(adapter: BaseSchemaAdapter, node: Any) -> frozenset[str]:
        return frozenset(
            kind for predicate, kind in _MODIFIERS if getattr(adapter, predicate)(node)
        )

    def _apply_layer(self, fragment: _Fragment, layer: _Layer) -> _Fragment:
        adapter, node = layer.adapter, layer.node

        core = fragment.core
        constraints = SchemaConstraints.coerce(adapter.get_constraints(node))
        if constraints is not None and not constraints.is_empty():
            core = {**core, **constraints.to_json_schema(core.get("type"))}

        meta = {**fragment.meta, **self._metadata(adapter, node)}
        if "default" in layer.modifiers:
            default = adapter.get_default(node)
            if default is not UNSET:
                meta["default"] = default

        return _Fragment(core, fragment.nullable or "nullable" in layer.modifiers, meta)

    @staticmethod
    def _metadata(adapter: BaseSchemaAdapter, node: Any) -> JSONSchema:
        meta: JSONSchema = {}
        title = adapter.get_title(node)
        if title:
            meta["title"] = title
        description = adapter.get_description(node)
        if description:
            meta["description"] = description
        examples = adapter.get_examples(node)
        if examples:
            meta["examples"] = list(examples)
        if adapter.is_deprecated(node):
            meta["deprecated"] = True
        return meta

    def _reference(self, node: Any, context: _Context) -> JSONSchema:
        name = context.name_of(node)
        if name is None:
            name = self._allocate_name(node, context)
        return {"$ref": DEFS_POINTER + name}

    def _allocate_name(self, node: Any, context: _Context) -> str:
        adapter = self.registry.resolve(node)
        hint = adapter.get_name(node) if adapter is not None else None
        taken = {name for _, name in context.names.values()}

        if hint:
            base = _UNSAFE_NAME_CHARS.sub("_", str(hint)).strip("_") or "schema"
            name, suffix = base, 2
        else:
            lazy = adapter is not None and adapter.is_lazy(node)
            base = "lazy" if lazy else "schema"
            suffix = len(context.names)
            name = f"{base}_{suffix}"
        while name in taken:
            name = f"{base}_{suffix}"
            suffix += 1

        context.names[id(node)] = (node, name)
        logger.debug("Cycle through %s; referencing $defs/%s", type(node).__name__, name)
        return name

    # ============ Structural dispatch ============

    def _structural(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        for predicate, handler in _DISPATCH:
            if getattr(adapter, predicate)(node):
                if isinstance(handler, dict):
                    return copy.deepcopy(handler)
                return getattr(self, handler)(node, adapter, context)
        return {}

    def _compile_literal(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        value = adapter.get_literal_value(node)
        return {} if value is UNSET else {"const": value}

    def _compile_enum(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        return {"enum": list(adapter.get_enum_values(node))}

    def _compile_promise(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        inner = adapter.get_promise_inner(node)
        return self._compile_child(inner, context)

    def _compile_object(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        properties: JSONSchema = {}
        required: list[str] = []

        for key, child in adapter.get_object_entries(node):
            schema, optional = self._compile(child, context)
            properties[key] = schema
            if not optional:
                required.append(key)

        result: JSONSchema = {"type": "object", "properties": properties}
        if required:
            result["required"] = required
        return result

    def _compile_array(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        element = adapter.get_array_element(node)
        return {"type": "array", "items": self._compile_child(element, context)}

    def _compile_tuple(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        items = [self._compile(item, context)[0] for item in adapter.get_tuple_items(node)]
        result: JSONSchema = {"type": "array", "items": items, "minItems": len(items)}

        rest = adapter.get_tuple_rest(node)
        if rest is None or rest is UNSET:
            result["maxItems"] = len(items)
        else:
            result["additionalItems"] = self._compile_child(rest, context)
        return result

    def _compile_union(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        options = [self._compile(option, context)[0] for option in adapter.get_union_options(node)]
        if not options:
            return {"not": {}}
        if len(options) == 1:
            return options[0]
        return {"anyOf": options}

    def _compile_intersection(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        schemas = adapter.get_intersection_schemas(node)
        return {"allOf": [self._compile(schema, context)[0] for schema in schemas]}

    def _compile_record(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        return self._keyed_collection(
            adapter.get_record_key_type(node), adapter.get_record_value_type(node), context
        )

    def _compile_map(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        return self._keyed_collection(
            adapter.get_map_key_type(node), adapter.get_map_value_type(node), context
        )

    def _compile_set(
        self, node: Any, adapter: BaseSchemaAdapter, context: _Context
    ) -> JSONSchema:
        element = adapter.get_set_element(node)
        return {
            "type": "array",
            "uniqueItems": True,
            "items": self._compile_child(element, context),
        }

    def _compile_child(self, child: Any, context: _Context) -> JSONSchema:
        if child is None or child is UNSET:
            return {}
        return self._compile(child, context)[0]

    def _keyed_collection(
        self, key: Any, value: Any, context: _Context
    ) -> JSONSchema:
        result: JSONSchema = {
            "type": "object",
            "additionalProperties": self._compile_child(value, context),
        }
        if key is not None and key is not UNSET:
            names = self._property_names(self._compile(key, context)[0])
            if names is not None:
                result["propertyNames"] = names
        return result

    @staticmethod
    def _property_names(schema: JSONSchema) -> JSONSchema | None:
        """Keep a key schema only when JSON Schema can express it."""
        if schema.get("type") == "string" and len(schema) > 1:
            return schema
        if "const" in schema:
            values = [schema["const"]]
        else:
            values = schema.get("enum")
        if values and all(isinstance(value, str) for value in values):
            return schema
        return None
