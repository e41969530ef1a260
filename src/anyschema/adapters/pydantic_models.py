"""Adapter for pydantic models and fields."""

import logging
from typing import Annotated, Any

from pydantic import BaseModel, RootModel, TypeAdapter, ValidationError
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined

from anyschema.adapters.typing_hints import (
    class_description,
    constraints_from_metadata,
    jsonable,
)
from anyschema.schema.capabilities import UNSET, BaseSchemaAdapter, SchemaConstraints

logger = logging.getLogger(__name__)


def _is_model(value: Any) -> bool:
    return (
        isinstance(value, type)
        and issubclass(value, BaseModel)
        and value not in (BaseModel, RootModel)
    )


def _is_root_model(value: Any) -> bool:
    return _is_model(value) and issubclass(value, RootModel)


class PydanticAdapter(BaseSchemaAdapter):
    """Schema adapter for pydantic ``BaseModel`` classes and ``FieldInfo``.

    Models compile to objects keyed by field alias. ``RootModel`` classes and
    fields are modifiers over their annotation, which is usually handled by
    the typing adapter.
    """

    vendor = "pydantic"

    def match(self, value: Any) -> bool:
        return isinstance(value, FieldInfo) or _is_model(value)

    def is_object(self, node: Any) -> bool:
        return _is_model(node) and not _is_root_model(node)

    def is_refine(self, node: Any) -> bool:
        return isinstance(node, FieldInfo) or _is_root_model(node)

    def is_optional(self, node: Any) -> bool:
        return isinstance(node, FieldInfo) and not node.is_required()

    def is_default(self, node: Any) -> bool:
        return isinstance(node, FieldInfo) and node.default is not PydanticUndefined

    def unwrap(self, node: Any) -> Any:
        if _is_root_model(node):
            return node.model_fields["root"]
        if isinstance(node, FieldInfo):
            return node.annotation
        return None

    def get_object_entries(self, node: Any) -> list[tuple[str, Any]]:
        if not _is_model(node):
            return []
        return [
            (info.alias or name, info) for name, info in node.model_fields.items()
        ]

    def get_constraints(self, node: Any) -> SchemaConstraints | None:
        if isinstance(node, FieldInfo):
            return constraints_from_metadata(node.metadata)
        return None

    def get_title(self, node: Any) -> str | None:
        if isinstance(node, FieldInfo):
            return node.title
        if _is_model(node):
            return node.model_config.get("title") or node.__name__
        return None

    def get_description(self, node: Any) -> str | None:
        if isinstance(node, FieldInfo):
            return node.description
        if _is_model(node):
            return class_description(node)
        return None

    def get_default(self, node: Any) -> Any:
        if isinstance(node, FieldInfo) and node.default is not PydanticUndefined:
            return jsonable(node.default)
        return UNSET

    def get_examples(self, node: Any) -> list[Any] | None:
        if isinstance(node, FieldInfo) and node.examples:
            return list(node.examples)
        return None

    def is_deprecated(self, node: Any) -> bool:
        return isinstance(node, FieldInfo) and bool(node.deprecated)

    def get_name(self, node: Any) -> str | None:
        return node.__name__ if _is_model(node) else None

    def supports_validation(self) -> bool:
        return True

    def validate(self, schema: Any, data: Any) -> Any:
        try:
            if isinstance(schema, FieldInfo):
                value = TypeAdapter(Annotated[schema.annotation, schema]).validate_python(
                    data
                )
            else:
                value = schema.model_validate(data)
        except ValidationError as e:
            logger.debug("%s rejected data with %d errors", schema, e.error_count())
            return {"success": False, "error": e}
        return {"success": True, "data": value}
