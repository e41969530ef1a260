"""Built-in adapters for Python-native schema vendors."""

from anyschema.schema.registry import AdapterRegistry

from .pydantic_models import PydanticAdapter
from .typing_hints import FieldNode, TypingAdapter


def register_builtin_adapters(registry: AdapterRegistry) -> AdapterRegistry:
    """Register the pydantic and typing adapters, most specific first.

    Vendors already present in ``registry`` are skipped.

    Args:
        registry: Registry to extend

    Returns:
        The same registry
    """
    present = set(registry.vendors())
    for adapter in (PydanticAdapter(), TypingAdapter()):
        if adapter.vendor not in present:
            registry.register(adapter)
    return registry


__all__ = [
    "FieldNode",
    "PydanticAdapter",
    "TypingAdapter",
    "register_builtin_adapters",
]
