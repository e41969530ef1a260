"""Vendor-neutral schema machinery.

This module provides:
- The capability interface every vendor adapter implements
- An ordered registry that resolves schema values to their adapter
- A recursive JSON Schema compiler with cycle handling
- A validator that normalizes each vendor's native result shape
"""

from .capabilities import (
    UNSET,
    BaseSchemaAdapter,
    SchemaConstraints,
    define_adapter,
)
from .compiler import JSONSchema, SchemaCompiler
from .registry import AdapterRegistry
from .validators import (
    SchemaValidator,
    ValidationIssue,
    ValidationResult,
    normalize_path,
    normalize_result,
)

__all__ = [
    # Capabilities
    "UNSET",
    "BaseSchemaAdapter",
    "SchemaConstraints",
    "define_adapter",
    # Registry
    "AdapterRegistry",
    # Compiler
    "JSONSchema",
    "SchemaCompiler",
    # Validators
    "SchemaValidator",
    "ValidationIssue",
    "ValidationResult",
    "normalize_path",
    "normalize_result",
]
