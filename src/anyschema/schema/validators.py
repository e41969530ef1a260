"""Uniform validation on top of each vendor's native validator."""

import inspect
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from anyschema.exceptions import AmbiguousAdapterException, SchemaValidationException
from anyschema.schema.registry import AdapterRegistry

logger = logging.getLogger(__name__)

PathSegment = str | int

_ACCESSOR = re.compile(r"[^.\[\]]+|\[[^\]]*\]")
_QUOTED = re.compile(r"""^(['"])(.*)\1$""")
_LEFT_TAGS = {"Left", "Failure", "Err", "Error"}
_RIGHT_TAGS = {"Right", "Success", "Ok"}


def _segment(raw: Any, parse_digits: bool = False) -> PathSegment:
    if isinstance(raw, Mapping) and "key" in raw:
        raw = raw["key"]
    elif hasattr(raw, "key") and not isinstance(raw, (str, int)):
        raw = raw.key
    if isinstance(raw, bool):
        return str(raw)
    if isinstance(raw, int):
        return raw
    text = str(raw)
    # Only string paths lose the key/index distinction.
    if parse_digits and text.isdigit():
        return int(text)
    return text


def normalize_path(path: Any) -> list[PathSegment] | None:
    """Normalize a vendor error path to a list of keys and indices.

    Accepts sequences of keys (or of ``{"key": ...}`` segments), slash
    delimited strings (``/items/0/name``) and accessor chains
    (``items[0].name``). Digit-only segments of string paths become ints;
    sequence segments keep their own type, so a mapping key ``"42"`` stays
    distinct from list index ``42``.

    Args:
        path: Vendor path representation

    Returns:
        Ordered path segments, or None when the path is empty
    """
    if path is None:
        return None

    if isinstance(path, str):
        parse_digits = True
        if "/" in path:
            parts: list[Any] = [part for part in path.split("/") if part]
        else:
            parts = []
            for token in _ACCESSOR.findall(path):
                if token.startswith("["):
                    token = token[1:-1].strip()
                    quoted = _QUOTED.match(token)
                    if quoted:
                        token = quoted.group(2)
                if token:
                    parts.append(token)
    elif isinstance(path, Sequence):
        parse_digits = False
        parts = list(path)
    else:
        parse_digits = False
        parts = [path]

    segments = [_segment(part, parse_digits) for part in parts]
    return segments or None


class ValidationIssue(BaseModel):
    """A single validation problem reported by a vendor."""

    model_config = ConfigDict(frozen=True)

    message: str = Field(description="Human readable description of the problem")
    path: list[PathSegment] | None = Field(
        default=None, description="Location of the problem inside the data"
    )

    @field_validator("path", mode="before")
    @classmethod
    def _normalize_path(cls, value: Any) -> list[PathSegment] | None:
        return normalize_path(value)

    def to_dict(self) -> dict[str, Any]:
        if self.path is None:
            return {"message": self.message}
        return {"message": self.message, "path": list(self.path)}


class ValidationResult(BaseModel):
    """Result of validating data against any vendor's schema.

    Either ``success`` is True and ``data`` holds the (possibly parsed)
    value, or ``success`` is False and ``issues`` holds at least one issue.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    data: Any = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_issues(self) -> "ValidationResult":
        if not self.success and not self.issues:
            raise ValueError("A failed validation result needs at least one issue")
        if self.success and self.issues:
            raise ValueError("A successful validation result cannot carry issues")
        return self

    @classmethod
    def ok(cls, data: Any) -> "ValidationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, issues: Sequence[Any] | str) -> "ValidationResult":
        """Build a failure from issues, error objects or a single message."""
        if isinstance(issues, str):
            issues = [issues]
        normalized = issues_from_errors(issues) or [
            ValidationIssue(message="Validation failed")
        ]
        return cls(success=False, issues=normalized)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "issues": [issue.to_dict() for issue in self.issues]}


def _field(obj: Any, *names: str) -> Any:
    for name in names:
        if isinstance(obj, Mapping):
            if name in obj:
                return obj[name]
        elif hasattr(obj, name):
            return getattr(obj, name)
    return None


def _issue(error: Any) -> ValidationIssue:
    if isinstance(error, ValidationIssue):
        return error
    if isinstance(error, str):
        return ValidationIssue(message=error)
    if isinstance(error, BaseException):
        return ValidationIssue(message=str(error) or type(error).__name__)

    message = _field(error, "message", "msg", "description")
    path = _field(error, "path", "loc", "instancePath", "key")
    return ValidationIssue(
        message=str(message) if message is not None else str(error),
        path=path,
    )


def issues_from_errors(errors: Any) -> list[ValidationIssue]:
    """Convert vendor error objects into validation issues.

    Args:
        errors: A single error or a sequence of errors. Errors may be
            strings, exceptions, mappings or objects exposing
            ``message``/``msg`` and ``path``/``loc``.

    Returns:
        Normalized issues, in vendor order
    """
    if errors is None:
        return []
    if isinstance(errors, (str, Mapping, BaseException)) or not isinstance(
        errors, Sequence
    ):
        errors = [errors]
    return [_issue(error) for error in errors]


def issues_from_exception(error: BaseException) -> list[ValidationIssue]:
    """Convert a raised vendor exception into issues.

    Exceptions exposing ``errors()`` (pydantic) or an ``errors``/``issues``
    list keep their individual issues; anything else becomes one issue
    carrying the exception message.
    """
    details = getattr(error, "errors", None)
    if callable(details):
        try:
            details = details()
        except TypeError:
            details = None
    if details is None:
        details = getattr(error, "issues", None)
    if isinstance(details, Sequence) and not isinstance(details, str) and details:
        return issues_from_errors(details)
    return [ValidationIssue(message=str(error) or type(error).__name__)]


def normalize_result(raw: Any, data: Any) -> ValidationResult:
    """Map a vendor's native validation outcome to a ``ValidationResult``.

    Understood shapes:

    - ``ValidationResult``: returned unchanged
    - ``bool``: pass or fail ``data`` as is
    - ``success`` flag with ``data``/``value`` and ``error``/``issues``
    - Either-like ``_tag`` of ``Right``/``Left`` with ``right``/``left``
    - ``error``/``value`` pairs (None error means success)
    - sequences of error objects (empty means success)

    Any other value is treated as the parsed data of a successful call.

    Args:
        raw: Whatever the vendor returned
        data: The input data, used when the vendor returns no value

    Returns:
        Normalized validation result
    """
    if isinstance(raw, ValidationResult):
        return raw

    if isinstance(raw, bool):
        return ValidationResult.ok(data) if raw else ValidationResult.fail("Validation failed")

    success = _field(raw, "success")
    if isinstance(success, bool):
        if success:
            value = _field(raw, "data", "value", "output")
            return ValidationResult.ok(data if value is None else value)
        errors = _field(raw, "issues", "errors", "error")
        if isinstance(errors, BaseException):
            return ValidationResult(success=False, issues=issues_from_exception(errors))
        if errors is not None and not isinstance(errors, (str, Sequence)):
            errors = _field(errors, "issues", "errors") or errors
        return ValidationResult.fail(issues_from_errors(errors))

    tag = _field(raw, "_tag", "tag")
    if isinstance(tag, str) and tag in _RIGHT_TAGS:
        return ValidationResult.ok(_field(raw, "right", "value"))
    if isinstance(tag, str) and tag in _LEFT_TAGS:
        return ValidationResult.fail(issues_from_errors(_field(raw, "left", "error")))

    if isinstance(raw, Mapping) and "error" in raw and ("value" in raw or len(raw) == 1):
        error = raw["error"]
        if error is None:
            return ValidationResult.ok(raw.get("value", data))
        if isinstance(error, BaseException):
            return ValidationResult(success=False, issues=issues_from_exception(error))
        return ValidationResult.fail(issues_from_errors(error))

    if isinstance(raw, list):
        if not raw:
            return ValidationResult.ok(data)
        return ValidationResult.fail(issues_from_errors(raw))

    return ValidationResult.ok(data if raw is None else raw)


class SchemaValidator:
    """Validates data against schemas of any registered vendor.

    Every entry point is total: vendor exceptions are converted into failed
    results. Only ``parse``, ``parse_async`` and ``assert_valid`` raise, and
    only to report invalid data.
    """

    def __init__(self, registry: AdapterRegistry) -> None:
        """Initialize SchemaValidator.

        Args:
            registry: Registry used to find the adapter of each schema
        """
        self.registry = registry

    def validate(self, schema: Any, data: Any) -> ValidationResult:
        """Validate data synchronously.

        Args:
            schema: Schema object of any registered vendor
            data: Data to validate

        Returns:
            Normalized validation result; never raises
        """
        adapter, failure = self._adapter_for(schema)
        if failure is not None:
            return failure

        try:
            raw = adapter.validate(schema, data)
            if inspect.isawaitable(raw):
                close = getattr(raw, "close", None)
                if close is not None:
                    close()
                return ValidationResult.fail(
                    f"Schema of vendor {adapter.vendor!r} validates asynchronously; "
                    "use validate_async"
                )
            return normalize_result(raw, data)
        except Exception as e:
            logger.debug("Vendor %r raised during validation: %s", adapter.vendor, e)
            return ValidationResult.fail([str(e) or type(e).__name__])

    async def validate_async(self, schema: Any, data: Any) -> ValidationResult:
        """Validate data, awaiting the vendor's native async path if it has one.

        Vendors without an async path fall back to ``validate``, whose
        result is awaited if the vendor returns an awaitable.

        Args:
            schema: Schema object of any registered vendor
            data: Data to validate

        Returns:
            Normalized validation result; never raises
        """
        adapter, failure = self._adapter_for(schema)
        if failure is not None:
            return failure

        try:
            if adapter.supports_async_validation():
                raw = adapter.validate_async(schema, data)
            else:
                raw = adapter.validate(schema, data)
            if inspect.isawaitable(raw):
                raw = await raw
            return normalize_result(raw, data)
        except Exception as e:
            logger.debug("Vendor %r raised during async validation: %s", adapter.vendor, e)
            return ValidationResult.fail([str(e) or type(e).__name__])

    def is_valid(self, schema: Any, data: Any) -> bool:
        """Check whether data satisfies the schema."""
        return self.validate(schema, data).success

    def assert_valid(self, schema: Any, data: Any) -> None:
        """Raise if data does not satisfy the schema.

        Raises:
            SchemaValidationException: With the normalized issues
        """
        self._raise_for(schema, self.validate(schema, data))

    def parse(self, schema: Any, data: Any) -> Any:
        """Validate and return the vendor's parsed data.

        Raises:
            SchemaValidationException: With the normalized issues
        """
        result = self.validate(schema, data)
        self._raise_for(schema, result)
        return result.data

    async def parse_async(self, schema: Any, data: Any) -> Any:
        """Async version of ``parse``."""
        result = await self.validate_async(schema, data)
        self._raise_for(schema, result)
        return result.data

    def _adapter_for(self, schema: Any) -> tuple[Any, ValidationResult | None]:
        try:
            adapter = self.registry.resolve(schema)
        except AmbiguousAdapterException as e:
            logger.debug("Cannot pick a validating adapter: %s", e)
            return None, ValidationResult.fail(f"Unsupported schema: {e}")
        if adapter is None:
            return None, ValidationResult.fail(
                f"Unsupported schema: no adapter matches {type(schema).__name__} value"
            )
        if not adapter.supports_validation():
            return None, ValidationResult.fail(
                f"Unsupported schema: vendor {adapter.vendor!r} does not validate data"
            )
        return adapter, None

    @staticmethod
    def _raise_for(schema: Any, result: ValidationResult) -> None:
        if result.success:
            return
        summary = "; ".join(issue.message for issue in result.issues[:3])
        raise SchemaValidationException(
            f"Validation failed: {summary}", issues=list(result.issues), schema=schema
        )
