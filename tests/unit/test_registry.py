"""Unit tests for AdapterRegistry - vendor detection and dispatch."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pytest

from anyschema.exceptions import AmbiguousAdapterException
from anyschema.schema.capabilities import define_adapter
from anyschema.schema.registry import AdapterRegistry
from anyschema.utils.config import AmbiguityPolicy


def _adapter(vendor: str, predicate: Any) -> Any:
    return define_adapter(vendor, predicate)


@pytest.mark.unit
class TestAdapterRegistry:
    """Test cases for registration and first-match resolution."""

    def test_empty_registry_resolves_nothing(self) -> None:
        """Test that resolution on an empty registry returns None."""
        registry = AdapterRegistry()

        assert registry.resolve("anything") is None
        assert len(registry) == 0

    def test_first_registered_match_wins(self) -> None:
        """Test that earlier registrations take priority."""
        specific = _adapter("specific", lambda v: isinstance(v, dict) and "kind" in v)
        general = _adapter("general", lambda v: isinstance(v, dict))
        registry = AdapterRegistry([specific, general])

        assert registry.resolve({"kind": "x"}) is specific
        assert registry.resolve({}) is general
        assert registry.resolve([]) is None

    def test_registration_order_is_significant(self) -> None:
        """Test that registering the general adapter first shadows the specific one."""
        specific = _adapter("specific", lambda v: isinstance(v, dict) and "kind" in v)
        general = _adapter("general", lambda v: isinstance(v, dict))
        registry = AdapterRegistry()
        registry.register(general)
        registry.register(specific)

        assert registry.resolve({"kind": "x"}) is general
        assert registry.vendors() == ["general", "specific"]

    def test_register_rejects_non_adapters(self) -> None:
        """Test that objects without the adapter interface are rejected."""
        registry = AdapterRegistry()

        with pytest.raises(TypeError, match="BaseSchemaAdapter"):
            registry.register(object())  # type: ignore[arg-type]

    def test_raising_match_counts_as_no_match(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that a misbehaving match predicate never breaks resolution."""

        def broken(value: Any) -> bool:
            raise KeyError("boom")

        fallback = _adapter("fallback", lambda v: True)
        registry = AdapterRegistry([_adapter("broken", broken), fallback])

        with caplog.at_level(logging.DEBUG, logger="anyschema.schema.registry"):
            assert registry.resolve(None) is fallback

        assert "broken" in caplog.text

    def test_collection_protocol(self) -> None:
        """Test len, iteration and membership."""
        first = _adapter("first", lambda v: False)
        second = _adapter("second", lambda v: False)
        registry = AdapterRegistry([first, second])

        assert len(registry) == 2
        assert list(registry) == [first, second]
        assert first in registry
        assert registry.adapters == (first, second)


@pytest.mark.unit
class TestAmbiguityPolicy:
    """Test cases for overlapping match predicates."""

    @pytest.fixture
    def overlapping(self) -> list[Any]:
        return [
            _adapter("left", lambda v: isinstance(v, str)),
            _adapter("right", lambda v: isinstance(v, str)),
        ]

    def test_first_match_is_silent(
        self, overlapping: list[Any], caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that the default policy picks the first match without logging."""
        registry = AdapterRegistry(overlapping)

        with caplog.at_level(logging.WARNING):
            assert registry.resolve("x") is overlapping[0]

        assert caplog.records == []

    def test_warn_logs_once_per_vendor_set(
        self, overlapping: list[Any], caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that the warn policy reports each ambiguity once."""
        registry = AdapterRegistry(overlapping, ambiguity="warn")

        with caplog.at_level(logging.WARNING, logger="anyschema.schema.registry"):
            assert registry.resolve("x") is overlapping[0]
            assert registry.resolve("y") is overlapping[0]

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "left, right" in warnings[0].getMessage()

    def test_warn_once_under_concurrent_resolution(
        self, overlapping: list[Any], caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that concurrent resolves still report an ambiguity once."""
        registry = AdapterRegistry(overlapping, ambiguity="warn")

        with caplog.at_level(logging.WARNING, logger="anyschema.schema.registry"):
            with ThreadPoolExecutor(max_workers=8) as pool:
                resolved = list(pool.map(registry.resolve, ["x"] * 64))

        assert all(adapter is overlapping[0] for adapter in resolved)
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1

    def test_error_raises_with_vendors(self, overlapping: list[Any]) -> None:
        """Test that the error policy refuses ambiguous values."""
        registry = AdapterRegistry(overlapping, ambiguity=AmbiguityPolicy.ERROR)

        with pytest.raises(AmbiguousAdapterException) as exc_info:
            registry.resolve("x")

        assert exc_info.value.vendors == ["left", "right"]
        assert registry.resolve(1) is None

    def test_invalid_policy_rejected(self) -> None:
        """Test that unknown policy names raise ValueError."""
        with pytest.raises(ValueError):
            AdapterRegistry(ambiguity="loud")
