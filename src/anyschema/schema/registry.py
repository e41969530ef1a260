"""Ordered adapter registry with first-match resolution."""

import logging
import threading
from collections.abc import Iterable, Iterator
from typing import Any

from anyschema.exceptions import AmbiguousAdapterException
from anyschema.schema.capabilities import BaseSchemaAdapter
from anyschema.utils.config import AmbiguityPolicy

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Maps arbitrary schema values to the adapter that claims them.

    Adapters are tried in registration order, so structurally more specific
    vendors must be registered before more general ones. Registration is
    expected to happen at startup; resolution takes no lock and is safe once
    registration has quiesced. The ``warn`` policy takes the lock only to
    record which ambiguities were already reported.
    """

    def __init__(
        self,
        adapters: Iterable[BaseSchemaAdapter] | None = None,
        ambiguity: AmbiguityPolicy | str = AmbiguityPolicy.FIRST_MATCH,
    ) -> None:
        """Initialize AdapterRegistry.

        Args:
            adapters: Adapters to register, in priority order
            ambiguity: What to do when several adapters match the same value
        """
        self.ambiguity = AmbiguityPolicy(ambiguity)
        self._adapters: tuple[BaseSchemaAdapter, ...] = ()
        self._lock = threading.Lock()
        self._reported: set[tuple[str, ...]] = set()
        for adapter in adapters or ():
            self.register(adapter)

    def register(self, adapter: BaseSchemaAdapter) -> None:
        """Append an adapter; earlier registrations are tried first.

        Args:
            adapter: Adapter to register

        Raises:
            TypeError: If ``adapter`` does not implement the adapter interface
        """
        if not isinstance(adapter, BaseSchemaAdapter):
            raise TypeError(
                f"Expected a BaseSchemaAdapter, got {type(adapter).__name__}"
            )
        with self._lock:
            self._adapters = (*self._adapters, adapter)
        logger.debug(
            "Registered adapter %r at position %d", adapter.vendor, len(self._adapters)
        )

    def resolve(self, value: Any) -> BaseSchemaAdapter | None:
        """Find the adapter that claims ``value``.

        Args:
            value: Any value, schema or not

        Returns:
            The first matching adapter, or None if no adapter matches

        Raises:
            AmbiguousAdapterException: If several adapters match and the
                registry uses the ``error`` ambiguity policy
        """
        adapters = self._adapters

        if self.ambiguity is AmbiguityPolicy.FIRST_MATCH:
            for adapter in adapters:
                if self._matches(adapter, value):
                    return adapter
            return None

        matches = [adapter for adapter in adapters if self._matches(adapter, value)]
        if len(matches) > 1:
            self._report_ambiguity(value, matches)
        return matches[0] if matches else None

    @property
    def adapters(self) -> tuple[BaseSchemaAdapter, ...]:
        return self._adapters

    def vendors(self) -> list[str]:
        return [adapter.vendor for adapter in self._adapters]

    def _matches(self, adapter: BaseSchemaAdapter, value: Any) -> bool:
        try:
            return bool(adapter.match(value))
        except Exception as e:
            logger.debug(
                "Adapter %r raised in match() for %s: %s",
                adapter.vendor,
                type(value).__name__,
                e,
            )
            return False

    def _report_ambiguity(
        self, value: Any, matches: list[BaseSchemaAdapter]
    ) -> None:
        vendors = [adapter.vendor for adapter in matches]
        message = (
            f"{len(matches)} adapters match {type(value).__name__} value: "
            f"{', '.join(vendors)}; using {vendors[0]!r}"
        )
        if self.ambiguity is AmbiguityPolicy.ERROR:
            raise AmbiguousAdapterException(message, vendors=vendors)

        key = tuple(vendors)
        with self._lock:
            if key in self._reported:
                return
            self._reported.add(key)
        logger.warning(message)

    def __len__(self) -> int:
        return len(self._adapters)

    def __iter__(self) -> Iterator[BaseSchemaAdapter]:
        return iter(self._adapters)

    def __contains__(self, adapter: object) -> bool:
        return adapter in self._adapters
