"""
Capability registry.

Holds the authoritative, ordered set of capability ids this deployment can
support, independent of which are currently backed by a contract.

The registry has a single initialization phase. ``register`` may be called
until ``seal`` is invoked; afterwards the registry is an immutable snapshot
and may be read from any number of threads without locking.

Example:
    registry = CapabilityRegistry()
    registry.register("WdrStoreAccess", "Access to the workflow store")
    registry.seal()

    registry.exists("WdrStoreAccess")  # True
    registry.list_all()                # ["WdrStoreAccess"]
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from wdrgate.capabilities.models import BUILT_IN_CAPABILITIES, CapabilityDefinition
from wdrgate.errors import (
    DuplicateCapabilityError,
    InvalidCapabilityError,
    RegistryFrozenError,
    UnknownCapabilityError,
)

logger = logging.getLogger(__name__)


class CapabilityRegistry:
    """Insertion-ordered table of known capability ids."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Dict[str, CapabilityDefinition] = {}
        self._definitions: Mapping[str, CapabilityDefinition] = MappingProxyType({})
        self._sealed = False

    @classmethod
    def from_definitions(
        cls,
        definitions: Iterable[CapabilityDefinition],
        seal: bool = False,
    ) -> "CapabilityRegistry":
        """Build a registry from capability definitions, in order."""
        registry = cls()
        for definition in definitions:
            registry.register(definition.id, definition.description)
        if seal:
            registry.seal()
        return registry

    @classmethod
    def with_builtin_capabilities(cls, seal: bool = False) -> "CapabilityRegistry":
        """Build a registry holding the published WDR capabilities."""
        return cls.from_definitions(BUILT_IN_CAPABILITIES, seal=seal)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def register(self, capability_id: str, description: str = "") -> CapabilityDefinition:
        """
        Register a capability id.

        Raises:
            DuplicateCapabilityError: If the id is already present
                (case-sensitive exact match).
            InvalidCapabilityError: If the id is empty or not a string.
            RegistryFrozenError: If the registry has been sealed.
        """
        try:
            definition = CapabilityDefinition(id=capability_id, description=description)
        except ValidationError as e:
            raise InvalidCapabilityError(f"Invalid capability id {capability_id!r}: {e}") from e

        with self._lock:
            if self._sealed:
                raise RegistryFrozenError(
                    f"Cannot register capability '{capability_id}': registry is sealed"
                )
            if capability_id in self._pending:
                raise DuplicateCapabilityError(capability_id)

            self._pending[capability_id] = definition
            self._definitions = MappingProxyType(dict(self._pending))

        logger.info("Registered capability %s", capability_id)
        return definition

    def seal(self) -> None:
        """End the initialization phase. Idempotent."""
        with self._lock:
            if self._sealed:
                return
            self._definitions = MappingProxyType(dict(self._pending))
            self._sealed = True

        logger.debug("Capability registry sealed with %d entries", len(self._definitions))

    def list_all(self) -> List[str]:
        """All registered capability ids in insertion order."""
        return list(self._definitions.keys())

    def exists(self, capability_id: str) -> bool:
        """Check if a capability id is registered."""
        return capability_id in self._definitions

    def describe(self, capability_id: str) -> CapabilityDefinition:
        """Get the definition for a capability id."""
        definition: Optional[CapabilityDefinition] = self._definitions.get(capability_id)
        if definition is None:
            raise UnknownCapabilityError(capability_id)
        return definition

    def definitions(self) -> List[CapabilityDefinition]:
        """All capability definitions in insertion order."""
        return list(self._definitions.values())

    def __contains__(self, capability_id: object) -> bool:
        return capability_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"CapabilityRegistry(count={len(self)}, sealed={self._sealed})"
