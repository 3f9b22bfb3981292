"""
Capability registry and capability definitions.

Example usage:
    from wdrgate.capabilities import CapabilityRegistry, WdrCapabilities

    registry = CapabilityRegistry.with_builtin_capabilities(seal=True)
    registry.exists(WdrCapabilities.WDR_STORE_ACCESS)  # True
"""

from wdrgate.capabilities.models import (
    API_PREFIX,
    BUILT_IN_CAPABILITIES,
    STUDY_PREFIX,
    CapabilityDefinition,
    WdrCapabilities,
    split_token,
)
from wdrgate.capabilities.registry import CapabilityRegistry

__all__ = [
    "API_PREFIX",
    "BUILT_IN_CAPABILITIES",
    "STUDY_PREFIX",
    "CapabilityDefinition",
    "CapabilityRegistry",
    "WdrCapabilities",
    "split_token",
]
