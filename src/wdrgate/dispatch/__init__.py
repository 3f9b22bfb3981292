"""
Contract dispatch and the discovery surface.

Example usage:
    from wdrgate.dispatch import ContractDispatchRegistry, ContractEndpoint

    registry = ContractDispatchRegistry(capabilities, authorizer)
    registry.register_contract(IWdrApiInfoService, "wdr/v2/WdrApiInfo")
    registry.seal()

The FastAPI adapter lives in ``wdrgate.dispatch.http`` and is imported
separately so the core does not depend on a web framework.
"""

from wdrgate.dispatch.registry import (
    DEFAULT_API_VERSION,
    ContractDispatchRegistry,
    ContractRegistration,
    normalize_route,
)

from wdrgate.dispatch.contract import (
    CREDENTIAL_PARAMETER,
    contract_operations,
    resolve_operation,
)

from wdrgate.dispatch.apiinfo import (
    API_INFO_SUBROUTE,
    IWdrApiInfoService,
    WdrApiInfoService,
)

from wdrgate.dispatch.endpoint import CallOutcome, ContractEndpoint

__all__ = [
    # Registry
    "DEFAULT_API_VERSION",
    "ContractDispatchRegistry",
    "ContractRegistration",
    "normalize_route",
    # Contract helpers
    "CREDENTIAL_PARAMETER",
    "contract_operations",
    "resolve_operation",
    # Discovery contract
    "API_INFO_SUBROUTE",
    "IWdrApiInfoService",
    "WdrApiInfoService",
    # Endpoint
    "CallOutcome",
    "ContractEndpoint",
]
