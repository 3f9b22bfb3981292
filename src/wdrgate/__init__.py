"""
WdrGate - contract discovery, capability advertisement and scope authorization.

Service contracts are registered under route prefixes and exposed over a
call-based wire protocol. Before calling a business contract, a client
queries the discovery contract (``wdr/v2/WdrApiInfo``) for the protocol
version, the advertised capabilities, the tokens it is permitted to use and
its auth state.

Example:
    from wdrgate import build_gateway, get_config

    gateway = build_gateway(get_config(oauth_token_request_url="https://login.example.org"))
    outcome = gateway.endpoint.invoke("wdr/v2/WdrApiInfo", "GetPermittedAuthScopes")
    outcome.body  # {"return": [], "authState": 0}
"""

__version__ = "0.1.0"

from wdrgate.errors import (
    CredentialFormatError,
    DuplicateCapabilityError,
    DuplicateContractError,
    DuplicateRouteError,
    InvalidCapabilityError,
    InvalidRouteError,
    RegistrationError,
    RegistryFrozenError,
    UnknownCapabilityError,
    UnknownOperationError,
    UnknownRouteError,
    WdrGateError,
)
from wdrgate.capabilities import CapabilityDefinition, CapabilityRegistry, WdrCapabilities
from wdrgate.auth import (
    AuthorizationResult,
    AuthState,
    Credential,
    ScopeAuthorizer,
    UnknownScopePolicy,
)
from wdrgate.dispatch import (
    ContractDispatchRegistry,
    ContractEndpoint,
    IWdrApiInfoService,
    WdrApiInfoService,
)
from wdrgate.config import WdrGateConfig, get_config, reset_config
from wdrgate.gateway import ContractSpec, Gateway, build_gateway

__all__ = [
    "__version__",
    # Errors
    "CredentialFormatError",
    "DuplicateCapabilityError",
    "DuplicateContractError",
    "DuplicateRouteError",
    "InvalidCapabilityError",
    "InvalidRouteError",
    "RegistrationError",
    "RegistryFrozenError",
    "UnknownCapabilityError",
    "UnknownOperationError",
    "UnknownRouteError",
    "WdrGateError",
    # Capabilities
    "CapabilityDefinition",
    "CapabilityRegistry",
    "WdrCapabilities",
    # Auth
    "AuthorizationResult",
    "AuthState",
    "Credential",
    "ScopeAuthorizer",
    "UnknownScopePolicy",
    # Dispatch
    "ContractDispatchRegistry",
    "ContractEndpoint",
    "IWdrApiInfoService",
    "WdrApiInfoService",
    # Config / startup
    "WdrGateConfig",
    "get_config",
    "reset_config",
    "ContractSpec",
    "Gateway",
    "build_gateway",
]
