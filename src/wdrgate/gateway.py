"""
One-phase startup for WdrGate.

``build_gateway`` creates and populates every registry in a fixed order,
then seals them. Any registration error aborts the build: a partially
initialized gateway is never returned.

Order:
1. Capability registry (published WDR capabilities), sealed
2. Scope authorizer (role grants, scope policy, audit sink)
3. Dispatch registry: discovery contract at ``<route_base>/WdrApiInfo``,
   then each business contract at ``<route_base>/<subroute>``, sealed
4. Contract endpoint with implementations bound

Example:
    gateway = build_gateway(
        get_config(),
        contracts=[ContractSpec(IWorkflowStore, "WorkflowStore", ["WdrStoreAccess"], store)],
    )
    gateway.registry.get_capabilities()  # ["WdrStoreAccess"]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, NamedTuple, Optional, Sequence

from wdrgate.auth.audit import AuditSink, LoggingAuditSink
from wdrgate.auth.authorizer import ScopeAuthorizer
from wdrgate.auth.credentials import CredentialFileStore, CredentialValidator
from wdrgate.capabilities.registry import CapabilityRegistry
from wdrgate.config import WdrGateConfig, get_config
from wdrgate.dispatch.apiinfo import API_INFO_SUBROUTE, IWdrApiInfoService, WdrApiInfoService
from wdrgate.dispatch.endpoint import ContractEndpoint
from wdrgate.dispatch.registry import ContractDispatchRegistry

logger = logging.getLogger(__name__)


class ContractSpec(NamedTuple):
    """A business contract to register at startup."""

    contract: Any
    subroute: str
    capabilities: Sequence[str] = ()
    implementation: Optional[Any] = None


@dataclass(frozen=True)
class Gateway:
    """Fully initialized, sealed set of collaborating components."""

    config: WdrGateConfig
    capabilities: CapabilityRegistry
    authorizer: ScopeAuthorizer
    registry: ContractDispatchRegistry
    api_info: WdrApiInfoService
    endpoint: ContractEndpoint
    validator: Optional[CredentialValidator] = None


def build_gateway(
    config: Optional[WdrGateConfig] = None,
    contracts: Iterable[ContractSpec] = (),
    validator: Optional[CredentialValidator] = None,
    audit_sink: Optional[AuditSink] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Gateway:
    """
    Build and seal a gateway.

    Args:
        config: Configuration (global config if omitted)
        contracts: Business contracts to register
        validator: Credential validator (file store from ``tokens_file`` if omitted)
        audit_sink: Audit sink (JSON audit log if omitted and auditing is enabled)
        clock: Clock for validity-window checks (UTC now if omitted)

    Raises:
        RegistrationError: On any duplicate or unknown registration.
    """
    config = config or get_config()

    capabilities = CapabilityRegistry.with_builtin_capabilities(seal=True)

    if audit_sink is None and config.audit_enabled:
        audit_sink = LoggingAuditSink()
    if validator is None and config.tokens_file:
        validator = CredentialFileStore(config.tokens_file)

    authorizer_kwargs = {}
    if clock is not None:
        authorizer_kwargs["clock"] = clock
    authorizer = ScopeAuthorizer(
        capabilities,
        role_grants=config.role_grants,
        unknown_scope_policy=config.unknown_scope_policy,
        known_scopes=config.known_scopes,
        audit_sink=audit_sink,
        **authorizer_kwargs,
    )

    registry = ContractDispatchRegistry(
        capabilities,
        authorizer,
        api_version=config.api_version,
        oauth_token_request_url=config.oauth_token_request_url,
    )
    registry.register_contract(IWdrApiInfoService, config.route(API_INFO_SUBROUTE))

    specs = list(contracts)
    for spec in specs:
        registry.register_contract(spec.contract, config.route(spec.subroute), spec.capabilities)
    registry.seal()

    api_info = WdrApiInfoService(registry)
    endpoint = ContractEndpoint(registry, validator=validator)
    endpoint.bind(IWdrApiInfoService, api_info)
    for spec in specs:
        if spec.implementation is not None:
            endpoint.bind(spec.contract, spec.implementation)

    logger.info(
        "Gateway ready: api_version=%s, routes=%d, capabilities=%s",
        registry.get_api_version(),
        len(registry),
        registry.get_capabilities(),
    )

    return Gateway(
        config=config,
        capabilities=capabilities,
        authorizer=authorizer,
        registry=registry,
        api_info=api_info,
        endpoint=endpoint,
        validator=validator,
    )
