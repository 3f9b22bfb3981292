"""
Contract dispatch registry.

Maps each registered service contract to a route prefix and serves the
discovery surface (API version, advertised capabilities, permitted scopes
and the OAuth entry point).

Like the capability registry it has a single initialization phase that
ends with ``seal``. Every failed registration leaves the registry exactly
as it was.

Example:
    registry = ContractDispatchRegistry(capabilities, authorizer, api_version="2.0.0")
    registry.register_contract(IWdrApiInfoService, "wdr/v2/WdrApiInfo")
    registry.register_contract(IWorkflowStore, "wdr/v2/WorkflowStore", ["WdrStoreAccess"])
    registry.seal()

    registry.resolve_route("wdr/v2/WorkflowStore")  # IWorkflowStore
    registry.get_capabilities()                     # ["WdrStoreAccess"]
"""

from __future__ import annotations

import logging
import re
import threading
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from wdrgate.auth.authorizer import CredentialInput, ScopeAuthorizer
from wdrgate.auth.models import AuthorizationResult
from wdrgate.capabilities.registry import CapabilityRegistry
from wdrgate.errors import (
    DuplicateContractError,
    DuplicateRouteError,
    InvalidRouteError,
    RegistrationError,
    RegistryFrozenError,
    UnknownCapabilityError,
    UnknownRouteError,
)

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2.0.0"

_SEMVER = re.compile(r"^\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.-]+)?$")


def normalize_route(route_prefix: str) -> str:
    """Strip surrounding slashes and whitespace from a route prefix."""
    if not isinstance(route_prefix, str):
        raise InvalidRouteError(f"Route prefix must be a string, got {type(route_prefix).__name__}")
    route = route_prefix.strip().strip("/")
    if not route:
        raise InvalidRouteError("Route prefix must not be empty")
    if "//" in route or any(ch.isspace() for ch in route):
        raise InvalidRouteError(f"Malformed route prefix '{route_prefix}'")
    return route


def contract_name(contract: Any) -> str:
    """Readable name of a contract identity."""
    return getattr(contract, "__name__", None) or str(contract)


class ContractRegistration(BaseModel):
    """A contract bound to a route prefix. Never mutated once created."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    contract: Any = Field(..., description="Contract identity (usually an interface class)")
    route_prefix: str = Field(..., min_length=1)
    capabilities: Tuple[str, ...] = Field(
        default=(), description="Capabilities this contract backs"
    )

    @property
    def name(self) -> str:
        return contract_name(self.contract)


class ContractDispatchRegistry:
    """Route table plus discovery surface."""

    def __init__(
        self,
        capabilities: CapabilityRegistry,
        authorizer: ScopeAuthorizer,
        api_version: str = DEFAULT_API_VERSION,
        oauth_token_request_url: Optional[str] = None,
    ):
        if not _SEMVER.match(api_version):
            raise ValueError(f"API version '{api_version}' is not a semantic version")

        self.capabilities = capabilities
        self.authorizer = authorizer
        self._api_version = api_version
        self._oauth_token_request_url = oauth_token_request_url

        self._lock = threading.Lock()
        self._by_route: Mapping[str, ContractRegistration] = MappingProxyType({})
        self._by_contract: Mapping[Any, str] = MappingProxyType({})
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    # =========================================================================
    # Registration
    # =========================================================================

    def register_contract(
        self,
        contract: Any,
        route_prefix: str,
        capabilities: Iterable[str] = (),
    ) -> ContractRegistration:
        """
        Register a contract under a route prefix.

        Raises:
            DuplicateRouteError: If the route prefix is already taken.
            DuplicateContractError: If the contract is registered elsewhere.
            UnknownCapabilityError: If a capability is not registered.
            InvalidRouteError: If the route prefix is empty or malformed.
            RegistrationError: If the contract cannot serve as an identity key.
            RegistryFrozenError: If the registry has been sealed.
        """
        route = normalize_route(route_prefix)
        try:
            hash(contract)
        except TypeError as e:
            raise RegistrationError(
                f"Contract {contract!r} at '{route}' is not a usable identity: {e}"
            ) from e
        caps = tuple(dict.fromkeys(capabilities))

        with self._lock:
            if self._sealed:
                raise RegistryFrozenError(
                    f"Cannot register contract at '{route}': registry is sealed"
                )
            existing = self._by_route.get(route)
            if existing is not None:
                raise DuplicateRouteError(route, existing.contract)
            if contract in self._by_contract:
                raise DuplicateContractError(contract, self._by_contract[contract])
            for cap in caps:
                if not self.capabilities.exists(cap):
                    raise UnknownCapabilityError(cap)

            registration = ContractRegistration(
                contract=contract,
                route_prefix=route,
                capabilities=caps,
            )

            by_route: Dict[str, ContractRegistration] = dict(self._by_route)
            by_route[route] = registration
            by_contract: Dict[Any, str] = dict(self._by_contract)
            by_contract[contract] = route

            self._by_route = MappingProxyType(by_route)
            self._by_contract = MappingProxyType(by_contract)

        logger.info(
            "Registered contract %s at %s (capabilities=%s)",
            registration.name,
            route,
            list(caps),
        )
        return registration

    def seal(self) -> None:
        """End the initialization phase. Idempotent."""
        with self._lock:
            self._sealed = True
        logger.debug("Dispatch registry sealed with %d routes", len(self._by_route))

    # =========================================================================
    # Routing
    # =========================================================================

    def resolve_route(self, route_prefix: str) -> Any:
        """Get the contract registered under a route prefix."""
        return self.registration_for(route_prefix).contract

    def registration_for(self, route_prefix: str) -> ContractRegistration:
        """Get the full registration for a route prefix."""
        try:
            route = normalize_route(route_prefix)
        except InvalidRouteError:
            raise UnknownRouteError(str(route_prefix)) from None

        registration = self._by_route.get(route)
        if registration is None:
            raise UnknownRouteError(route)
        return registration

    def route_for(self, contract: Any) -> Optional[str]:
        """Route prefix a contract is registered under, if any."""
        return self._by_contract.get(contract)

    def registrations(self) -> List[ContractRegistration]:
        """All registrations in registration order."""
        return list(self._by_route.values())

    # =========================================================================
    # Discovery surface
    # =========================================================================

    def get_api_version(self) -> str:
        """Protocol revision implemented by this deployment."""
        return self._api_version

    def get_capabilities(self) -> List[str]:
        """
        Capabilities backed by at least one registered contract.

        Ordered as in the capability registry. A capability without a
        registered contract is never advertised.
        """
        backed = set()
        for registration in self._by_route.values():
            backed.update(registration.capabilities)
        return [c for c in self.capabilities.list_all() if c in backed]

    def get_permitted_auth_scopes(self, credential: CredentialInput) -> AuthorizationResult:
        """Permitted tokens and AuthState for the current caller."""
        return self.authorizer.evaluate(credential)

    def get_oauth_token_request_url(self) -> Optional[str]:
        """Configured token request URL, or ``None`` when not applicable."""
        return self._oauth_token_request_url

    def __len__(self) -> int:
        return len(self._by_route)

    def __contains__(self, route_prefix: object) -> bool:
        if not isinstance(route_prefix, str):
            return False
        return route_prefix.strip().strip("/") in self._by_route

    def __repr__(self) -> str:
        return f"ContractDispatchRegistry(routes={len(self)}, sealed={self._sealed})"
