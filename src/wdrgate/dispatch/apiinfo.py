"""
The discovery contract.

Every deployment exposes ``IWdrApiInfoService`` at a well-known route
(conventionally ``wdr/v2/WdrApiInfo``). Callers query it before invoking
any business contract to learn:

- which protocol revision is implemented (``GetApiVersion``)
- which feature areas are available (``GetCapabilities``)
- what the current caller may access, and its auth state
  (``GetPermittedAuthScopes``)
- where to obtain a token, if tokens are used (``GetOAuthTokenRequestUrl``)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from wdrgate.auth.authorizer import CredentialInput
from wdrgate.auth.models import AuthorizationResult
from wdrgate.dispatch.registry import ContractDispatchRegistry

API_INFO_SUBROUTE = "WdrApiInfo"


class IWdrApiInfoService(ABC):
    """Provides interoperability information for the current implementation."""

    @abstractmethod
    def get_api_version(self) -> str:
        """
        Version of the protocol implemented by this API.

        Used for backward compatibility within inhomogeneous infrastructures.
        """

    @abstractmethod
    def get_capabilities(self) -> List[str]:
        """API feature areas supported by this implementation."""

    @abstractmethod
    def get_permitted_auth_scopes(self, credential: CredentialInput) -> AuthorizationResult:
        """
        Capabilities and data scopes permitted for the current accessor.

        The result also carries the auth state:
            0 = auth needed, 1 = authenticated,
           -1 = auth expired, -2 = auth invalid/disabled
        """

    @abstractmethod
    def get_oauth_token_request_url(self) -> Optional[str]:
        """
        Login URL for token-based authentication, if any.

        ``None`` means no token flow is configured (not applicable).
        """


class WdrApiInfoService(IWdrApiInfoService):
    """Discovery contract backed by a ``ContractDispatchRegistry``."""

    def __init__(self, registry: ContractDispatchRegistry):
        self._registry = registry

    def get_api_version(self) -> str:
        return self._registry.get_api_version()

    def get_capabilities(self) -> List[str]:
        return self._registry.get_capabilities()

    def get_permitted_auth_scopes(self, credential: CredentialInput) -> AuthorizationResult:
        return self._registry.get_permitted_auth_scopes(credential)

    def get_oauth_token_request_url(self) -> Optional[str]:
        return self._registry.get_oauth_token_request_url()

    def describe(self) -> Dict[str, Any]:
        """Caller-independent discovery document."""
        return {
            "apiVersion": self.get_api_version(),
            "capabilities": self.get_capabilities(),
            "oauthTokenRequestUrl": self.get_oauth_token_request_url(),
            "routes": {
                r.route_prefix: {"contract": r.name, "capabilities": list(r.capabilities)}
                for r in self._registry.registrations()
            },
        }
