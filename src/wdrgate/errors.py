"""
Error taxonomy for WdrGate.

Three families of errors exist:

- Registration errors (startup): raised while registries are being
  populated. These are fatal and must abort initialization.
- Routing errors (per call): the transport adapter reports them as a
  not-found outcome.
- Credential format errors (per call): the client sent credential
  material that cannot be parsed at all.

Authentication outcomes (auth required, expired, invalid) are NOT errors.
They are returned as ``AuthState`` values inside an ``AuthorizationResult``.
"""

from __future__ import annotations


class WdrGateError(Exception):
    """Base class for all WdrGate errors."""


# =============================================================================
# Registration errors
# =============================================================================


class RegistrationError(WdrGateError):
    """Raised when a registry cannot accept a registration."""


class DuplicateCapabilityError(RegistrationError):
    """A capability id was registered twice."""

    def __init__(self, capability_id: str):
        self.capability_id = capability_id
        super().__init__(f"Capability '{capability_id}' already registered")


class UnknownCapabilityError(RegistrationError):
    """A capability id is not present in the capability registry."""

    def __init__(self, capability_id: str):
        self.capability_id = capability_id
        super().__init__(f"Capability '{capability_id}' is not registered")


class InvalidCapabilityError(RegistrationError):
    """A capability id or its description failed validation."""


class DuplicateRouteError(RegistrationError):
    """A route prefix is already taken by another contract."""

    def __init__(self, route_prefix: str, existing: object):
        self.route_prefix = route_prefix
        self.existing = existing
        super().__init__(
            f"Route '{route_prefix}' already registered for contract {existing!r}"
        )


class DuplicateContractError(RegistrationError):
    """A contract is already addressable under another route prefix."""

    def __init__(self, contract: object, existing_route: str):
        self.contract = contract
        self.existing_route = existing_route
        super().__init__(
            f"Contract {contract!r} already registered under '{existing_route}'"
        )


class InvalidRouteError(RegistrationError):
    """A route prefix is empty or malformed."""


class RegistryFrozenError(RegistrationError):
    """A registry was modified after its initialization phase ended."""


# =============================================================================
# Routing errors
# =============================================================================


class UnknownRouteError(WdrGateError):
    """No contract is registered under the requested route prefix."""

    def __init__(self, route_prefix: str):
        self.route_prefix = route_prefix
        super().__init__(f"No contract registered for route '{route_prefix}'")


class UnknownOperationError(WdrGateError):
    """The resolved contract has no operation with the requested name."""

    def __init__(self, route_prefix: str, operation: str):
        self.route_prefix = route_prefix
        self.operation = operation
        super().__init__(f"Contract at '{route_prefix}' has no operation '{operation}'")


# =============================================================================
# Credential errors
# =============================================================================


class CredentialFormatError(WdrGateError):
    """
    Credential material could not be parsed.

    Indicates a client bug, as opposed to AuthInvalid which is a legitimate
    negative decision about a well-formed credential.
    """
