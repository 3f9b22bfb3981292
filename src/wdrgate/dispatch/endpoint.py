"""
Framework-agnostic call dispatcher.

``ContractEndpoint`` is the boundary between a transport and the registries.
It resolves the route, enforces the contract's capabilities, invokes the
operation and translates every per-call error into a ``CallOutcome``.
Nothing that happens during a call touches registry state.

Arguments and results use UJMW-style wrappers: the request body is a JSON
object of named (camelCase) arguments, the response body holds the value
under ``return`` plus any out-arguments (``authState``).

Outcome status codes:
    200  Operation returned
    400  Malformed credential or arguments
    401  Caller not authenticated (body carries ``authState``)
    403  Authenticated, but no capability the contract backs
    404  Unknown route or operation
    500  Operation or authorization raised
    501  No implementation bound, or it lacks the operation
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel

from wdrgate.auth.credentials import CredentialValidator
from wdrgate.auth.models import AuthorizationResult, AuthState, Credential
from wdrgate.dispatch.contract import CREDENTIAL_PARAMETER, resolve_operation, to_snake_case
from wdrgate.dispatch.registry import ContractDispatchRegistry, contract_name
from wdrgate.errors import CredentialFormatError, UnknownOperationError, UnknownRouteError

logger = logging.getLogger(__name__)

__all__ = ["CallOutcome", "ContractEndpoint"]


@dataclass(frozen=True)
class CallOutcome:
    """Transport-neutral result of one call."""

    status: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == 200


def _fault(status: int, message: str, **extra: Any) -> CallOutcome:
    body: Dict[str, Any] = {"fault": message}
    body.update(extra)
    return CallOutcome(status=status, body=body)


def _wrap_return(value: Any) -> Dict[str, Any]:
    if isinstance(value, AuthorizationResult):
        return value.to_wire()
    if isinstance(value, BaseModel):
        return {"return": value.model_dump(mode="json")}
    return {"return": value}


class ContractEndpoint:
    """
    Dispatches calls to contract implementations.

    Example:
        endpoint = ContractEndpoint(registry, validator=token_store)
        endpoint.bind(IWdrApiInfoService, WdrApiInfoService(registry))

        outcome = endpoint.invoke(
            "wdr/v2/WdrApiInfo",
            "GetPermittedAuthScopes",
            authorization="Bearer 3f1c...",
        )
        outcome.body  # {"return": [...], "authState": 1}
    """

    def __init__(
        self,
        registry: ContractDispatchRegistry,
        validator: Optional[CredentialValidator] = None,
        implementations: Optional[Mapping[Any, Any]] = None,
    ):
        self.registry = registry
        self.validator = validator
        self._implementations: Dict[Any, Any] = dict(implementations or {})

    def bind(self, contract: Any, implementation: Any) -> None:
        """Bind the object that serves calls for a registered contract."""
        if self.registry.route_for(contract) is None:
            raise UnknownRouteError(contract_name(contract))
        self._implementations[contract] = implementation

    def implementation_for(self, contract: Any) -> Optional[Any]:
        return self._implementations.get(contract)

    def invoke(
        self,
        route_prefix: str,
        operation: str,
        arguments: Optional[Mapping[str, Any]] = None,
        authorization: Optional[str] = None,
    ) -> CallOutcome:
        """
        Dispatch one call.

        Args:
            route_prefix: Route the contract is registered under
            operation: Wire operation name (e.g. ``GetCapabilities``)
            arguments: Request wrapper (named arguments)
            authorization: Raw ``Authorization`` header value, if any

        Returns:
            CallOutcome; never raises for per-call failures.
        """
        try:
            registration = self.registry.registration_for(route_prefix)
            method_name = resolve_operation(registration.contract, operation)
            if not method_name:
                raise UnknownOperationError(registration.route_prefix, operation)
            credential = self._resolve_credential(authorization)
        except (UnknownRouteError, UnknownOperationError) as e:
            logger.warning("Dispatch failed: %s", e)
            return _fault(404, str(e))
        except CredentialFormatError as e:
            logger.warning("Rejected credential for %s: %s", route_prefix, e)
            return _fault(400, str(e))

        if registration.capabilities:
            try:
                decision = self.registry.get_permitted_auth_scopes(credential)
            except CredentialFormatError as e:
                return _fault(400, str(e))
            except Exception as e:
                logger.exception("Authorization at %s failed", registration.route_prefix)
                return _fault(500, f"{type(e).__name__}: {e}")

            if decision.auth_state != AuthState.AUTHENTICATED:
                return _fault(
                    401,
                    f"Authentication required ({decision.auth_state.name})",
                    authState=int(decision.auth_state),
                )
            if not set(registration.capabilities) & set(decision.capabilities):
                logger.warning(
                    "Capability missing for %s: required one of %s",
                    registration.route_prefix,
                    list(registration.capabilities),
                )
                return _fault(
                    403,
                    f"Requires one of {list(registration.capabilities)}",
                    authState=int(decision.auth_state),
                )

        implementation = self._implementations.get(registration.contract)
        if implementation is None:
            return _fault(501, f"No implementation bound for '{registration.route_prefix}'")

        method = getattr(implementation, method_name, None)
        if not callable(method):
            return _fault(
                501,
                f"Implementation for '{registration.route_prefix}' does not provide {operation}",
            )
        try:
            bound = self._bind_arguments(method, arguments or {}, credential)
        except TypeError as e:
            return _fault(400, f"Invalid arguments for {operation}: {e}")

        try:
            value = method(*bound.args, **bound.kwargs)
        except CredentialFormatError as e:
            return _fault(400, str(e))
        except Exception as e:
            logger.exception("Operation %s at %s failed", operation, registration.route_prefix)
            return _fault(500, f"{type(e).__name__}: {e}")

        return CallOutcome(status=200, body=_wrap_return(value))

    def _resolve_credential(self, authorization: Optional[str]) -> Optional[Credential]:
        if self.validator is None:
            return None
        return self.validator.resolve_header(authorization)

    @staticmethod
    def _bind_arguments(
        method: Any,
        arguments: Mapping[str, Any],
        credential: Optional[Credential],
    ) -> inspect.BoundArguments:
        signature = inspect.signature(method)
        kwargs = {to_snake_case(name): value for name, value in arguments.items()}
        if CREDENTIAL_PARAMETER in kwargs:
            raise TypeError(f"'{CREDENTIAL_PARAMETER}' cannot be passed as an argument")
        if CREDENTIAL_PARAMETER in signature.parameters:
            kwargs[CREDENTIAL_PARAMETER] = credential
        return signature.bind(**kwargs)
