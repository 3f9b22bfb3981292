"""
Scope authorizer.

Evaluates a credential into the ordered set of permitted capability and
scope tokens plus an AuthState.

Evaluation order:
1. No credential                              -> AuthRequired
2. Unverified, disabled or not yet valid      -> AuthInvalid
3. Validity window elapsed                    -> AuthExpired
4. Otherwise                                  -> Authenticated

Only an Authenticated evaluation carries tokens. Capability tokens come
first, in capability registry order, followed by scope tokens in the order
they were assigned to the credential. Capability tokens come from role
grants only; an ``API`` kind token listed among the credential's scopes is
dropped like any other ungranted capability.

Example:
    authorizer = ScopeAuthorizer(
        capabilities=CapabilityRegistry.with_builtin_capabilities(seal=True),
        role_grants={"wdr-reader": ["WdrStoreAccess"]},
    )
    result = authorizer.evaluate(credential)
    result.as_tuple()  # (["WdrStoreAccess", "Study:..."], 1)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from wdrgate.auth.audit import AuditSink
from wdrgate.auth.models import (
    AuthorizationEvent,
    AuthorizationResult,
    AuthState,
    Credential,
    RoleGrant,
    UnknownScopePolicy,
)
from wdrgate.capabilities.models import API_PREFIX, split_token
from wdrgate.capabilities.registry import CapabilityRegistry
from wdrgate.errors import CredentialFormatError

logger = logging.getLogger(__name__)

CredentialInput = Union[Credential, Mapping[str, Any], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScopeAuthorizer:
    """
    Stateless evaluator of credentials.

    All configuration is captured at construction as immutable data, so a
    single instance may serve any number of concurrent callers.
    """

    def __init__(
        self,
        capabilities: CapabilityRegistry,
        role_grants: Union[Mapping[str, Iterable[str]], Iterable[RoleGrant], None] = None,
        unknown_scope_policy: UnknownScopePolicy = UnknownScopePolicy.PASS_THROUGH,
        known_scopes: Optional[Iterable[str]] = None,
        audit_sink: Optional[AuditSink] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.capabilities = capabilities
        self.role_grants = MappingProxyType(_normalize_grants(role_grants))
        self.unknown_scope_policy = UnknownScopePolicy(unknown_scope_policy)
        self.known_scopes = frozenset(known_scopes or ())
        self.audit_sink = audit_sink
        self._clock = clock

    def evaluate(self, credential: CredentialInput) -> AuthorizationResult:
        """
        Evaluate a credential.

        Args:
            credential: A ``Credential``, a mapping to be validated into one,
                or ``None`` when the caller presented no credential.

        Returns:
            AuthorizationResult with permitted tokens and AuthState.

        Raises:
            CredentialFormatError: If the credential cannot be parsed.
        """
        parsed = self._parse(credential)

        if parsed is None:
            return self._finish(None, AuthorizationResult.denied(AuthState.AUTH_REQUIRED))

        now = self._clock()

        if not parsed.verified or parsed.disabled or parsed.is_not_yet_valid(now):
            return self._finish(parsed, AuthorizationResult.denied(AuthState.AUTH_INVALID))

        if parsed.is_expired(now):
            return self._finish(parsed, AuthorizationResult.denied(AuthState.AUTH_EXPIRED))

        granted = set()
        for role_id in parsed.roles:
            role_caps = self.role_grants.get(role_id)
            if role_caps is None:
                logger.debug("Ignoring unknown role %s for %s", role_id, parsed.subject)
                continue
            granted.update(role_caps)

        # Registry order; tokens the registry does not know are dropped.
        capability_tokens = [c for c in self.capabilities.list_all() if c in granted]
        dropped_capabilities = sorted(c for c in granted if not self.capabilities.exists(c))

        tokens: List[str] = list(capability_tokens)
        seen = set(tokens)
        dropped_scopes: List[str] = []
        for scope in parsed.scopes:
            if scope in seen:
                continue
            kind, value = split_token(scope)
            if kind == API_PREFIX:
                # Capabilities are granted through roles only.
                if value not in seen and value not in dropped_capabilities:
                    dropped_capabilities.append(value)
                continue
            if not self._scope_permitted(scope):
                dropped_scopes.append(scope)
                continue
            seen.add(scope)
            tokens.append(scope)

        result = AuthorizationResult(
            tokens=tuple(tokens),
            auth_state=AuthState.AUTHENTICATED,
            capabilities=tuple(capability_tokens),
        )
        return self._finish(parsed, result, dropped_capabilities, dropped_scopes)

    def _parse(self, credential: CredentialInput) -> Optional[Credential]:
        if credential is None or isinstance(credential, Credential):
            return credential

        if isinstance(credential, Mapping):
            try:
                return Credential.model_validate(dict(credential))
            except ValidationError as e:
                raise CredentialFormatError(f"Malformed credential: {e}") from e

        raise CredentialFormatError(
            f"Unsupported credential type: {type(credential).__name__}"
        )

    def _scope_permitted(self, scope: str) -> bool:
        if self.unknown_scope_policy == UnknownScopePolicy.PASS_THROUGH:
            return True
        return scope in self.known_scopes

    def _finish(
        self,
        credential: Optional[Credential],
        result: AuthorizationResult,
        dropped_capabilities: Iterable[str] = (),
        dropped_scopes: Iterable[str] = (),
    ) -> AuthorizationResult:
        subject = credential.subject if credential else None
        logger.debug(
            "Evaluated credential: subject=%s, auth_state=%s, tokens=%d",
            subject,
            result.auth_state.name,
            len(result.tokens),
        )

        if self.audit_sink is not None:
            self.audit_sink.record(
                AuthorizationEvent(
                    subject=subject,
                    auth_state=result.auth_state,
                    tokens=result.tokens,
                    dropped_capabilities=tuple(dropped_capabilities),
                    dropped_scopes=tuple(dropped_scopes),
                )
            )

        return result


def _normalize_grants(
    role_grants: Union[Mapping[str, Iterable[str]], Iterable[RoleGrant], None],
) -> dict:
    if role_grants is None:
        return {}
    if isinstance(role_grants, Mapping):
        return {role: tuple(caps) for role, caps in role_grants.items()}
    return {grant.role_id: grant.capabilities for grant in role_grants}
