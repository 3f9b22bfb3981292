"""
Scope authorization for WdrGate.

Example usage:
    from wdrgate.auth import (
        AuthState,
        Credential,
        MemoryCredentialStore,
        ScopeAuthorizer,
    )

    authorizer = ScopeAuthorizer(capabilities, role_grants={"wdr-reader": ["WdrStoreAccess"]})
    store = MemoryCredentialStore({"t-1": Credential(subject="alice", roles=["wdr-reader"])})

    result = authorizer.evaluate(store.resolve_header("Bearer t-1"))
    assert result.auth_state == AuthState.AUTHENTICATED
"""

from wdrgate.auth.models import (
    AuthorizationEvent,
    AuthorizationResult,
    AuthState,
    Credential,
    RoleGrant,
    UnknownScopePolicy,
)

from wdrgate.auth.authorizer import ScopeAuthorizer

from wdrgate.auth.credentials import (
    CredentialFileStore,
    CredentialValidator,
    MemoryCredentialStore,
    extract_bearer_token,
)

from wdrgate.auth.audit import (
    AuditSink,
    CompositeAuditSink,
    LoggingAuditSink,
    OTelAuditSink,
)

__all__ = [
    # Models
    "AuthorizationEvent",
    "AuthorizationResult",
    "AuthState",
    "Credential",
    "RoleGrant",
    "UnknownScopePolicy",
    # Authorizer
    "ScopeAuthorizer",
    # Credentials
    "CredentialFileStore",
    "CredentialValidator",
    "MemoryCredentialStore",
    "extract_bearer_token",
    # Audit
    "AuditSink",
    "CompositeAuditSink",
    "LoggingAuditSink",
    "OTelAuditSink",
]
