"""
Pydantic models for scope authorization.

Key concepts:
- Credential: structured credential produced by a credential validator
- RoleGrant: capability tokens a role grants
- AuthState: the caller's authentication posture for one evaluation
- AuthorizationResult: permitted tokens plus AuthState, as one value
- AuthorizationEvent: audit record of a single evaluation
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AuthState(IntEnum):
    """
    Authentication state reported alongside the permitted tokens.

    The integer values are part of the wire protocol.
    """

    AUTH_REQUIRED = 0
    AUTHENTICATED = 1
    AUTH_EXPIRED = -1
    AUTH_INVALID = -2

    @property
    def is_negative(self) -> bool:
        return self.value < 0


class UnknownScopePolicy(str, Enum):
    """How scope tokens that match no known data partition are handled."""

    PASS_THROUGH = "pass_through"
    DROP = "drop"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Credential(BaseModel):
    """
    Structured credential for one caller.

    Produced by the credential-validation collaborator. ``verified`` carries
    the collaborator's verdict on signature and structure; the authorizer
    never inspects raw token material itself.

    Example:
        credential = Credential(
            subject="alice@example.org",
            roles=["wdr-reader"],
            scopes=["Study:9B2C3F48-2941-2F8F-4D35-7D117D5C6F72"],
            expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    subject: str = Field(..., min_length=1, description="Caller identity")
    roles: Tuple[str, ...] = Field(default=(), description="Role ids held by the caller")
    scopes: Tuple[str, ...] = Field(
        default=(), description="Explicit data-access grants, in assignment order"
    )
    issued_at: Optional[datetime] = Field(None, description="When the credential was issued")
    not_before: Optional[datetime] = Field(None, description="Start of the validity window")
    expires_at: Optional[datetime] = Field(None, description="End of the validity window")
    disabled: bool = Field(default=False, description="Explicitly disabled by an operator")
    verified: bool = Field(default=True, description="Signature and structure check passed")

    @field_validator("issued_at", "not_before", "expires_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive timestamps as UTC."""
        return _as_utc(v)

    def is_expired(self, now: datetime) -> bool:
        """Check if the validity window has elapsed."""
        if self.expires_at is None:
            return False
        return now >= self.expires_at

    def is_not_yet_valid(self, now: datetime) -> bool:
        if self.not_before is None:
            return False
        return now < self.not_before


class RoleGrant(BaseModel):
    """Capability tokens granted by holding a role."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    role_id: str = Field(..., min_length=1)
    capabilities: Tuple[str, ...] = Field(default=())


class AuthorizationResult(BaseModel):
    """
    Permitted tokens and AuthState for one evaluation.

    ``capabilities`` holds the role-derived capability tokens on their own;
    they also lead ``tokens``. A negative ``auth_state`` always comes with
    empty token lists.
    """

    model_config = ConfigDict(frozen=True)

    tokens: Tuple[str, ...] = Field(default=())
    auth_state: AuthState
    capabilities: Tuple[str, ...] = Field(default=())

    @model_validator(mode="after")
    def check_negative_state_is_empty(self) -> "AuthorizationResult":
        if self.auth_state.is_negative and (self.tokens or self.capabilities):
            raise ValueError(f"{self.auth_state.name} result must not carry tokens")
        return self

    @classmethod
    def denied(cls, auth_state: AuthState) -> "AuthorizationResult":
        return cls(tokens=(), auth_state=auth_state)

    @property
    def authenticated(self) -> bool:
        return self.auth_state == AuthState.AUTHENTICATED

    def as_tuple(self) -> Tuple[List[str], int]:
        """Return ``(tokens, auth_state)`` with plain list/int values."""
        return list(self.tokens), int(self.auth_state)

    def to_wire(self) -> Dict[str, Any]:
        """UJMW response wrapper: return value plus the ``authState`` out-argument."""
        return {"return": list(self.tokens), "authState": int(self.auth_state)}


class AuthorizationEvent(BaseModel):
    """Audit record of a single evaluation."""

    model_config = ConfigDict(frozen=True)

    subject: Optional[str] = Field(None, description="Credential subject, if presented")
    auth_state: AuthState
    tokens: Tuple[str, ...] = Field(default=())
    dropped_capabilities: Tuple[str, ...] = Field(default=())
    dropped_scopes: Tuple[str, ...] = Field(default=())
    evaluated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
