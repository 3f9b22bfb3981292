"""
Centralized configuration for WdrGate.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (WDRGATE_*)
3. .env file
4. Default values

Example:
    from wdrgate.config import get_config

    config = get_config()
    print(config.oauth_token_request_url)  # From WDRGATE_OAUTH_TOKEN_REQUEST_URL or None

    # Override at runtime
    config = get_config(unknown_scope_policy="drop", known_scopes=["Study:abc"])
"""

from __future__ import annotations

import os
import re
from typing import Dict, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wdrgate.auth.models import UnknownScopePolicy
from wdrgate.capabilities.models import WdrCapabilities

_SEMVER = re.compile(r"^\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.-]+)?$")


def _default_role_grants() -> Dict[str, List[str]]:
    return {
        "wdr-reader": [WdrCapabilities.WDR_STORE_ACCESS],
        "fhir-reader": [WdrCapabilities.FHIR_QUESTIONAIRE_STORE_ACCESS],
        "wdr-admin": [
            WdrCapabilities.WDR_STORE_ACCESS,
            WdrCapabilities.FHIR_QUESTIONAIRE_STORE_ACCESS,
        ],
    }


class WdrGateConfig(BaseSettings):
    """
    Central configuration for WdrGate.

    All settings can be overridden via environment variables
    prefixed with WDRGATE_.

    Example:
        export WDRGATE_OAUTH_TOKEN_REQUEST_URL=https://login.example.org/ciba
        export WDRGATE_UNKNOWN_SCOPE_POLICY=drop
    """

    model_config = SettingsConfigDict(
        env_prefix="WDRGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Protocol
    api_version: str = Field(
        default="2.0.0",
        description="Semantic version of the implemented protocol revision",
    )
    route_base: str = Field(
        default="wdr/v2",
        description="Route prefix all contracts are registered below",
    )

    # External endpoints (opaque to the core)
    oauth_token_request_url: Optional[str] = Field(
        default=None,
        description="Login URL for token-based auth; unset means not applicable",
    )
    public_service_url: Optional[str] = Field(
        default=None,
        description="Public base URL of this service",
    )
    subscription_storage_directory: Optional[str] = Field(
        default=None,
        description="Directory for persisted subscriptions",
    )

    # Authorization
    unknown_scope_policy: UnknownScopePolicy = Field(
        default=UnknownScopePolicy.PASS_THROUGH,
        description="Keep or drop scope tokens not listed in known_scopes",
    )
    known_scopes: List[str] = Field(
        default_factory=list,
        description="Known data scopes (used when unknown_scope_policy=drop)",
    )
    role_grants: Dict[str, List[str]] = Field(
        default_factory=_default_role_grants,
        description="Capability tokens granted per role",
    )
    tokens_file: Optional[str] = Field(
        default=None,
        description="YAML token table for the file credential store",
    )
    audit_enabled: bool = Field(
        default=True,
        description="Record authorization decisions on the audit log",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for WdrGate",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format (json for aggregation, text for console)",
    )

    @field_validator("api_version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Require a dotted semantic version."""
        if not _SEMVER.match(v):
            raise ValueError(f"'{v}' is not a semantic version (MAJOR.MINOR.PATCH)")
        return v

    @field_validator("route_base")
    @classmethod
    def strip_route(cls, v: str) -> str:
        return v.strip().strip("/")

    @field_validator("subscription_storage_directory", "tokens_file")
    @classmethod
    def expand_path(cls, v: Optional[str]) -> Optional[str]:
        """Expand ~ and environment variables in paths."""
        if v is None:
            return v
        return os.path.expanduser(os.path.expandvars(v))

    def route(self, subroute: str) -> str:
        """Full route prefix for a contract subroute."""
        subroute = subroute.strip("/")
        if not self.route_base:
            return subroute
        return f"{self.route_base}/{subroute}"


# Global singleton
_config: Optional[WdrGateConfig] = None


def get_config(**overrides) -> WdrGateConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = WdrGateConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
