"""
Pytest configuration and fixtures for WdrGate tests.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Generator

import pytest

from wdrgate.auth import Credential, MemoryCredentialStore, ScopeAuthorizer
from wdrgate.capabilities import CapabilityRegistry
from wdrgate.config import reset_config
from wdrgate.dispatch import ContractDispatchRegistry

STUDY_SCOPE = "Study:9B2C3F48-2941-2F8F-4D35-7D117D5C6F72"
OTHER_STUDY_SCOPE = "Study:0F1E2D3C-4B5A-6978-8796-A5B4C3D2E1F0"

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Isolate each test from WDRGATE_* variables and the config singleton."""
    original: Dict[str, str] = {k: v for k, v in os.environ.items() if k.startswith("WDRGATE_")}
    for key in original:
        del os.environ[key]
    reset_config()

    yield

    reset_config()
    for key in [k for k in os.environ if k.startswith("WDRGATE_")]:
        del os.environ[key]
    os.environ.update(original)


@pytest.fixture(autouse=True)
def clean_logging() -> Generator[None, None, None]:
    """Drop handlers installed by configure_logging during a test."""
    yield
    logger = logging.getLogger("wdrgate")
    for handler in list(logger.handlers):
        if getattr(handler, "_wdrgate_handler", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ============================================================================
# Clock & Credential Fixtures
# ============================================================================


@pytest.fixture
def clock():
    """Fixed clock for validity-window checks."""
    return lambda: NOW


@pytest.fixture
def valid_credential() -> Credential:
    """Reader credential with one study scope."""
    return Credential(
        subject="alice@example.org",
        roles=("wdr-reader",),
        scopes=(STUDY_SCOPE,),
        issued_at=NOW - timedelta(hours=1),
        expires_at=NOW + timedelta(hours=1),
    )


@pytest.fixture
def expired_credential() -> Credential:
    return Credential(
        subject="bob@example.org",
        roles=("wdr-reader",),
        scopes=(STUDY_SCOPE,),
        expires_at=NOW - timedelta(seconds=1),
    )


@pytest.fixture
def disabled_credential() -> Credential:
    return Credential(
        subject="carol@example.org",
        roles=("wdr-admin",),
        disabled=True,
    )


@pytest.fixture
def token_store(valid_credential, expired_credential, disabled_credential) -> MemoryCredentialStore:
    """Token table with one credential per auth outcome."""
    return MemoryCredentialStore({
        "valid-token": valid_credential,
        "expired-token": expired_credential,
        "disabled-token": disabled_credential,
    })


# ============================================================================
# Registry Fixtures
# ============================================================================


@pytest.fixture
def capabilities() -> CapabilityRegistry:
    """Sealed registry with the published WDR capabilities."""
    return CapabilityRegistry.with_builtin_capabilities(seal=True)


@pytest.fixture
def role_grants() -> Dict[str, list]:
    return {
        "wdr-reader": ["WdrStoreAccess"],
        "fhir-reader": ["FhirQuestionaireStoreAccess"],
        "wdr-admin": ["FhirQuestionaireStoreAccess", "WdrStoreAccess"],
        "legacy": ["WorkflowConsume", "WdrStoreAccess"],
    }


@pytest.fixture
def authorizer(capabilities, role_grants, clock) -> ScopeAuthorizer:
    return ScopeAuthorizer(capabilities, role_grants=role_grants, clock=clock)


@pytest.fixture
def dispatch_registry(capabilities, authorizer) -> ContractDispatchRegistry:
    return ContractDispatchRegistry(
        capabilities,
        authorizer,
        api_version="2.0.0",
        oauth_token_request_url="https://login.example.org/ciba",
    )
