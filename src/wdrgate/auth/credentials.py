"""
Credential-validation collaborators.

The authorizer never parses transport-level credential encodings. A
``CredentialValidator`` turns raw token material taken from a request into a
structured ``Credential`` (or ``None`` when nothing was presented).

Backends:
    MemoryCredentialStore  In-memory token table, for tests and embedding.
    CredentialFileStore    Token table loaded from a YAML file.

File layout:
    tokens:
      3f1c...:
        subject: alice@example.org
        roles: [wdr-reader]
        scopes: ["Study:9B2C3F48-2941-2F8F-4D35-7D117D5C6F72"]
        expires_at: 2030-01-01T00:00:00Z
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from wdrgate.auth.models import Credential
from wdrgate.errors import CredentialFormatError

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"

# Subject reported for tokens no store knows about.
UNKNOWN_SUBJECT = "anonymous"


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    """
    Extract the token from an ``Authorization`` header value.

    Returns ``None`` when the header is missing or blank.

    Raises:
        CredentialFormatError: If the header is not ``Bearer <token>``.
    """
    if header is None or not header.strip():
        return None

    parts = header.split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        raise CredentialFormatError("Authorization header must be 'Bearer <token>'")

    return parts[1]


class CredentialValidator(ABC):
    """Abstract base class for credential validators."""

    @abstractmethod
    def resolve(self, raw_token: Optional[str]) -> Optional[Credential]:
        """
        Resolve raw token material into a credential.

        Returns ``None`` if no token was presented. A token that is presented
        but unknown resolves to an unverified credential.
        """
        pass

    def resolve_header(self, header: Optional[str]) -> Optional[Credential]:
        """Resolve an ``Authorization`` header value."""
        return self.resolve(extract_bearer_token(header))


def _unverified() -> Credential:
    return Credential(subject=UNKNOWN_SUBJECT, verified=False)


def _parse_credential(token: str, data: Any) -> Credential:
    if isinstance(data, Credential):
        return data
    if not isinstance(data, Mapping):
        raise CredentialFormatError(f"Credential entry for token '{token[:6]}...' is not a mapping")
    try:
        return Credential.model_validate(dict(data))
    except ValidationError as e:
        raise CredentialFormatError(f"Malformed credential for token '{token[:6]}...': {e}") from e


class MemoryCredentialStore(CredentialValidator):
    """
    In-memory token table.

    Example:
        store = MemoryCredentialStore({
            "token-1": Credential(subject="alice", roles=["wdr-reader"]),
        })
        store.resolve("token-1").subject  # "alice"
    """

    def __init__(self, tokens: Optional[Mapping[str, Union[Credential, Mapping[str, Any]]]] = None):
        self._tokens: Dict[str, Credential] = {}
        for token, data in (tokens or {}).items():
            self.add(token, data)

    def add(self, token: str, credential: Union[Credential, Mapping[str, Any]]) -> None:
        """Add or replace a token."""
        self._tokens[token] = _parse_credential(token, credential)

    def remove(self, token: str) -> bool:
        """Remove a token. Returns False if not found."""
        return self._tokens.pop(token, None) is not None

    def resolve(self, raw_token: Optional[str]) -> Optional[Credential]:
        if raw_token is None:
            return None
        credential = self._tokens.get(raw_token)
        if credential is None:
            logger.debug("Unknown token presented")
            return _unverified()
        return credential

    def __len__(self) -> int:
        return len(self._tokens)


class CredentialFileStore(MemoryCredentialStore):
    """Token table loaded once from a YAML file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        super().__init__(self._load())
        logger.debug("Loaded %d tokens from %s", len(self), self.path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            raise FileNotFoundError(f"Token file not found: {self.path}")

        with open(self.path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise CredentialFormatError(f"Token file {self.path} must contain a mapping")

        tokens = data.get("tokens", {})
        if not isinstance(tokens, dict):
            raise CredentialFormatError(f"'tokens' in {self.path} must be a mapping")

        return {str(token): entry for token, entry in tokens.items()}
