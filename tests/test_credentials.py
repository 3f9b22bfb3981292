"""Tests for credential-validation collaborators."""

import pytest
import yaml

from wdrgate.auth import (
    AuthState,
    Credential,
    CredentialFileStore,
    MemoryCredentialStore,
    extract_bearer_token,
)
from wdrgate.errors import CredentialFormatError

from conftest import STUDY_SCOPE


class TestBearerExtraction:
    """Test Authorization header parsing."""

    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_missing_header(self, header):
        assert extract_bearer_token(header) is None

    @pytest.mark.parametrize("header", ["Bearer abc", "bearer abc", "  Bearer   abc  "])
    def test_bearer(self, header):
        assert extract_bearer_token(header) == "abc"

    @pytest.mark.parametrize("header", ["Basic dXNlcjpwYXNz", "Bearer", "Bearer a b", "abc"])
    def test_malformed(self, header):
        with pytest.raises(CredentialFormatError):
            extract_bearer_token(header)


class TestMemoryStore:
    """Test the in-memory token table."""

    def test_resolve_known(self, token_store, valid_credential):
        assert token_store.resolve("valid-token") == valid_credential

    def test_resolve_none(self, token_store):
        """No token presented means no credential."""
        assert token_store.resolve(None) is None

    def test_resolve_unknown_is_unverified(self, token_store, authorizer):
        """An unknown token is presented but invalid."""
        credential = token_store.resolve("forged")
        assert credential is not None
        assert credential.verified is False
        assert authorizer.evaluate(credential).auth_state == AuthState.AUTH_INVALID

    def test_resolve_header(self, token_store):
        assert token_store.resolve_header("Bearer valid-token").subject == "alice@example.org"
        assert token_store.resolve_header(None) is None

    def test_add_mapping(self):
        store = MemoryCredentialStore()
        store.add("t", {"subject": "dave", "roles": ["wdr-reader"]})
        assert store.resolve("t") == Credential(subject="dave", roles=("wdr-reader",))

    def test_add_malformed(self):
        store = MemoryCredentialStore()
        with pytest.raises(CredentialFormatError):
            store.add("t", {"roles": ["wdr-reader"]})
        with pytest.raises(CredentialFormatError):
            store.add("t", ["not", "a", "mapping"])

    def test_remove(self, token_store):
        assert token_store.remove("valid-token") is True
        assert token_store.remove("valid-token") is False
        assert token_store.resolve("valid-token").verified is False


class TestFileStore:
    """Test the YAML token table."""

    def _write(self, tmp_path, data):
        path = tmp_path / "tokens.yaml"
        path.write_text(yaml.safe_dump(data))
        return path

    def test_load(self, tmp_path):
        path = self._write(tmp_path, {
            "tokens": {
                "abc": {
                    "subject": "alice",
                    "roles": ["wdr-reader"],
                    "scopes": [STUDY_SCOPE],
                    "expires_at": "2030-01-01T00:00:00Z",
                },
            },
        })
        store = CredentialFileStore(path)
        credential = store.resolve("abc")
        assert credential.subject == "alice"
        assert credential.scopes == (STUDY_SCOPE,)
        assert credential.expires_at.year == 2030
        assert len(store) == 1

    def test_empty_file(self, tmp_path):
        path = tmp_path / "tokens.yaml"
        path.write_text("")
        assert len(CredentialFileStore(path)) == 0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CredentialFileStore(tmp_path / "missing.yaml")

    def test_malformed_entry(self, tmp_path):
        path = self._write(tmp_path, {"tokens": {"abc": {"roles": "wdr-reader"}}})
        with pytest.raises(CredentialFormatError):
            CredentialFileStore(path)

    def test_tokens_not_mapping(self, tmp_path):
        path = self._write(tmp_path, {"tokens": ["abc"]})
        with pytest.raises(CredentialFormatError):
            CredentialFileStore(path)
