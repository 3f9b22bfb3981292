"""
Tests for the capability registry.

Tests cover:
- Registration and membership
- Insertion ordering
- Duplicate rejection
- Sealing
- Token prefix convention
"""

import pytest

from wdrgate.capabilities import (
    BUILT_IN_CAPABILITIES,
    CapabilityDefinition,
    CapabilityRegistry,
    WdrCapabilities,
    split_token,
)
from wdrgate.errors import (
    DuplicateCapabilityError,
    InvalidCapabilityError,
    RegistrationError,
    RegistryFrozenError,
    UnknownCapabilityError,
)


class TestRegistration:
    """Test capability registration."""

    @pytest.fixture
    def registry(self):
        return CapabilityRegistry()

    def test_register_then_exists(self, registry):
        """A registered capability exists."""
        registry.register("WdrStoreAccess")
        assert registry.exists("WdrStoreAccess") is True

    def test_register_twice_fails(self, registry):
        """Registering the same id twice fails on the second call."""
        registry.register("WdrStoreAccess")
        with pytest.raises(DuplicateCapabilityError) as exc_info:
            registry.register("WdrStoreAccess")
        assert exc_info.value.capability_id == "WdrStoreAccess"
        assert registry.list_all() == ["WdrStoreAccess"]

    def test_match_is_case_sensitive(self, registry):
        """Ids differing only in case are distinct."""
        registry.register("WdrStoreAccess")
        registry.register("wdrstoreaccess")
        assert registry.exists("WDRSTOREACCESS") is False
        assert len(registry) == 2

    def test_unknown_does_not_exist(self, registry):
        assert registry.exists("WorkflowConsume") is False
        assert "WorkflowConsume" not in registry

    def test_list_all_keeps_insertion_order(self, registry):
        """Ids are listed in registration order, not sorted."""
        for cap in ["Zeta", "Alpha", "Mid"]:
            registry.register(cap)
        assert registry.list_all() == ["Zeta", "Alpha", "Mid"]

    def test_describe(self, registry):
        registry.register("WdrStoreAccess", "Store access")
        definition = registry.describe("WdrStoreAccess")
        assert definition == CapabilityDefinition(id="WdrStoreAccess", description="Store access")

    def test_describe_unknown(self, registry):
        with pytest.raises(UnknownCapabilityError):
            registry.describe("Nope")

    def test_empty_id_rejected(self, registry):
        """Validation failures stay inside the registration error family."""
        with pytest.raises(InvalidCapabilityError) as exc_info:
            registry.register("")
        assert isinstance(exc_info.value, RegistrationError)
        assert len(registry) == 0

    def test_non_string_id_rejected(self, registry):
        with pytest.raises(InvalidCapabilityError):
            registry.register(42)


class TestSealing:
    """Test the single initialization phase."""

    def test_register_after_seal_fails(self):
        registry = CapabilityRegistry()
        registry.register("WdrStoreAccess")
        registry.seal()

        with pytest.raises(RegistryFrozenError):
            registry.register("FhirQuestionaireStoreAccess")
        assert registry.list_all() == ["WdrStoreAccess"]
        assert registry.sealed is True

    def test_seal_is_idempotent(self):
        registry = CapabilityRegistry()
        registry.seal()
        registry.seal()
        assert registry.sealed is True

    def test_list_all_returns_copy(self):
        """Callers cannot mutate the registry through list_all."""
        registry = CapabilityRegistry.with_builtin_capabilities(seal=True)
        listed = registry.list_all()
        listed.append("Injected")
        assert registry.exists("Injected") is False


class TestBuiltIns:
    """Test published WDR capabilities."""

    def test_builtin_order(self):
        registry = CapabilityRegistry.with_builtin_capabilities()
        assert registry.list_all() == [
            WdrCapabilities.WDR_STORE_ACCESS,
            WdrCapabilities.FHIR_QUESTIONAIRE_STORE_ACCESS,
        ]

    def test_builtin_tokens_are_stable(self):
        """Published tokens are part of the protocol."""
        assert [d.id for d in BUILT_IN_CAPABILITIES] == [
            "WdrStoreAccess",
            "FhirQuestionaireStoreAccess",
        ]

    def test_from_definitions_rejects_duplicates(self):
        definitions = [
            CapabilityDefinition(id="A"),
            CapabilityDefinition(id="A", description="again"),
        ]
        with pytest.raises(DuplicateCapabilityError):
            CapabilityRegistry.from_definitions(definitions)


class TestSplitToken:
    """Test the prefix convention for mixed token lists."""

    def test_study_scope(self):
        assert split_token("Study:9B2C3F48") == ("Study", "9B2C3F48")

    def test_api_prefix(self):
        assert split_token("API:WorkflowConsume") == ("API", "WorkflowConsume")

    def test_bare_capability(self):
        assert split_token("WdrStoreAccess") == ("API", "WdrStoreAccess")
