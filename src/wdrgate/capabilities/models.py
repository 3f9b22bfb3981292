"""
Pydantic models for capability definitions.

A capability is a coarse-grained permission to use an entire API feature
area (for example, access to the workflow definition store). Capability ids
are opaque, stable tokens: once published, removing or renaming one is a
breaking protocol change.
"""

from __future__ import annotations

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Token prefixes used when capability and scope tokens share one list.
API_PREFIX = "API"
STUDY_PREFIX = "Study"
TOKEN_SEPARATOR = ":"


class WdrCapabilities:
    """Capability ids published by the WDR protocol."""

    WDR_STORE_ACCESS = "WdrStoreAccess"
    FHIR_QUESTIONAIRE_STORE_ACCESS = "FhirQuestionaireStoreAccess"


class CapabilityDefinition(BaseModel):
    """
    A published capability and its human-readable semantics.

    Example:
        definition = CapabilityDefinition(
            id="WdrStoreAccess",
            description="Access to the workflow definition store",
        )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1, description="Stable capability token")
    description: str = Field(default="", description="What this capability grants")


BUILT_IN_CAPABILITIES: List[CapabilityDefinition] = [
    CapabilityDefinition(
        id=WdrCapabilities.WDR_STORE_ACCESS,
        description="Access to the workflow definition store",
    ),
    CapabilityDefinition(
        id=WdrCapabilities.FHIR_QUESTIONAIRE_STORE_ACCESS,
        description="Access to the FHIR questionnaire store",
    ),
]


def split_token(token: str) -> Tuple[str, str]:
    """
    Split a permitted token into (kind, value) by prefix convention.

    ``"Study:9B2C..."`` gives ``("Study", "9B2C...")``. A token without a
    prefix is a capability and gives ``("API", token)``.
    """
    kind, sep, value = token.partition(TOKEN_SEPARATOR)
    if not sep:
        return API_PREFIX, token
    return kind, value
