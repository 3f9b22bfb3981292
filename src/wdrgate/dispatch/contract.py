"""
Helpers for interface-shaped service contracts.

A contract is a class (usually an ABC) whose public methods are its
remote-callable operations. On the wire, operations use PascalCase names
(``GetApiVersion``) and arguments use camelCase names (``studyUid``); in
Python both are snake_case.
"""

from __future__ import annotations

import inspect
import re
from typing import Any, Dict

# Operations declaring a parameter with this name receive the caller's
# resolved credential instead of a wire argument.
CREDENTIAL_PARAMETER = "credential"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake_case(name: str) -> str:
    """``GetApiVersion`` -> ``get_api_version``; snake_case passes through."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def to_wire_name(method_name: str) -> str:
    """``get_api_version`` -> ``GetApiVersion``."""
    return "".join(part[:1].upper() + part[1:] for part in method_name.split("_") if part)


def contract_operations(contract: Any) -> Dict[str, str]:
    """
    Map wire operation names to method names for a contract.

    Only public functions are operations; inherited ``object`` members and
    names starting with an underscore are skipped.
    """
    target = contract if inspect.isclass(contract) else type(contract)
    operations: Dict[str, str] = {}
    for name, member in inspect.getmembers(target, inspect.isfunction):
        if name.startswith("_"):
            continue
        operations[to_wire_name(name)] = name
    return operations


def resolve_operation(contract: Any, operation: str) -> str:
    """
    Find the method name for a wire operation name.

    Matching ignores case and underscores, so ``GetOAuthTokenRequestUrl``,
    ``GetOauthTokenRequestUrl`` and ``get_oauth_token_request_url`` all
    resolve to the same method. Returns an empty string if the contract has
    no such operation.
    """
    wanted = operation.replace("_", "").lower()
    for wire_name, method_name in contract_operations(contract).items():
        if wire_name.lower() == wanted:
            return method_name
    return ""
