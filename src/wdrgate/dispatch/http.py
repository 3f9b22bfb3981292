"""
FastAPI transport adapter.

Exposes every registered contract as call-based endpoints:

    POST /{route_prefix}/{Operation}   body: UJMW request wrapper
    GET  /{route_prefix}/{Operation}   for operations without arguments

Example:
    from fastapi import FastAPI
    from wdrgate.dispatch.http import create_contract_router

    app = FastAPI()
    app.include_router(create_contract_router(gateway.endpoint))
"""

from __future__ import annotations

import json
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from wdrgate.dispatch.endpoint import ContractEndpoint

__all__ = ["create_contract_router"]


async def _read_arguments(request: Request) -> Dict[str, Any]:
    if request.method != "POST":
        return dict(request.query_params)
    raw = await request.body()
    if not raw.strip():
        return {}
    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object")
    return payload


def create_contract_router(endpoint: ContractEndpoint, prefix: str = "") -> APIRouter:
    """Create a FastAPI router dispatching to ``endpoint``."""
    router = APIRouter(prefix=prefix)

    @router.api_route("/{call_path:path}", methods=["GET", "POST"])
    async def dispatch(call_path: str, request: Request) -> JSONResponse:
        """Dispatch ``<route_prefix>/<Operation>``."""
        route_prefix, _, operation = call_path.strip("/").rpartition("/")
        if not route_prefix or not operation:
            return JSONResponse(status_code=404, content={"fault": f"No route for '{call_path}'"})

        try:
            arguments = await _read_arguments(request)
        except ValueError as e:
            return JSONResponse(status_code=400, content={"fault": f"Malformed request: {e}"})

        outcome = endpoint.invoke(
            route_prefix,
            operation,
            arguments,
            authorization=request.headers.get("authorization"),
        )
        return JSONResponse(status_code=outcome.status, content=outcome.body)

    return router
