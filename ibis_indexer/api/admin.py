"""Admin endpoints for registering and managing contracts at runtime."""

from __future__ import annotations

import functools
import hmac
import json
from collections.abc import Awaitable, Callable
from typing import Any

from aiohttp import web

from .common import error_response, get_server, json_response

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

_NO_ENGINE = "dynamic registration not available"


class _BodyError(ValueError):
    """The request body is not a usable contract description."""


def admin_auth(handler: Handler) -> Handler:
    """Require the ``X-Admin-Key`` header when an admin key is configured."""

    @functools.wraps(handler)
    async def wrapper(request: web.Request) -> web.StreamResponse:
        server = get_server(request)
        expected = getattr(getattr(server, "settings", None), "admin_key", "") or ""
        if expected:
            given = request.headers.get("X-Admin-Key", "")
            if not hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8")):
                return error_response(401, "invalid or missing admin key")
        return await handler(request)

    return wrapper


async def _read_contract(request: web.Request) -> dict[str, Any]:
    raw = await request.read()
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise _BodyError(f"invalid request body: {exc}") from exc
    if not isinstance(body, dict):
        raise _BodyError("invalid request body: expected a JSON object")
    for key in ("name", "address"):
        if not isinstance(body.get(key, ""), str):
            raise _BodyError(f"invalid request body: {key} must be a string")
    return body


async def handle_admin_register_contract(request: web.Request) -> web.Response:
    """POST /v1/admin/contracts: register a new contract with the engine."""
    engine = get_server(request).engine
    if engine is None:
        return error_response(503, _NO_ENGINE)
    try:
        contract = await _read_contract(request)
    except _BodyError as exc:
        return error_response(400, str(exc))
    if not contract.get("name"):
        return error_response(400, "contract name is required")
    if not contract.get("address"):
        return error_response(400, "contract address is required")
    try:
        await engine.register_contract(contract)
    except Exception as exc:
        return error_response(500, f"registration failed: {exc}")
    return json_response(
        201,
        {"status": "registered", "name": contract["name"], "address": contract["address"]},
    )


async def handle_admin_deregister_contract(request: web.Request) -> web.Response:
    """DELETE /v1/admin/contracts/{name}: remove a contract, optionally its tables."""
    engine = get_server(request).engine
    if engine is None:
        return error_response(503, _NO_ENGINE)
    name = request.match_info.get("name", "")
    if not name:
        return error_response(400, "contract name is required")
    drop_tables = request.query.get("drop_tables") == "true"
    try:
        await engine.deregister_contract(name, drop_tables)
    except Exception as exc:
        return error_response(500, f"deregistration failed: {exc}")
    return json_response(
        200, {"status": "deregistered", "name": name, "drop_tables": drop_tables}
    )


async def handle_admin_list_contracts(request: web.Request) -> web.Response:
    """GET /v1/admin/contracts: every contract the engine knows."""
    engine = get_server(request).engine
    if engine is None:
        return error_response(503, _NO_ENGINE)
    contracts = list(engine.contracts())
    return json_response(200, {"contracts": contracts, "count": len(contracts)})


async def handle_admin_update_contract(request: web.Request) -> web.Response:
    """PUT /v1/admin/contracts/{name}: replace an existing contract's settings."""
    engine = get_server(request).engine
    if engine is None:
        return error_response(503, _NO_ENGINE)
    name = request.match_info.get("name", "")
    if not name:
        return error_response(400, "contract name is required")
    if engine.find_contract(name) is None:
        return error_response(404, f"contract not found: {name}")
    try:
        contract = await _read_contract(request)
    except _BodyError as exc:
        return error_response(400, str(exc))
    try:
        await engine.update_contract(name, contract)
    except Exception as exc:
        return error_response(500, f"update failed: {exc}")
    return json_response(200, {"status": "updated", "name": name})