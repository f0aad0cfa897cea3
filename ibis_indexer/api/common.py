"""JSON responses and access to the server attached to the web application."""

from __future__ import annotations

import dataclasses
import enum
import json
from collections.abc import Mapping
from typing import Any

from aiohttp import web

SERVER_KEY: web.AppKey[Any] = web.AppKey("ibis_server")


def _json_default(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def json_response(status: int, payload: Any) -> web.Response:
    """A JSON response with the given status code."""
    body = json.dumps(payload, default=_json_default) + "\n"
    return web.Response(status=status, body=body.encode("utf-8"), content_type="application/json")


def error_response(status: int, message: str) -> web.Response:
    """A JSON ``{"error": message}`` response."""
    return json_response(status, {"error": message})


def get_server(request: web.Request) -> Any:
    """The server object attached to the request's application."""
    try:
        return request.app[SERVER_KEY]
    except KeyError:
        raise RuntimeError("application has no server attached") from None