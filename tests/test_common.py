import json

import pytest
from aiohttp import test_utils, web

from ibis_indexer.api.common import SERVER_KEY, error_response, get_server, json_response
from ibis_indexer.api.query import Filter, OrderDir


def test_json_response_round_trip():
    payload = {"data": [{"block_number": 102}], "count": 1}
    response = json_response(201, payload)
    assert response.status == 201
    assert response.content_type == "application/json"
    assert json.loads(response.body) == payload


def test_json_response_ends_with_newline():
    response = json_response(200, {"status": "ok"})
    assert response.body.endswith(b"\n")


def test_json_response_encodes_dataclasses_and_enums():
    response = json_response(200, {"filters": [Filter("a", "eq", "1")], "dir": OrderDir.ASC})
    decoded = json.loads(response.body)
    assert decoded["dir"] == "asc"
    assert decoded["filters"] == [{"field": "a", "operator": "eq", "value": "1"}]


def test_json_response_rejects_unknown_objects():
    with pytest.raises(TypeError):
        json_response(200, {"value": object()})


def test_error_response():
    response = error_response(404, "table not found")
    assert response.status == 404
    assert json.loads(response.body) == {"error": "table not found"}


def test_get_server_returns_attached_object():
    app = web.Application()
    marker = object()
    app[SERVER_KEY] = marker
    request = test_utils.make_mocked_request("GET", "/", app=app)
    assert get_server(request) is marker


def test_get_server_without_server():
    request = test_utils.make_mocked_request("GET", "/", app=web.Application())
    with pytest.raises(RuntimeError):
        get_server(request)