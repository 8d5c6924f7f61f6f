from __future__ import annotations

import pytest
from starlette.applications import Starlette
from starlette.testclient import TestClient

from rpcdoc.app import build_api_app, create_app, set_rpc_server
from rpcdoc.tests.fixtures import sample_api
from rpcdoc.tests.fixtures.sample_api import build_server
from rpcdoc.utils.errors import SchemaMutationError


@pytest.fixture()
def rpc_server():
    return build_server()


@pytest.fixture()
def client(rpc_server):
    with TestClient(build_api_app(lambda: rpc_server)) as c:
        yield c


def _request(method, params=None, request_id=1):
    return {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params or []}


def test_single_call(client):
    r = client.post("/", json=_request("foo_bar", ["0x2a"]))
    assert r.status_code == 200
    assert r.json() == {"jsonrpc": "2.0", "id": 1, "result": "42"}


def test_rpc_discover_over_http(client):
    r = client.post("/", json=_request("rpc_discover"))
    body = r.json()
    assert body["result"]["openrpc"] == "1.2.4"
    names = [method["name"] for method in body["result"]["methods"]]
    assert "chain_get_balance" in names
    assert names == sorted(names)


def test_unknown_method(client):
    r = client.post("/", json=_request("eth_nothing"))
    assert r.status_code == 200
    assert r.json()["error"]["code"] == -32601


def test_batch_mixes_results_errors_and_notifications(client):
    notification = {"jsonrpc": "2.0", "method": "notify", "params": ["hi"]}
    r = client.post("/", json=[_request("chain_block_number"), notification, "bogus"])
    body = r.json()
    assert len(body) == 2
    assert body[0] == {"jsonrpc": "2.0", "id": 1, "result": "0x10"}
    assert body[1]["id"] is None
    assert body[1]["error"]["code"] == -32600


def test_empty_batch_is_invalid(client):
    r = client.post("/", json=[])
    assert r.status_code == 200
    assert r.json()["error"]["code"] == -32600


def test_notification_has_no_body(client):
    r = client.post("/", json={"jsonrpc": "2.0", "method": "notify", "params": ["hi"]})
    assert r.status_code == 204
    assert r.content == b""


def test_malformed_json_is_a_parse_error(client):
    r = client.post("/", content=b"{", headers={"content-type": "application/json"})
    assert r.status_code == 400
    body = r.json()
    assert body["error"]["code"] == -32700
    assert body["id"] is None


def test_discovery_failure_is_reported(rpc_server, client):
    rpc_server.register_function("apply", sample_api.apply)
    r = client.post("/", json=_request("rpc_discover"))
    error = r.json()["error"]
    assert error["code"] == -32000
    assert error["message"] == "OpenRPC discovery failed"
    assert "apply" in error["data"]

    r = client.get("/openrpc.json")
    assert r.status_code == 500
    assert r.json()["error"]["code"] == -32000


def test_openrpc_document_and_state(client):
    state = client.get("/state").json()
    assert state["methods"] == 13
    assert state["last_discovery"] is None
    assert state["raw_document"] is False

    r = client.get("/openrpc.json")
    assert r.status_code == 200
    document = r.json()
    assert document["info"]["title"] == "Sample chain API"

    state = client.get("/state").json()
    assert state["last_discovery"] == document["info"]["version"]


def test_create_app_serves_the_selected_registry():
    set_rpc_server(build_server())
    app = create_app()
    assert isinstance(app, Starlette)
    with TestClient(app) as c:
        r = c.post("/", json=_request("rpc_modules"))
        assert r.json()["result"]["chain"] == "1.0"


def test_mutation_failure_is_reported(rpc_server, client, monkeypatch):
    def fail():
        raise SchemaMutationError("cannot expand external reference 'other.json#/x'")

    monkeypatch.setattr(rpc_server.discoverer, "payload", fail)
    r = client.get("/openrpc.json")
    assert r.status_code == 500
    assert r.json()["error"]["code"] == -32000
    assert "other.json" in r.json()["error"]["data"]

    error = client.post("/", json=_request("rpc_discover")).json()["error"]
    assert error["code"] == -32000
