"""Tests for the node API client"""

import json

import httpx
import pytest

from ethnode.api.client import APIError, Client, RPCError, check_endpoint
from ethnode.config.deployment import DeploymentConfig


def make_transport(routes):
    """Mock transport answering JSON-RPC by method and REST by path"""

    def handler(request):
        if request.method == "POST":
            method = json.loads(request.content)["method"]
            body = routes[method]
        else:
            body = routes.get(request.url.path)
            if body is None:
                return httpx.Response(404, text="not found")
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json=body)

    return httpx.MockTransport(handler)


@pytest.fixture
def node():
    routes = {
        "eth_syncing": {"jsonrpc": "2.0", "id": 1, "result": {"currentBlock": "0x10", "highestBlock": "0x20"}},
        "net_peerCount": {"jsonrpc": "2.0", "id": 2, "result": "0x19"},
        "eth_blockNumber": {"jsonrpc": "2.0", "id": 3, "result": "0x20"},
        "/eth/v1/node/syncing": {"data": {"head_slot": "100", "sync_distance": "5", "is_syncing": True}},
        "/eth/v1/node/peer_count": {"data": {"connected": "12"}},
    }
    return Client(transport=make_transport(routes))


class TestExecutionRPC:
    """Test JSON-RPC calls"""

    def test_syncing(self, node):
        assert node.execution.syncing() == {"currentBlock": 16, "highestBlock": 32}

    def test_synced(self):
        client = Client(transport=make_transport({"eth_syncing": {"jsonrpc": "2.0", "id": 1, "result": False}}))
        assert client.execution.syncing() is False

    def test_peer_count(self, node):
        assert node.execution.peer_count() == 25

    def test_rpc_error(self):
        error = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "method not found"}}
        client = Client(transport=make_transport({"eth_syncing": error}))

        with pytest.raises(RPCError) as exc:
            client.execution.syncing()
        assert exc.value.code == -32601


class TestBeaconAPI:
    """Test beacon REST calls"""

    def test_syncing(self, node):
        assert node.beacon.syncing()["head_slot"] == "100"

    def test_http_error(self):
        client = Client(transport=make_transport({}))
        with pytest.raises(APIError):
            client.beacon.syncing()

    def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = Client(transport=httpx.MockTransport(refuse))
        with pytest.raises(APIError):
            client.beacon.syncing()


def test_from_config():
    config = DeploymentConfig()
    config.execution.http_port = 18545

    client = Client.from_config(config, host="10.0.0.5")

    assert client.execution_url == "http://10.0.0.5:18545"
    assert client.beacon_url == "http://10.0.0.5:3500"


def test_check_endpoint():
    transport = make_transport({"/eth/v1/beacon/genesis": {"data": {"genesis_time": "1655733600"}}})
    assert check_endpoint("https://checkpoint.example.org", transport=transport)
    assert not check_endpoint("https://checkpoint.example.org/", transport=make_transport({}))
