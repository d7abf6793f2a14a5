"""HTTP client for the node's execution and beacon APIs"""

import itertools
from typing import Any, Dict, Optional, Union

import httpx


class APIError(Exception):
    """Base exception for API errors"""

    pass


class RPCError(APIError):
    """JSON-RPC call returned an error object"""

    def __init__(self, code: int, message: str):
        super().__init__(f"RPC error {code}: {message}")
        self.code = code


def _hex_to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    return int(value, 16)


class ExecutionRPC:
    """Execution client JSON-RPC (Geth HTTP endpoint)"""

    def __init__(self, client: "Client"):
        self.client = client
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[list] = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }
        response = self.client._post(self.client.execution_url, payload)

        if "error" in response:
            error = response["error"] or {}
            raise RPCError(error.get("code", 0), error.get("message", "unknown error"))

        return response.get("result")

    def syncing(self) -> Union[bool, Dict[str, int]]:
        """False when in sync, else block progress as integers"""
        result = self.call("eth_syncing")
        if not result:
            return False
        return {key: _hex_to_int(value) for key, value in result.items() if isinstance(value, str)}

    def block_number(self) -> int:
        return _hex_to_int(self.call("eth_blockNumber"))

    def peer_count(self) -> int:
        return _hex_to_int(self.call("net_peerCount"))


class BeaconAPI:
    """Beacon node REST API (Prysm gateway or a remote checkpoint provider)"""

    def __init__(self, client: "Client", base_url: Optional[str] = None):
        self.client = client
        self.base_url = (base_url or client.beacon_url).rstrip("/")

    def syncing(self) -> Dict[str, Any]:
        """Get node sync status"""
        return self.client._get(f"{self.base_url}/eth/v1/node/syncing").get("data", {})

    def peer_count(self) -> Dict[str, Any]:
        return self.client._get(f"{self.base_url}/eth/v1/node/peer_count").get("data", {})

    def genesis(self) -> Dict[str, Any]:
        return self.client._get(f"{self.base_url}/eth/v1/beacon/genesis").get("data", {})


class Client:
    """ethnode API client"""

    def __init__(
        self,
        execution_url: str = "http://localhost:8545",
        beacon_url: str = "http://localhost:3500",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.execution_url = execution_url.rstrip("/")
        self.beacon_url = beacon_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

        self.execution = ExecutionRPC(self)
        self.beacon = BeaconAPI(self)

    @classmethod
    def from_config(cls, config, host: str = "localhost", **kwargs) -> "Client":
        return cls(
            execution_url=f"http://{host}:{config.execution.http_port}",
            beacon_url=f"http://{host}:{config.consensus.gateway_port}",
            **kwargs,
        )

    def remote_beacon(self, base_url: str) -> BeaconAPI:
        """Beacon API for another host, e.g. a checkpoint sync provider"""
        return BeaconAPI(self, base_url)

    def _get(self, url: str) -> Any:
        """Execute GET request"""
        return self._request("GET", url)

    def _post(self, url: str, data: Any = None) -> Any:
        """Execute POST request"""
        return self._request("POST", url, json=data)

    def _request(self, method: str, url: str, **kwargs) -> Any:
        """Execute HTTP request"""
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise APIError(f"{method} {url}: {e}") from e

        if response.status_code >= 400:
            raise APIError(f"API error {response.status_code}: {response.text}")

        if response.text:
            try:
                return response.json()
            except ValueError as e:
                raise APIError(f"{method} {url}: invalid JSON response") from e

        return {}


def check_endpoint(url: str, timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None) -> bool:
    """True if ``url`` serves the beacon genesis endpoint"""
    client = Client(timeout=timeout, transport=transport)
    try:
        return bool(client.remote_beacon(url).genesis())
    except APIError:
        return False
