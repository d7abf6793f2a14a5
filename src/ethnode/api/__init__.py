"""Node status client"""

from .client import APIError, BeaconAPI, Client, ExecutionRPC, RPCError

__all__ = ["APIError", "RPCError", "Client", "ExecutionRPC", "BeaconAPI"]
