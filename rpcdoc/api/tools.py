"""MCP tool surface for OpenRPC discovery."""
from __future__ import annotations

import logging
from typing import Callable, Dict

from mcp.server.fastmcp import FastMCP

from ..rpc.server import RPCServer
from ..utils.errors import DiscoveryError, ErrorCode, SchemaMutationError
from ..utils.logging import discovery_scope
from ._shared import envelope_error, envelope_ok
from .validators import validate_document


def register_tools(server: FastMCP, *, rpc_server_factory: Callable[[], RPCServer]) -> None:
    logger = logging.getLogger("rpcdoc.mcp.tools")

    @server.tool()
    def rpc_discover() -> Dict[str, object]:
        """Return the OpenRPC document describing the served JSON-RPC API."""

        rpc_server = rpc_server_factory()
        try:
            with discovery_scope("rpc_discover", logger=logger, extra={"tool": "rpc_discover"}):
                payload = rpc_server.discoverer.payload()
        except (DiscoveryError, SchemaMutationError) as exc:
            return envelope_error(ErrorCode.DISCOVERY_FAILED, str(exc))

        valid, errors = validate_document(payload)
        if not valid:
            return envelope_error(ErrorCode.INTERNAL, "; ".join(errors))
        return envelope_ok(payload)

    @server.tool()
    def describe_method(name: str) -> Dict[str, object]:
        """Describe a single registered JSON-RPC method."""

        rpc_server = rpc_server_factory()
        values = rpc_server.methods().get(name)
        if not values:
            return envelope_error(
                ErrorCode.METHOD_NOT_FOUND, f"the method {name} does not exist"
            )
        try:
            with discovery_scope(
                "describe_method",
                logger=logger,
                extra={"tool": "describe_method", "rpc_method": name},
            ):
                method = rpc_server.discoverer.get_method(name, values)
        except DiscoveryError as exc:
            return envelope_error(ErrorCode.DISCOVERY_FAILED, str(exc))
        return envelope_ok(method.to_dict())


__all__ = ["register_tools"]
