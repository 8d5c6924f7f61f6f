"""Application wiring for the JSON-RPC endpoint and the MCP tools."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from mcp.server.fastmcp import FastMCP
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .api.jsonrpc import handle_payload
from .api.tools import register_tools
from .error_handlers import install_error_handlers
from .openrpc.document import DiscoverOptions
from .rpc.server import RPCServer
from .utils.errors import DiscoveryError, ErrorCode, SchemaMutationError, make_error
from .utils.logging import configure_root

MCP_SERVER = FastMCP("rpcdoc")
_RPC_SERVER: Optional[RPCServer] = None
_CONFIGURED = False

logger = logging.getLogger("rpcdoc.app")


def set_rpc_server(server: RPCServer) -> None:
    """Select the registry served by the HTTP app and the MCP tools."""

    global _RPC_SERVER
    _RPC_SERVER = server


def _rpc_server_factory() -> RPCServer:
    global _RPC_SERVER
    if _RPC_SERVER is None:
        _RPC_SERVER = RPCServer(options=DiscoverOptions.from_env())
    return _RPC_SERVER


def configure() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return
    configure_root()
    register_tools(MCP_SERVER, rpc_server_factory=_rpc_server_factory)
    _CONFIGURED = True


def build_api_app(
    server_factory: Callable[[], RPCServer] = _rpc_server_factory,
    *,
    debug: bool = False,
) -> Starlette:
    async def rpc(request: Request) -> Response:
        payload = await request.json()
        response = await handle_payload(server_factory(), payload)
        if response is None:
            return Response(status_code=204)
        return JSONResponse(response)

    async def openrpc_document(_: Request) -> JSONResponse:
        try:
            payload = server_factory().discoverer.payload()
        except (DiscoveryError, SchemaMutationError) as exc:
            logger.warning("openrpc.document_failed", extra={"error": str(exc)})
            return JSONResponse(
                {"error": make_error(ErrorCode.DISCOVERY_FAILED, data=str(exc))},
                status_code=500,
            )
        return JSONResponse(payload)

    async def state(_: Request) -> JSONResponse:
        server = server_factory()
        methods = server.methods()
        return JSONResponse(
            {
                "methods": len(methods),
                "modules": server.modules(),
                "raw_document": server.discoverer.raw_document() is not None,
                "last_discovery": (
                    server.discoverer.document().info.version
                    if server.discoverer.document() is not None
                    else None
                ),
            }
        )

    routes = [
        Route("/", rpc, methods=["POST"], name="jsonrpc"),
        Route("/openrpc.json", openrpc_document, methods=["GET"], name="openrpc"),
        Route("/state", state, methods=["GET"], name="state"),
    ]
    app = Starlette(debug=debug, routes=routes)
    install_error_handlers(app)
    return app


def create_app() -> Starlette:
    """Factory compatible with ``uvicorn --factory``."""

    configure()
    api_app = build_api_app()
    sse_app = MCP_SERVER.sse_app()
    api_app.router.routes.extend(sse_app.routes)
    return api_app


__all__ = [
    "MCP_SERVER",
    "build_api_app",
    "configure",
    "create_app",
    "set_rpc_server",
]
