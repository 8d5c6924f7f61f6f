"""JSON-RPC 2.0 request handling on top of :class:`~rpcdoc.rpc.server.RPCServer`."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from ..rpc.server import RPCServer
from ..utils.errors import (
    DiscoveryError,
    ErrorCode,
    RPCCallError,
    RPCDocError,
    SchemaMutationError,
    make_error,
)
from ..utils.logging import discovery_scope
from ._shared import jsonrpc_error, jsonrpc_result

logger = logging.getLogger("rpcdoc.jsonrpc")

Response = Dict[str, object]


def _is_valid(request: Any) -> bool:
    return (
        isinstance(request, dict)
        and request.get("jsonrpc") == "2.0"
        and isinstance(request.get("method"), str)
        and isinstance(request.get("params", []), (list, dict))
    )


async def handle_request(server: RPCServer, request: Any) -> Optional[Response]:
    """Answer one request object; notifications produce ``None``."""

    if not _is_valid(request):
        request_id = request.get("id") if isinstance(request, dict) else None
        return jsonrpc_error(request_id, make_error(ErrorCode.INVALID_REQUEST))

    method = request["method"]
    request_id = request.get("id")
    notification = "id" not in request
    try:
        with discovery_scope("jsonrpc.call", logger=logger, extra={"rpc_method": method}):
            result = await server.call(method, request.get("params"), request_id=request_id)
        response = jsonrpc_result(request_id, result)
    except RPCCallError as exc:
        response = jsonrpc_error(request_id, exc.error)
    except (DiscoveryError, SchemaMutationError) as exc:
        response = jsonrpc_error(
            request_id, make_error(ErrorCode.DISCOVERY_FAILED, data=str(exc))
        )
    except RPCDocError as exc:
        response = jsonrpc_error(request_id, make_error(ErrorCode.INTERNAL, str(exc)))
    except Exception as exc:  # method bodies may raise anything
        logger.exception("jsonrpc.method_failed", extra={"rpc_method": method})
        response = jsonrpc_error(request_id, make_error(ErrorCode.INTERNAL, str(exc)))
    return None if notification else response


async def handle_payload(
    server: RPCServer, payload: Any
) -> Optional[Union[Response, List[Response]]]:
    """Answer a single request or a batch."""

    if isinstance(payload, list):
        if not payload:
            return jsonrpc_error(None, make_error(ErrorCode.INVALID_REQUEST))
        responses = []
        for request in payload:
            response = await handle_request(server, request)
            if response is not None:
                responses.append(response)
        return responses or None
    return await handle_request(server, payload)


__all__ = ["handle_payload", "handle_request"]
