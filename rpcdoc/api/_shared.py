"""Shared helpers for tools and HTTP routes."""
from __future__ import annotations

from typing import Any, Dict, Optional

from starlette.responses import JSONResponse

from ..utils.errors import ErrorCode, error_status, make_error


def envelope_ok(data: Any) -> Dict[str, object]:
    return {"ok": True, "data": data, "errors": []}


def envelope_error(
    code: ErrorCode,
    message: str | None = None,
    *,
    data: Optional[object] = None,
) -> Dict[str, object]:
    return {
        "ok": False,
        "data": None,
        "errors": [make_error(code, message, data=data)],
    }


def jsonrpc_result(request_id: Any, result: Any) -> Dict[str, object]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def jsonrpc_error(request_id: Any, error: Dict[str, object]) -> Dict[str, object]:
    return {"jsonrpc": "2.0", "id": request_id, "error": error}


def error_response(
    code: ErrorCode,
    message: str | None = None,
    *,
    request_id: Any = None,
    data: Optional[object] = None,
) -> JSONResponse:
    return JSONResponse(
        jsonrpc_error(request_id, make_error(code, message, data=data)),
        status_code=error_status(code),
    )


__all__ = [
    "envelope_error",
    "envelope_ok",
    "error_response",
    "jsonrpc_error",
    "jsonrpc_result",
]
