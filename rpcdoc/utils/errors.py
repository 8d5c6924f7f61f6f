"""Error codes, JSON-RPC error helpers, and the discovery exception hierarchy."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, MutableMapping, Optional


class RPCDocError(Exception):
    """Base class for errors raised while building OpenRPC documents."""


class ConfigurationError(RPCDocError):
    """Raised before any work starts when discovery is misconfigured."""


class DiscoveryError(RPCDocError):
    """Raised when a single method cannot be described."""

    def __init__(self, message: str, *, method: Optional[str] = None) -> None:
        super().__init__(message)
        self.method = method


class SymbolNotFoundError(DiscoveryError):
    """No source declaration matches the registered callable."""


class SourceReadError(DiscoveryError):
    """The declaring source file could not be opened or parsed."""

    def __init__(
        self, message: str, *, filename: Optional[str] = None, method: Optional[str] = None
    ) -> None:
        super().__init__(message, method=method)
        self.filename = filename


class UnsupportedTypeError(DiscoveryError):
    """A parameter or result type has no schema representation."""

    def __init__(self, tp: Any, reason: Optional[str] = None) -> None:
        detail = f"unsupported type: {tp!r}"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(detail)
        self.type = tp


class DeclarationMismatchError(DiscoveryError):
    """The runtime signature and the source declaration disagree."""


class SchemaMutationError(RPCDocError):
    """A schema mutation could not be applied."""


class ErrorCode(str, Enum):
    """Stable JSON-RPC error codes returned by the HTTP endpoint."""

    PARSE_ERROR = "PARSE_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    METHOD_NOT_FOUND = "METHOD_NOT_FOUND"
    INVALID_PARAMS = "INVALID_PARAMS"
    INTERNAL = "INTERNAL"
    DISCOVERY_FAILED = "DISCOVERY_FAILED"


@dataclass(frozen=True)
class ErrorTemplate:
    """JSON-RPC code, default message, and HTTP status for an error code."""

    code: int
    message: str
    status: int = 200


_TEMPLATES: Mapping[ErrorCode, ErrorTemplate] = {
    ErrorCode.PARSE_ERROR: ErrorTemplate(code=-32700, message="Parse error", status=400),
    ErrorCode.INVALID_REQUEST: ErrorTemplate(
        code=-32600, message="Invalid request", status=400
    ),
    ErrorCode.METHOD_NOT_FOUND: ErrorTemplate(code=-32601, message="Method not found"),
    ErrorCode.INVALID_PARAMS: ErrorTemplate(code=-32602, message="Invalid params"),
    ErrorCode.INTERNAL: ErrorTemplate(code=-32603, message="Internal error"),
    ErrorCode.DISCOVERY_FAILED: ErrorTemplate(
        code=-32000, message="OpenRPC discovery failed"
    ),
}


def _resolve_template(code: ErrorCode) -> ErrorTemplate:
    try:
        return _TEMPLATES[code]
    except KeyError:  # pragma: no cover - every enum member has a template
        raise ValueError(f"No error template registered for {code!s}") from None


def error_status(code: ErrorCode) -> int:
    return _resolve_template(code).status


def make_error(
    code: ErrorCode,
    message: Optional[str] = None,
    *,
    data: Optional[object] = None,
) -> Dict[str, object]:
    """Create a JSON-RPC error object."""

    template = _resolve_template(code)
    payload: MutableMapping[str, object] = {
        "code": template.code,
        "message": message if message is not None else template.message,
    }
    if data is not None:
        payload["data"] = data
    return dict(payload)


class RPCCallError(RPCDocError):
    """Raised while dispatching a JSON-RPC call; carries the error object to return."""

    def __init__(
        self, code: ErrorCode, message: Optional[str] = None, *, data: Optional[object] = None
    ) -> None:
        super().__init__(message or _resolve_template(code).message)
        self.code = code
        self.error = make_error(code, message, data=data)


__all__ = [
    "ConfigurationError",
    "DeclarationMismatchError",
    "DiscoveryError",
    "ErrorCode",
    "ErrorTemplate",
    "RPCCallError",
    "RPCDocError",
    "SchemaMutationError",
    "SourceReadError",
    "SymbolNotFoundError",
    "UnsupportedTypeError",
    "error_status",
    "make_error",
]
