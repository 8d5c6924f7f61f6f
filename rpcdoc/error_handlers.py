"""Centralized error handling for malformed JSON-RPC requests."""
import json
import logging

from starlette.requests import Request
from starlette.responses import JSONResponse

from .api._shared import error_response
from .utils.errors import ErrorCode

log = logging.getLogger(__name__)


def _render_parse_error(request: Request, exc: Exception, summary: str) -> JSONResponse:
    log.warning("%s: %s", summary, exc, extra={"path": request.url.path})
    debug = getattr(request.app, "debug", False)
    return error_response(ErrorCode.PARSE_ERROR, data=str(exc) if debug else None)


def install_error_handlers(app) -> None:
    """Install error handlers on the Starlette app."""

    async def _on_json_decode_error(request: Request, exc: json.JSONDecodeError) -> JSONResponse:
        return _render_parse_error(request, exc, "json_decode_error")

    async def _on_unicode_error(request: Request, exc: UnicodeDecodeError) -> JSONResponse:
        return _render_parse_error(request, exc, "unicode_decode_error")

    app.add_exception_handler(json.JSONDecodeError, _on_json_decode_error)
    app.add_exception_handler(UnicodeDecodeError, _on_unicode_error)
