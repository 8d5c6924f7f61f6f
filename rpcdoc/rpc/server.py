"""Method registry and by-position JSON-RPC dispatch."""
from __future__ import annotations

import inspect
import logging
import typing
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import TypeAdapter, ValidationError

from ..openrpc.document import DiscoverOptions, DocumentDiscoverer, unpack_callable
from ..openrpc.symbols import DocProvider
from ..openrpc.types import Contact, ExternalDocs, Info, License
from ..utils.errors import ErrorCode, RPCCallError
from ..utils.logging import current_scope
from .context import Context, is_context_type
from .types import encode_value, parse_hex_int

logger = logging.getLogger("rpcdoc.rpc")

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def _coerce(tp: Any, value: Any) -> Any:
    if tp is Any or tp is inspect.Parameter.empty:
        return value
    if tp is int and isinstance(value, str):
        return parse_hex_int(value)
    return TypeAdapter(tp).validate_python(value)


class RPCServer:
    """Registry of JSON-RPC methods grouped by namespace.

    Public methods of a receiver registered under ``eth`` are published as
    ``eth_<method>``. The ``rpc`` namespace is always present and answers
    ``rpc_modules`` and ``rpc_discover``.
    """

    def __init__(
        self,
        *,
        title: str = "JSON-RPC API",
        description: str = "",
        version: str = "1.0.0",
        options: Optional[DiscoverOptions] = None,
        doc_provider: Optional[DocProvider] = None,
    ) -> None:
        self._registry: Dict[str, List[Any]] = {}
        self._namespaces: Dict[str, str] = {}
        self.info = Info(
            title=title,
            description=description,
            contact=Contact(),
            license=License(
                name="Apache-2.0", url="https://www.apache.org/licenses/LICENSE-2.0"
            ),
            version=version,
        )
        self.external_docs = ExternalDocs()
        self.discoverer = DocumentDiscoverer(self, options, doc_provider=doc_provider)
        self.register_name("rpc", RPCService(self))

    def configure_discovery(
        self,
        options: Optional[DiscoverOptions] = None,
        *,
        doc_provider: Optional[DocProvider] = None,
    ) -> DocumentDiscoverer:
        """Replace the discoverer, keeping any installed raw document."""

        raw = self.discoverer.raw_document()
        self.discoverer = DocumentDiscoverer(self, options, doc_provider=doc_provider)
        if raw is not None:
            self.discoverer.set_raw_document(raw)
        return self.discoverer

    def register_name(self, namespace: str, receiver: Any) -> List[str]:
        """Register every public method of *receiver* under *namespace*."""

        owner = receiver if isinstance(receiver, type) else type(receiver)
        registered = []
        for attr in dir(owner):
            if attr.startswith("_"):
                continue
            raw = inspect.getattr_static(owner, attr)
            if isinstance(raw, staticmethod):
                values: List[Any] = [raw.__func__]
            elif isinstance(raw, classmethod):
                values = [owner, raw.__func__]
            elif inspect.isfunction(raw) and not isinstance(receiver, type):
                values = [receiver, raw]
            else:
                continue
            name = f"{namespace}_{attr}"
            self._registry[name] = values
            registered.append(name)
        self._namespaces[namespace] = "1.0"
        logger.debug(
            "rpc.register", extra={"namespace": namespace, "methods": len(registered)}
        )
        return registered

    def register_function(self, name: str, fn: Any) -> None:
        self._registry[name] = [fn]

    def methods(self) -> Dict[str, List[Any]]:
        return {name: list(values) for name, values in self._registry.items()}

    def modules(self) -> Dict[str, str]:
        return dict(self._namespaces)

    def openrpc_info(self) -> Info:
        return self.info

    def openrpc_external_docs(self) -> Optional[ExternalDocs]:
        return self.external_docs

    def set_discover_document(self, path: Union[str, Path]) -> None:
        """Answer ``rpc_discover`` with the document stored at *path*."""

        self.discoverer.load_document_file(path)

    async def call(
        self,
        name: str,
        params: Optional[Union[Sequence[Any], Mapping[str, Any]]] = None,
        *,
        request_id: Any = None,
    ) -> Any:
        """Invoke *name* with positional *params* and return the encoded result."""

        values = self._registry.get(name)
        if not values:
            raise RPCCallError(ErrorCode.METHOD_NOT_FOUND, f"the method {name} does not exist")
        if isinstance(params, Mapping):
            raise RPCCallError(ErrorCode.INVALID_PARAMS, "parameters must be passed by position")
        receiver, fn = unpack_callable(values)
        arguments = list(params or [])

        signature = inspect.signature(fn)
        try:
            hints = typing.get_type_hints(inspect.unwrap(fn))
        except (NameError, TypeError):
            hints = {}
        slots = [item for item in signature.parameters.values() if item.kind in _POSITIONAL]
        leading: List[Any] = []
        if receiver is not None and slots:
            leading.append(receiver)
            slots = slots[1:]
        context_type = hints.get(slots[0].name) if slots else None
        if is_context_type(context_type):
            scope = current_scope()
            metadata = {"scope_id": scope.scope_id} if scope is not None else {}
            leading.append(context_type(method=name, request_id=request_id, metadata=metadata))
            slots = slots[1:]

        if len(arguments) > len(slots):
            raise RPCCallError(
                ErrorCode.INVALID_PARAMS,
                f"too many arguments, want at most {len(slots)}",
            )
        missing = [item.name for item in slots[len(arguments):] if item.default is item.empty]
        if missing:
            raise RPCCallError(
                ErrorCode.INVALID_PARAMS, f"missing value for required argument {missing[0]}"
            )
        converted = []
        for position, (slot, value) in enumerate(zip(slots, arguments)):
            try:
                converted.append(_coerce(hints.get(slot.name, Any), value))
            except (ValidationError, ValueError) as exc:
                raise RPCCallError(
                    ErrorCode.INVALID_PARAMS, f"invalid argument {position}: {exc}"
                ) from exc

        result = fn(*leading, *converted)
        if inspect.isawaitable(result):
            result = await result
        return encode_value(result)


class RPCService:
    """Built-in ``rpc`` namespace."""

    def __init__(self, server: RPCServer) -> None:
        self._server = server

    def modules(self) -> Dict[str, str]:
        """Namespaces served by this endpoint and their versions."""

        return self._server.modules()

    def discover(self) -> Dict[str, Any]:
        """Describe this API as an OpenRPC document.

        Returns:
            The installed document if one was set, otherwise a freshly discovered one.
        """

        return self._server.discoverer.payload()


__all__ = ["Context", "RPCServer", "RPCService"]
