"""Document assembly: discovery over a method registry and the strict registration path."""
from __future__ import annotations

import copy
import inspect
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from operator import attrgetter
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Pattern,
    Protocol,
    Sequence,
    Tuple,
    Union,
)

from ..utils import config
from ..utils.errors import ConfigurationError, DiscoveryError, SourceReadError
from ..utils.logging import discovery_scope
from .methods import build_method
from .mutations import (
    MutationType,
    expand_schema,
    remove_definitions,
    run_schema_mutation,
    walk_depth_first,
)
from .symbols import DocProvider, SourceDocProvider
from .types import Document, ExternalDocs, Info, Method, new_document

logger = logging.getLogger("rpcdoc.discover")

Clock = Callable[[], datetime]


class ServerProvider(Protocol):
    """A method registry plus the static metadata of the API it serves."""

    def methods(self) -> Mapping[str, Sequence[Any]]:
        ...

    def openrpc_info(self) -> Info:
        ...

    def openrpc_external_docs(self) -> Optional[ExternalDocs]:
        ...


@dataclass
class DiscoverOptions:
    """Options controlling one discovery run.

    ``inline`` is accepted for compatibility and currently has no effect.
    """

    inline: bool = False
    schema_mutations: List[MutationType] = field(default_factory=list)
    method_blacklist: List[str] = field(default_factory=list)
    strict_mutations: bool = True

    def __post_init__(self) -> None:
        try:
            self.schema_mutations = [MutationType(item) for item in self.schema_mutations]
        except ValueError as exc:
            raise ConfigurationError(f"unknown schema mutation: {exc}") from exc

    @classmethod
    def from_env(cls) -> "DiscoverOptions":
        return cls(
            schema_mutations=list(config.schema_mutations()),
            method_blacklist=config.method_blacklist(),
            strict_mutations=config.strict_mutations(),
        )

    def compiled_blacklist(self) -> List[Pattern[str]]:
        patterns = []
        for expression in self.method_blacklist:
            try:
                patterns.append(re.compile(expression))
            except re.error as exc:
                raise ConfigurationError(
                    f"invalid method blacklist pattern {expression!r}: {exc}"
                ) from exc
        return patterns


def stamp_version(version: str, now: datetime) -> str:
    """Suffix *version* with an RFC 3339 timestamp and unix seconds.

    Build metadata after ``+`` is dropped.
    """

    base = version.split("+", 1)[0]
    stamp = now.isoformat(timespec="seconds").replace("+00:00", "Z")
    return f"{base}-{stamp}-{int(now.timestamp())}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def unpack_callable(values: Sequence[Any]) -> Tuple[Any, Any]:
    """Split registry values into ``(receiver, function)``."""

    values = list(values)
    if len(values) == 1:
        target = values[0]
        if inspect.ismethod(target):
            return target.__self__, target.__func__
        return None, target
    if len(values) == 2:
        return values[0], values[1]
    raise DiscoveryError(f"expected one or two registry values, got {len(values)}")


class DocumentDiscoverer:
    """Build OpenRPC documents from a :class:`ServerProvider`."""

    def __init__(
        self,
        provider: Optional[ServerProvider],
        options: Optional[DiscoverOptions] = None,
        *,
        doc_provider: Optional[DocProvider] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        if provider is None:
            raise ConfigurationError("a method registry is required for discovery")
        self.provider = provider
        self.options = options or DiscoverOptions()
        self._blacklist = self.options.compiled_blacklist()
        self._doc_provider = doc_provider or SourceDocProvider()
        self._clock = clock or _utcnow
        self._document: Optional[Document] = None
        self._raw_document: Optional[str] = None

    @classmethod
    def wrap(
        cls, provider: Optional[ServerProvider], options: Optional[DiscoverOptions] = None
    ) -> "DocumentDiscoverer":
        return cls(provider, options)

    def is_blacklisted(self, name: str) -> bool:
        return any(pattern.search(name) for pattern in self._blacklist)

    def get_method(self, name: str, values: Sequence[Any]) -> Method:
        receiver, fn = unpack_callable(values)
        declaration = self._doc_provider.lookup(fn, receiver)
        return build_method(name, receiver, fn, declaration)

    def discover(self) -> Document:
        """Describe every registered method and return a new document."""

        with discovery_scope("openrpc.discover", logger=logger) as scope:
            document = new_document()
            document.info = copy.deepcopy(self.provider.openrpc_info())
            document.info.version = stamp_version(document.info.version, self._clock())
            external_docs = self.provider.openrpc_external_docs()
            if external_docs is not None:
                document.external_docs = copy.deepcopy(external_docs)

            for name, values in self.provider.methods().items():
                if not values:
                    scope.log(logging.WARNING, "method.empty", extra={"method": name})
                    scope.increment("skipped")
                    continue
                if self.is_blacklisted(name):
                    scope.log(logging.DEBUG, "method.blacklisted", extra={"method": name})
                    scope.increment("blacklisted")
                    continue
                try:
                    method = self.get_method(name, values)
                except DiscoveryError as exc:
                    raise DiscoveryError(
                        f"failed to describe {name}: {exc} (values={list(values)!r})",
                        method=name,
                    ) from exc
                document.methods.append(method)
                scope.increment("methods")

            document.methods.sort(key=attrgetter("name"))
            self.apply_mutations(document)
        self._document = document
        return document

    def apply_mutations(self, document: Document) -> Document:
        for mutation in self.options.schema_mutations:
            run_schema_mutation(document, mutation, strict=self.options.strict_mutations)
        return document

    def document(self) -> Optional[Document]:
        """The document produced by the last :meth:`discover` call."""

        return self._document

    def set_raw_document(self, text: str) -> None:
        """Serve *text* verbatim instead of running discovery."""

        self._raw_document = text

    def raw_document(self) -> Optional[str]:
        return self._raw_document

    def load_document_file(self, path: Union[str, Path]) -> None:
        self.set_raw_document(load_document_file(path))

    def payload(self) -> Dict[str, Any]:
        """JSON payload answered to ``rpc_discover``."""

        if self._raw_document is not None:
            return json.loads(self._raw_document)
        return self.discover().to_dict()


def load_document_file(path: Union[str, Path]) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise SourceReadError(
            f"cannot read OpenRPC document {path}: {exc}", filename=str(path)
        ) from exc


class OpenRPCDescription:
    """Strict registration path: methods are added one at a time.

    Unlike discovery, descriptions carry the method's source text and any
    failure is raised to the caller of :meth:`register_method`.
    """

    def __init__(
        self,
        *,
        info: Optional[Info] = None,
        external_docs: Optional[ExternalDocs] = None,
        doc_provider: Optional[DocProvider] = None,
    ) -> None:
        self.document = new_document()
        if info is not None:
            self.document.info = copy.deepcopy(info)
        if external_docs is not None:
            self.document.external_docs = copy.deepcopy(external_docs)
        self._doc_provider = doc_provider or SourceDocProvider()

    def register_method(self, name: str, fn: Any, receiver: Any = None) -> Method:
        if receiver is None and inspect.ismethod(fn):
            receiver, fn = fn.__self__, fn.__func__
        declaration = self._doc_provider.lookup(fn, receiver)
        method = build_method(name, receiver, fn, declaration, include_source=True)
        methods = [item for item in self.document.methods if item.name != name]
        methods.append(method)
        methods.sort(key=attrgetter("name"))
        self.document.methods = methods
        return method


def describe(
    provider: ServerProvider, *, doc_provider: Optional[DocProvider] = None
) -> Document:
    """Register every method of *provider* outside the ``rpc`` namespace."""

    description = OpenRPCDescription(
        info=provider.openrpc_info(),
        external_docs=provider.openrpc_external_docs(),
        doc_provider=doc_provider,
    )
    for name, values in provider.methods().items():
        if name.startswith("rpc_"):
            continue
        receiver, fn = unpack_callable(values)
        description.register_method(name, fn, receiver)
    return description.document


def clean(document: Document) -> Document:
    """Drop shared schemas and make every method schema self-contained."""

    document.components.schemas = {}
    for method in document.methods:
        for descriptor in [*method.params, method.result]:
            expand_schema(descriptor.schema)
            walk_depth_first(descriptor.schema, remove_definitions)
    return document


__all__ = [
    "DiscoverOptions",
    "DocumentDiscoverer",
    "OpenRPCDescription",
    "ServerProvider",
    "clean",
    "describe",
    "load_document_file",
    "stamp_version",
    "unpack_callable",
]
