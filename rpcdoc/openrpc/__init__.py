"""OpenRPC document generation for registered JSON-RPC methods."""
from __future__ import annotations

from .document import (
    DiscoverOptions,
    DocumentDiscoverer,
    OpenRPCDescription,
    ServerProvider,
    clean,
    describe,
    stamp_version,
)
from .mutations import MutationType, run_schema_mutation
from .symbols import ManifestDocProvider, SourceDocProvider
from .types import Document, ExternalDocs, Info, new_document

__all__ = [
    "DiscoverOptions",
    "Document",
    "DocumentDiscoverer",
    "ExternalDocs",
    "Info",
    "ManifestDocProvider",
    "MutationType",
    "OpenRPCDescription",
    "ServerProvider",
    "SourceDocProvider",
    "clean",
    "describe",
    "new_document",
    "run_schema_mutation",
    "stamp_version",
]
