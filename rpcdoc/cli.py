"""Command line entry point: generate, validate or serve OpenRPC documents."""
from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import uvicorn

from .app import MCP_SERVER, configure, create_app, set_rpc_server
from .api.validators import validate_document
from .openrpc.document import DiscoverOptions, DocumentDiscoverer
from .openrpc.mutations import MutationType
from .rpc.server import RPCServer
from .utils import config
from .utils.errors import ConfigurationError, RPCDocError
from .utils.logging import configure_root

logger = logging.getLogger("rpcdoc.cli")

_MUTATION_CHOICES = sorted(
    {item.value for item in MutationType} | {"expand", "remove-definitions"}
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rpcdoc",
        description="Generate an OpenRPC document from a registry of JSON-RPC methods",
    )
    parser.add_argument(
        "--target",
        type=str,
        default=None,
        help="Registry to describe, as module:attribute (a server or a factory returning one)",
    )
    parser.add_argument(
        "--output", type=Path, default=None, help="Write the document here instead of stdout"
    )
    parser.add_argument(
        "--document",
        type=Path,
        default=None,
        help="Serve this pre-built document verbatim instead of running discovery",
    )
    parser.add_argument(
        "--mutation",
        action="append",
        default=[],
        choices=_MUTATION_CHOICES,
        help="Schema mutation to apply after assembly; repeat to chain, order is kept",
    )
    parser.add_argument(
        "--blacklist",
        action="append",
        default=[],
        help="Regular expression of method names to leave out; may be repeated",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Check the document against the bundled OpenRPC schema",
    )
    parser.add_argument("--serve", action="store_true", help="Serve the registry instead of printing")
    parser.add_argument(
        "--transport",
        type=str,
        default="http",
        choices=["http", "stdio"],
        help="Transport used with --serve: JSON-RPC over HTTP or MCP over stdio",
    )
    parser.add_argument("--host", type=str, default=config.DEFAULT_HOST, help="HTTP bind host")
    parser.add_argument("--port", type=int, default=config.DEFAULT_PORT, help="HTTP bind port")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def load_target(dotted: str) -> Any:
    """Import ``module:attribute`` and return the registry it names."""

    module_name, _, attribute = dotted.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(f"target must look like module:attribute, got {dotted!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"cannot import {module_name}: {exc}") from exc
    try:
        target = getattr(module, attribute)
    except AttributeError as exc:
        raise ConfigurationError(f"{module_name} has no attribute {attribute}") from exc
    if callable(target) and not hasattr(target, "methods"):
        target = target()
    if not hasattr(target, "methods"):
        raise ConfigurationError(f"{dotted} is not a method registry")
    return target


def _options(args: argparse.Namespace) -> DiscoverOptions:
    options = DiscoverOptions.from_env()
    if args.mutation:
        options.schema_mutations = [MutationType(item) for item in args.mutation]
    options.method_blacklist = [*options.method_blacklist, *args.blacklist]
    return options


def run(args: argparse.Namespace) -> int:
    """Execute the CLI; returns the process exit status."""

    configure_root(logging.DEBUG if args.debug else logging.INFO)
    if args.debug:
        logger.setLevel(logging.DEBUG)

    try:
        server = load_target(args.target) if args.target else RPCServer()
        options = _options(args)
        if isinstance(server, RPCServer):
            discoverer = server.configure_discovery(options)
        else:
            discoverer = DocumentDiscoverer(server, options)

        document_path = args.document or config.document_path()
        if document_path is not None:
            discoverer.load_document_file(document_path)
            logger.info("[rpcdoc] Serving pre-built document %s", document_path)

        if args.serve:
            if not isinstance(server, RPCServer):
                raise ConfigurationError("--serve needs an RPCServer target")
            set_rpc_server(server)
            if args.transport == "stdio":
                logger.info("[MCP] Running in stdio mode.")
                configure()
                MCP_SERVER.run()
            else:
                logger.info(
                    "[rpcdoc] JSON-RPC endpoint on http://%s:%s/", args.host, args.port
                )
                uvicorn.run(create_app(), host=args.host, port=int(args.port))
            return 0

        payload = discoverer.payload()
    except RPCDocError as exc:
        logger.error("[rpcdoc] %s", exc)
        return 2

    if args.validate:
        valid, errors = validate_document(payload)
        if not valid:
            for error in errors:
                logger.error("[rpcdoc] invalid document: %s", error)
            return 1

    text = json.dumps(payload, indent=2)
    if args.output is not None:
        args.output.write_text(text + "\n", encoding="utf-8")
        logger.info("[rpcdoc] Wrote %s (%d methods)", args.output, len(payload.get("methods", [])))
    else:
        sys.stdout.write(text + "\n")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    raise SystemExit(run(build_parser().parse_args(argv)))


__all__ = ["build_parser", "load_target", "main", "run"]
