"""Match registered callables to their source declarations.

The default :class:`SourceDocProvider` parses the file that declares a
function and recovers its docstring, positional parameters, return annotation
and location. :class:`ManifestDocProvider` serves the same information from an
explicit mapping for callables whose source is not available.
"""
from __future__ import annotations

import ast
import inspect
import logging
import re
import textwrap
from dataclasses import dataclass, field
from operator import itemgetter
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, Tuple, Union

from ..utils.errors import SourceReadError, SymbolNotFoundError

logger = logging.getLogger("rpcdoc.symbols")

_SECTION_RE = re.compile(r"^(Args|Arguments|Parameters|Params|Returns|Return|Yields):\s*$")
_ARG_RE = re.compile(r"^\*{0,2}(\w+)\s*(?:\([^)]*\))?\s*:\s*(.*)$")


@dataclass(frozen=True)
class Field:
    """One declared parameter or result."""

    names: Tuple[str, ...] = ()
    annotation: str = ""
    comment: str = ""


@dataclass
class Declaration:
    name: str
    receiver: Optional[str] = None
    doc: str = ""
    params: List[Field] = field(default_factory=list)
    results: List[Field] = field(default_factory=list)
    filename: str = ""
    lineno: int = 0
    end_lineno: int = 0
    variadic: bool = False
    source: str = field(default="", repr=False)

    def body_source(self) -> str:
        """Return the declaration's source text, dedented."""

        if not self.source or not self.lineno:
            return ""
        lines = self.source.splitlines()[self.lineno - 1 : self.end_lineno or self.lineno]
        return textwrap.dedent("\n".join(lines))


class DocProvider(Protocol):
    def lookup(self, fn: Any, receiver: Any = None) -> Declaration:
        ...


def _function_of(fn: Any) -> Any:
    if inspect.ismethod(fn):
        fn = fn.__func__
    if isinstance(fn, (staticmethod, classmethod)):
        fn = fn.__func__
    return inspect.unwrap(fn)


def full_name(fn: Any) -> str:
    """Runtime-qualified name of *fn*: ``module.qualname``."""

    target = _function_of(fn)
    module = getattr(target, "__module__", None) or "<unknown>"
    qualname = getattr(target, "__qualname__", None) or getattr(target, "__name__", repr(target))
    return f"{module}.{qualname}"


def runtime_name(fn: Any) -> str:
    """The last dotted component of :func:`full_name`."""

    return full_name(fn).rsplit(".", 1)[-1]


def receiver_lineage(receiver: Any) -> str:
    """Printed form of a receiver used for declaration matching."""

    owner = receiver if isinstance(receiver, type) else type(receiver)
    return " ".join(f"{klass.__module__}.{klass.__qualname__}" for klass in owner.__mro__)


def _lineage_rank(owner: str, lineage: List[str]) -> Optional[int]:
    for index, printed in enumerate(lineage):
        if re.search(rf"\b{re.escape(owner)}\b", printed):
            return index
    return None


def parse_docstring(doc: str) -> Tuple[Dict[str, str], str]:
    """Split a Google-style docstring into parameter comments and the return comment."""

    params: Dict[str, str] = {}
    returns: List[str] = []
    section: Optional[str] = None
    current: Optional[str] = None
    base_indent: Optional[int] = None
    for line in doc.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        indent = len(line) - len(line.lstrip())
        header = _SECTION_RE.match(stripped)
        if header and indent == 0:
            section = "returns" if header.group(1).startswith(("Return", "Yield")) else "args"
            current = None
            base_indent = None
            continue
        if section is None:
            continue
        if indent == 0:
            section = None
            continue
        if section == "returns":
            returns.append(stripped)
            continue
        match = _ARG_RE.match(stripped)
        if match and (base_indent is None or indent <= base_indent):
            base_indent = indent
            current = match.group(1)
            params[current] = match.group(2).strip()
        elif current is not None:
            params[current] = f"{params[current]} {stripped}".strip()
    return params, " ".join(returns)


def _decorator_names(node: ast.AST) -> List[str]:
    names = []
    for decorator in getattr(node, "decorator_list", []):
        if isinstance(decorator, ast.Call):
            decorator = decorator.func
        if isinstance(decorator, ast.Name):
            names.append(decorator.id)
        elif isinstance(decorator, ast.Attribute):
            names.append(decorator.attr)
    return names


def _iter_functions(
    node: ast.AST, name: str, owner: Optional[str] = None
) -> Iterator[Tuple[Optional[str], Union[ast.FunctionDef, ast.AsyncFunctionDef]]]:
    for child in ast.iter_child_nodes(node):
        if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
            if child.name == name:
                yield owner, child
            yield from _iter_functions(child, name, owner)
        elif isinstance(child, ast.ClassDef):
            yield from _iter_functions(child, name, child.name)
        else:
            yield from _iter_functions(child, name, owner)


def _is_none_annotation(node: Optional[ast.expr]) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def declaration_from_node(
    node: Union[ast.FunctionDef, ast.AsyncFunctionDef],
    *,
    owner: Optional[str],
    filename: str,
    source: str,
) -> Declaration:
    doc = ast.get_docstring(node) or ""
    comments, returns_comment = parse_docstring(doc)
    arguments = [*node.args.posonlyargs, *node.args.args]
    if owner is not None and "staticmethod" not in _decorator_names(node) and arguments:
        arguments = arguments[1:]
    params = [
        Field(
            names=(argument.arg,),
            annotation=ast.unparse(argument.annotation) if argument.annotation else "",
            comment=comments.get(argument.arg, ""),
        )
        for argument in arguments
    ]
    results: List[Field] = []
    if node.returns is not None and not _is_none_annotation(node.returns):
        results.append(Field(annotation=ast.unparse(node.returns), comment=returns_comment))
    return Declaration(
        name=node.name,
        receiver=owner,
        doc=doc,
        params=params,
        results=results,
        filename=filename,
        lineno=node.lineno,
        end_lineno=node.end_lineno or node.lineno,
        variadic=node.args.vararg is not None,
        source=source,
    )


class SourceDocProvider:
    """Recover declarations by parsing the declaring source file."""

    def __init__(self) -> None:
        self._trees: Dict[str, Tuple[ast.Module, str]] = {}

    def _parse(self, filename: str, method: str) -> Tuple[ast.Module, str]:
        cached = self._trees.get(filename)
        if cached is not None:
            return cached
        try:
            source = Path(filename).read_text(encoding="utf-8")
            tree = ast.parse(source, filename=filename)
        except (OSError, UnicodeDecodeError, SyntaxError) as exc:
            raise SourceReadError(
                f"cannot read source of {method} from {filename}: {exc}",
                filename=filename,
                method=method,
            ) from exc
        self._trees[filename] = (tree, source)
        logger.debug("source.parsed", extra={"source_file": filename})
        return tree, source

    def lookup(self, fn: Any, receiver: Any = None) -> Declaration:
        target = _function_of(fn)
        qualified = full_name(target)
        try:
            filename = inspect.getsourcefile(target)
        except TypeError as exc:
            raise SourceReadError(
                f"no source file for {qualified}", method=qualified
            ) from exc
        if filename is None:
            raise SourceReadError(f"no source file for {qualified}", method=qualified)

        tree, source = self._parse(filename, qualified)
        stripped = runtime_name(target)
        candidates = list(_iter_functions(tree, stripped))

        parts = target.__qualname__.split(".")
        expected = parts[-2] if len(parts) > 1 and parts[-2] != "<locals>" else None
        if receiver is not None:
            # The defining class first, then the receiver's MRO in order.
            lineage = receiver_lineage(receiver).split()
            matches = []
            for owner, node in candidates:
                rank = _lineage_rank(owner, lineage) if owner else None
                if rank is None:
                    continue
                matches.append((-1 if owner == expected else rank, owner, node))
            if matches:
                _, owner, node = min(matches, key=itemgetter(0))
                return declaration_from_node(node, owner=owner, filename=filename, source=source)
        else:
            for owner, node in candidates:
                if owner == expected:
                    return declaration_from_node(
                        node, owner=owner, filename=filename, source=source
                    )
        raise SymbolNotFoundError(
            f"no declaration of {qualified} found in {filename}", method=qualified
        )


class ManifestDocProvider:
    """Serve declarations from an explicit mapping keyed by :func:`full_name`.

    Values are :class:`Declaration` objects or mappings with ``doc``,
    ``params`` (identifier strings or mappings with ``name``/``comment``),
    ``results``, ``filename`` and ``lineno`` keys.
    """

    def __init__(self, manifest: Mapping[str, Union[Declaration, Mapping[str, Any]]]) -> None:
        self._manifest = dict(manifest)

    @staticmethod
    def _field(entry: Any) -> Field:
        if isinstance(entry, Field):
            return entry
        if isinstance(entry, str):
            return Field(names=(entry,) if entry else ())
        name = entry.get("name", "")
        return Field(
            names=(name,) if name else (),
            annotation=entry.get("annotation", ""),
            comment=entry.get("comment", ""),
        )

    def lookup(self, fn: Any, receiver: Any = None) -> Declaration:
        key = full_name(fn)
        entry = self._manifest.get(key)
        if entry is None:
            raise SymbolNotFoundError(f"{key} is not in the manifest", method=key)
        if isinstance(entry, Declaration):
            return entry
        return Declaration(
            name=key.rsplit(".", 1)[-1],
            receiver=entry.get("receiver"),
            doc=entry.get("doc", ""),
            params=[self._field(item) for item in entry.get("params", [])],
            results=[self._field(item) for item in entry.get("results", [])],
            filename=entry.get("filename", ""),
            lineno=int(entry.get("lineno", 0)),
        )


__all__ = [
    "Declaration",
    "DocProvider",
    "Field",
    "ManifestDocProvider",
    "SourceDocProvider",
    "declaration_from_node",
    "full_name",
    "parse_docstring",
    "receiver_lineage",
    "runtime_name",
]
