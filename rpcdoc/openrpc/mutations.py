"""In-place schema transformations applied to a finished document."""
from __future__ import annotations

import copy
import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Optional, Set

from referencing import Registry, Resource
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT7

from ..utils.errors import SchemaMutationError
from .types import Document, Schema

logger = logging.getLogger("rpcdoc.mutations")

_LITERAL_KEYWORDS = frozenset({"enum", "const", "default", "examples", "required"})
_SCHEMA_MAPS = frozenset(
    {"properties", "patternProperties", "definitions", "$defs", "dependentSchemas"}
)


class MutationType(str, Enum):
    EXPAND = "schema_expand"
    REMOVE_DEFINITIONS = "schema_remove_definitions"

    @classmethod
    def _missing_(cls, value: object) -> Optional["MutationType"]:
        if not isinstance(value, str):
            return None
        aliases = {
            "expand": cls.EXPAND,
            "remove-definitions": cls.REMOVE_DEFINITIONS,
            "remove_definitions": cls.REMOVE_DEFINITIONS,
        }
        return aliases.get(value.strip().lower())


def walk_depth_first(
    schema: Schema, visit: Callable[[Schema], None], *, seen: Optional[Set[int]] = None
) -> None:
    """Apply *visit* to every node under *schema*, children before parents.

    Nodes already in *seen* are skipped, so a shared set visits each node once
    across several roots.
    """

    if seen is None:
        seen = set()
    if id(schema) in seen:
        return
    seen.add(id(schema))
    for child in list(schema.children()):
        walk_depth_first(child, visit, seen=seen)
    visit(schema)


def _has_refs(node: Any) -> bool:
    if isinstance(node, dict):
        if isinstance(node.get("$ref"), str):
            return True
        return any(_has_refs(value) for value in node.values())
    if isinstance(node, list):
        return any(_has_refs(item) for item in node)
    return False


class _Expander:
    """Inline internal ``$ref`` pointers of one root schema.

    Recursive references stay as ``$ref`` so expansion terminates and a second
    pass leaves the schema unchanged.
    """

    def __init__(self, root: Dict[str, Any]) -> None:
        self.root = root
        self.resolver = Registry().resolver_with_root(
            Resource.from_contents(root, default_specification=DRAFT7)
        )
        self.recursive: Set[str] = set()

    def _container_present(self, ref: str) -> bool:
        parts = ref[1:].lstrip("/").split("/", 1)
        return bool(parts[0]) and parts[0] in self.root

    def _resolve(self, ref: str, siblings: Dict[str, Any], stack: frozenset) -> Any:
        if ref in stack:
            self.recursive.add(ref)
        if ref in self.recursive:
            return {"$ref": ref, **siblings}
        if not ref.startswith("#"):
            raise SchemaMutationError(f"cannot expand external reference {ref!r}")
        try:
            resolved = self.resolver.lookup(ref).contents
        except Unresolvable as exc:
            if self._container_present(ref):
                raise SchemaMutationError(f"unresolvable reference {ref!r}") from exc
            return {"$ref": ref, **siblings}
        expanded = self.schema(copy.deepcopy(resolved), stack | {ref})
        if ref in self.recursive:
            return {"$ref": ref, **siblings}
        if isinstance(expanded, dict):
            return {**expanded, **siblings}
        return expanded

    def schema(self, node: Any, stack: frozenset = frozenset()) -> Any:
        if not isinstance(node, dict):
            return node
        out: Dict[str, Any] = {}
        for key, value in node.items():
            if key == "$ref":
                continue
            if key in _LITERAL_KEYWORDS:
                out[key] = copy.deepcopy(value)
            elif key in _SCHEMA_MAPS and isinstance(value, dict):
                out[key] = {name: self.schema(sub, stack) for name, sub in value.items()}
            elif isinstance(value, list):
                out[key] = [self.schema(item, stack) for item in value]
            elif isinstance(value, dict):
                out[key] = self.schema(value, stack)
            else:
                out[key] = value
        ref = node.get("$ref")
        if isinstance(ref, str):
            return self._resolve(ref, out, stack)
        return out


def expand_schema(schema: Schema) -> None:
    """Inline every resolvable internal reference of *schema*.

    References into a container the schema does not hold are left in place for
    an enclosing schema to resolve.
    """

    root = schema.to_dict()
    if not _has_refs(root):
        return
    expanded = _Expander(root).schema(root)
    if isinstance(expanded, dict):
        schema.replace_with(Schema.from_dict(expanded))


def remove_definitions(schema: Schema) -> None:
    schema.definitions = {}
    schema.extra.pop("$defs", None)


_MUTATORS: Dict[MutationType, Callable[[Schema], None]] = {
    MutationType.EXPAND: expand_schema,
    MutationType.REMOVE_DEFINITIONS: remove_definitions,
}


def iter_document_schemas(document: Document) -> Iterator[Schema]:
    for method in document.methods:
        for param in method.params:
            yield param.schema
        yield method.result.schema
    for descriptor in document.components.content_descriptors.values():
        yield descriptor.schema
    yield from document.components.schemas.values()


def run_schema_mutation(
    document: Document, mutation: Any, *, strict: bool = True
) -> None:
    """Apply *mutation* to every schema reachable from *document*."""

    kind = MutationType(mutation)
    mutate = _MUTATORS[kind]

    def visit(node: Schema) -> None:
        try:
            mutate(node)
        except SchemaMutationError as exc:
            if strict:
                raise
            logger.warning(
                "schema.mutation.failed",
                extra={"mutation": kind.value, "error": str(exc)},
            )

    seen: Set[int] = set()
    for schema in list(iter_document_schemas(document)):
        walk_depth_first(schema, visit, seen=seen)


__all__ = [
    "MutationType",
    "expand_schema",
    "iter_document_schemas",
    "remove_definitions",
    "run_schema_mutation",
    "walk_depth_first",
]
