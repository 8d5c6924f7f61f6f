"""JSON schema validation helpers for generated documents."""
from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Dict, List, Tuple

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from referencing import Registry, Resource

DOCUMENT_SCHEMA = "openrpc_document.v1.json"


@lru_cache(maxsize=None)
def _schema_contents(name: str) -> Dict[str, Any]:
    with resources.files("rpcdoc.api.schemas").joinpath(name).open("r", encoding="utf-8") as handle:
        return json.load(handle)


@lru_cache(maxsize=1)
def _registry() -> Registry:
    registry = Registry()
    package = resources.files("rpcdoc.api.schemas")
    for entry in package.iterdir():
        if entry.name.endswith(".json"):
            contents = _schema_contents(entry.name)
            schema_id = contents.get("$id")
            if schema_id:
                registry = registry.with_resource(schema_id, Resource.from_contents(contents))
    return registry


@lru_cache(maxsize=None)
def _load_schema(name: str) -> Draft202012Validator:
    schema = _schema_contents(name)
    return Draft202012Validator(schema, registry=_registry())


def validate_payload(schema_name: str, payload: Dict[str, Any]) -> Tuple[bool, List[str]]:
    validator = _load_schema(schema_name)
    errors: List[str] = []
    for error in validator.iter_errors(payload):
        location = "/".join(str(part) for part in error.absolute_path)
        errors.append(f"{location}: {error.message}" if location else error.message)
    return not errors, errors


def validate_document(payload: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Check a serialized OpenRPC document against the bundled schema."""

    valid, errors = validate_payload(DOCUMENT_SCHEMA, payload)
    names = [method.get("name") for method in payload.get("methods", []) if isinstance(method, dict)]
    if len(names) != len(set(names)):
        errors.append("methods: duplicate method names")
    if names != sorted(names, key=str):
        errors.append("methods: not sorted by name")
    return valid and not errors, errors


def check_fragment(schema: Any) -> Tuple[bool, List[str]]:
    """Check that *schema* is itself a valid JSON Schema."""

    try:
        Draft202012Validator.check_schema(schema)
    except SchemaError as exc:
        return False, [exc.message]
    return True, []


__all__ = ["check_fragment", "validate_document", "validate_payload"]
