"""Content descriptor construction."""
from __future__ import annotations

import json
from typing import Any, Optional, Union, get_args, get_origin

from .symbols import Field
from .typemap import normalize_annotation, reflect, type_schema
from .types import ContentDescriptor, Schema


def _optional_inner(tp: Any) -> Optional[Any]:
    if get_origin(tp) is not Union:
        return None
    members = [arg for arg in get_args(tp) if arg is not type(None)]
    if len(members) == 1 and len(members) != len(get_args(tp)):
        return members[0]
    return None


def type_signature(tp: Any) -> str:
    """Describe *tp* as ``module:qualname``; ``*`` marks an optional value.

    Anonymous types such as ``list[int]`` have no signature.
    """

    tp = normalize_annotation(tp)
    prefix = ""
    inner = _optional_inner(tp)
    if inner is not None:
        prefix, tp = "*", inner
    if get_origin(tp) is not None or not isinstance(tp, type) or tp is Any:
        return ""
    return f"{prefix}{tp.__module__}:{tp.__qualname__}"


def schema_for(tp: Any) -> Schema:
    schema = type_schema(tp)
    if schema is None:
        schema = Schema.from_dict(json.loads(json.dumps(reflect(tp))))
    return schema


def make_content_descriptor(
    tp: Any,
    field: Field,
    fallback: str,
    *,
    name_index: int = 0,
    required: bool = False,
) -> ContentDescriptor:
    """Build one descriptor for *tp*, named after the declared identifier."""

    name = field.names[name_index] if name_index < len(field.names) else ""
    if not name or name == "_":
        name = fallback
    schema = schema_for(tp)
    signature = type_signature(tp)
    if signature and not schema.description:
        schema.description = signature
    return ContentDescriptor(
        name=name,
        summary=field.comment,
        description=signature,
        required=required,
        schema=schema,
    )


__all__ = ["make_content_descriptor", "schema_for", "type_signature"]
