"""Map Python type annotations to OpenRPC schema fragments.

Lookup is two-staged. :func:`type_schema` consults the ordered override table
and the primitive fallbacks and returns ``None`` when the type should be handed
to the structural reflector; :func:`reflect` then asks pydantic for a JSON
schema with :class:`OpenRPCGenerateJsonSchema` so nested integers and byte
strings get the same hex encodings.
"""
from __future__ import annotations

import collections.abc
import dataclasses
import json
import types
from dataclasses import dataclass
from enum import Enum
from typing import (
    Annotated,
    Any,
    Dict,
    List,
    Literal,
    Optional,
    TypeVar,
    Union,
    get_args,
    get_origin,
    is_typeddict,
)

from pydantic import PydanticUserError, TypeAdapter
from pydantic.json_schema import GenerateJsonSchema, JsonSchemaValue
from pydantic_core import core_schema

from ..rpc.types import (
    Address,
    Big,
    BlockNonce,
    BlockNumber,
    BlockNumberOrHash,
    Hash,
    HexBig,
    HexBytes,
)
from ..utils.errors import UnsupportedTypeError
from .types import Schema

REF_TEMPLATE = "#/definitions/{model}"

INTEGER_SCHEMA = """{
  "title": "integer",
  "type": "string",
  "pattern": "^0x[a-fA-F0-9]+$",
  "description": "Hex representation of the integer"
}"""

_HASH_SCHEMA = """{
  "title": "keccak",
  "type": "string",
  "description": "Hex representation of a Keccak 256 hash",
  "pattern": "^0x[a-fA-F\\\\d]{64}$"
}"""

_HASH_POINTER_SCHEMA = """{
  "title": "keccak",
  "type": "string",
  "description": "Hex representation of a Keccak 256 hash POINTER",
  "pattern": "^0x[a-fA-F\\\\d]{64}$"
}"""

_ADDRESS_SCHEMA = """{
  "title": "address",
  "type": "string",
  "pattern": "^0x[a-fA-F\\\\d]{40}$"
}"""

_DATA_WORD_SCHEMA = """{
  "title": "dataWord",
  "type": "string",
  "description": "Hex representation of a 256 bit unit of data",
  "pattern": "^0x([a-fA-F\\\\d]{64})?$"
}"""

BYTES_SCHEMA = """{
  "title": "bytes",
  "type": "string",
  "description": "Hex representation of a variable length byte array",
  "pattern": "^0x([a-fA-F0-9]?)+$"
}"""

_BLOCK_NUMBER_TAG_SCHEMA = """{
  "title": "blockNumberTag",
  "type": "string",
  "description": "The optional block height description",
  "enum": ["earliest", "latest", "pending"]
}"""

_BLOCK_NUMBER_OR_HASH_D = f"""{{
  "oneOf": [
    {_BLOCK_NUMBER_TAG_SCHEMA},
    {_HASH_SCHEMA}
  ]
}}"""

_BLOCK_NUMBER_OR_HASH_SCHEMA = f"""{{
  "title": "blockNumberOrHash",
  "oneOf": [
    {_BLOCK_NUMBER_OR_HASH_D},
    {{
      "allOf": [
        {_BLOCK_NUMBER_OR_HASH_D},
        {{
          "type": "object",
          "properties": {{
            "requireCanonical": {{
              "type": "boolean"
            }}
          }},
          "additionalProperties": false
        }}
      ]
    }}
  ]
}}"""


@dataclass(frozen=True)
class Override:
    """One entry of the override table: an exemplar type and its schema literal."""

    exemplar: Any
    literal: str

    def matches(self, tp: Any) -> bool:
        if isinstance(self.exemplar, type) or isinstance(tp, type):
            return tp is self.exemplar
        return tp == self.exemplar

    def load(self) -> Dict[str, Any]:
        return json.loads(self.literal)


# Checked in order; the first matching exemplar wins.
OVERRIDES: List[Override] = [
    Override(Optional[Big], INTEGER_SCHEMA),
    Override(Big, INTEGER_SCHEMA),
    Override(Optional[HexBig], INTEGER_SCHEMA),
    Override(HexBig, INTEGER_SCHEMA),
    Override(BlockNonce, INTEGER_SCHEMA),
    Override(Optional[Address], _ADDRESS_SCHEMA),
    Override(Address, _ADDRESS_SCHEMA),
    Override(Optional[Hash], _HASH_POINTER_SCHEMA),
    Override(Hash, _HASH_SCHEMA),
    Override(HexBytes, _DATA_WORD_SCHEMA),
    Override(Optional[HexBytes], _DATA_WORD_SCHEMA),
    Override(bytes, BYTES_SCHEMA),
    Override(BlockNumber, _BLOCK_NUMBER_OR_HASH_D),
    Override(BlockNumberOrHash, _BLOCK_NUMBER_OR_HASH_SCHEMA),
]

_UNSUPPORTED_ORIGINS = (
    collections.abc.Callable,
    collections.abc.Iterator,
    collections.abc.AsyncIterator,
    collections.abc.Awaitable,
    collections.abc.AsyncIterable,
)


def normalize_annotation(tp: Any) -> Any:
    """Rewrite ``X | None`` style unions into their :mod:`typing` form."""

    if isinstance(tp, types.UnionType):
        return Union[get_args(tp)]
    return tp


def find_override(tp: Any) -> Optional[Override]:
    tp = normalize_annotation(tp)
    for override in OVERRIDES:
        if override.matches(tp):
            return override
    return None


def override_schema(tp: Any) -> Dict[str, Any]:
    """Return a fresh copy of the literal registered for *tp*."""

    override = find_override(tp)
    if override is None:
        raise UnsupportedTypeError(tp, "no override registered")
    return override.load()


def _integer_schema() -> Schema:
    return Schema.from_dict(json.loads(INTEGER_SCHEMA))


def _defers_generic(tp: Any, origin: Any) -> bool:
    if origin in (Union, Literal, Annotated):
        return True
    if not isinstance(origin, type):
        return False
    if issubclass(origin, _UNSUPPORTED_ORIGINS) and not issubclass(origin, collections.abc.Collection):
        raise UnsupportedTypeError(tp)
    return issubclass(origin, collections.abc.Collection)


def _is_structure(tp: type) -> bool:
    if dataclasses.is_dataclass(tp) or is_typeddict(tp):
        return True
    if issubclass(tp, tuple) and hasattr(tp, "_fields"):
        return True
    return hasattr(tp, "__get_pydantic_core_schema__")


def type_schema(tp: Any) -> Optional[Schema]:
    """Return the schema for *tp*, or ``None`` to defer to :func:`reflect`.

    Raises :class:`UnsupportedTypeError` for callables, iterators, complex
    numbers and classes with no schema representation.
    """

    tp = normalize_annotation(tp)
    override = find_override(tp)
    if override is not None:
        return Schema.from_dict(override.load())

    if tp is None or tp is type(None) or tp is Any or tp is object:
        return None
    if isinstance(tp, TypeVar):
        return None

    origin = get_origin(tp)
    if origin is not None:
        if _defers_generic(tp, origin):
            return None
        raise UnsupportedTypeError(tp)

    supertype = getattr(tp, "__supertype__", None)
    if supertype is not None:
        return type_schema(supertype)

    if not isinstance(tp, type):
        raise UnsupportedTypeError(tp, "not a type")
    if issubclass(tp, (bool, Enum, float, str)):
        return None
    if issubclass(tp, int):
        return _integer_schema()
    if issubclass(tp, complex):
        raise UnsupportedTypeError(tp)
    if _is_structure(tp):
        return None
    if issubclass(tp, (collections.abc.Iterator, collections.abc.Callable)):
        raise UnsupportedTypeError(tp)
    if issubclass(tp, collections.abc.Collection):
        return None
    raise UnsupportedTypeError(tp)


class OpenRPCGenerateJsonSchema(GenerateJsonSchema):
    """Schema generator that renders integers and byte strings as hex."""

    def int_schema(self, schema: core_schema.IntSchema) -> JsonSchemaValue:
        return json.loads(INTEGER_SCHEMA)

    def bytes_schema(self, schema: core_schema.BytesSchema) -> JsonSchemaValue:
        return json.loads(BYTES_SCHEMA)


def reflect(tp: Any) -> Dict[str, Any]:
    """Build a JSON schema for *tp* through pydantic."""

    try:
        adapter = TypeAdapter(tp)
        schema = adapter.json_schema(
            ref_template=REF_TEMPLATE, schema_generator=OpenRPCGenerateJsonSchema
        )
    except PydanticUserError as exc:
        raise UnsupportedTypeError(tp, str(exc)) from exc
    definitions = schema.pop("$defs", None)
    if definitions:
        schema["definitions"] = definitions
    return schema


__all__ = [
    "BYTES_SCHEMA",
    "INTEGER_SCHEMA",
    "OVERRIDES",
    "OpenRPCGenerateJsonSchema",
    "Override",
    "REF_TEMPLATE",
    "find_override",
    "normalize_annotation",
    "override_schema",
    "reflect",
    "type_schema",
]
