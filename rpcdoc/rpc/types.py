"""Hex-encoded scalar types used by JSON-RPC method signatures.

Every type here validates from the JSON wire form through pydantic and
publishes its JSON schema from the override table in
:mod:`rpcdoc.openrpc.typemap`, so nested occurrences inside dataclasses or
models carry the same schema as top-level parameters.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic_core import core_schema


def parse_hex_int(value: str) -> int:
    """Parse a ``0x``-prefixed quantity into an integer."""

    text = value.strip()
    negative = text.startswith("-")
    if negative:
        text = text[1:]
    if not text.lower().startswith("0x") or len(text) == 2:
        raise ValueError(f"hex string without 0x prefix: {value!r}")
    number = int(text[2:], 16)
    return -number if negative else number


def parse_hex_bytes(value: str) -> bytes:
    text = value.strip()
    if not text.lower().startswith("0x"):
        raise ValueError(f"hex string without 0x prefix: {value!r}")
    digits = text[2:]
    if len(digits) % 2:
        digits = "0" + digits
    return bytes.fromhex(digits)


class _HexScalar:
    """Mixin wiring pydantic validation and schema generation."""

    @classmethod
    def _coerce(cls, value: Any) -> Any:
        raise NotImplementedError

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(encode_value),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, schema: Any, handler: Any) -> Dict[str, Any]:
        from ..openrpc.typemap import override_schema

        return override_schema(cls)


class _HexInt(_HexScalar, int):
    @classmethod
    def _coerce(cls, value: Any):
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError("booleans are not quantities")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            return cls(parse_hex_int(value))
        raise ValueError(f"cannot interpret {value!r} as {cls.__name__}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({hex(self)})"


class _HexData(_HexScalar, bytes):
    size: Optional[int] = None

    @classmethod
    def _coerce(cls, value: Any):
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            value = parse_hex_bytes(value)
        if isinstance(value, (bytes, bytearray)):
            data = bytes(value)
            if cls.size is not None:
                if len(data) > cls.size:
                    raise ValueError(f"{cls.__name__} takes {cls.size} bytes, got {len(data)}")
                data = data.rjust(cls.size, b"\x00")
            return cls(data)
        raise ValueError(f"cannot interpret {value!r} as {cls.__name__}")

    def hex_string(self) -> str:
        return "0x" + self.hex()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.hex_string()})"


class Big(_HexInt):
    """Arbitrary-precision integer."""


class HexBig(_HexInt):
    """Arbitrary-precision integer encoded as a hex quantity."""


class BlockNonce(_HexData):
    size = 8


class Address(_HexData):
    size = 20


class Hash(_HexData):
    size = 32


class HexBytes(_HexData):
    """Variable-length data encoded as hex."""


class BlockNumber(_HexInt):
    """Block height; negative values name the symbolic tags."""

    _TAGS = {"earliest": 0, "latest": -1, "pending": -2}

    @classmethod
    def _coerce(cls, value: Any):
        if isinstance(value, str) and value.strip().lower() in cls._TAGS:
            return cls(cls._TAGS[value.strip().lower()])
        return super()._coerce(value)

    def tag(self) -> Optional[str]:
        for name, number in self._TAGS.items():
            if number == int(self) and number < 0:
                return name
        return None

    def to_json(self) -> str:
        return self.tag() or hex(self)


BlockNumber.EARLIEST = BlockNumber(0)
BlockNumber.LATEST = BlockNumber(-1)
BlockNumber.PENDING = BlockNumber(-2)


@dataclass(frozen=True)
class BlockNumberOrHash:
    """Either a block height or a block hash, optionally requiring a canonical block."""

    block_number: Optional[BlockNumber] = None
    block_hash: Optional[Hash] = None
    require_canonical: bool = False

    def __post_init__(self) -> None:
        if (self.block_number is None) == (self.block_hash is None):
            raise ValueError("exactly one of block_number and block_hash must be set")

    @classmethod
    def _coerce(cls, value: Any) -> "BlockNumberOrHash":
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            number = value.get("blockNumber")
            block_hash = value.get("blockHash")
            return cls(
                block_number=BlockNumber._coerce(number) if number is not None else None,
                block_hash=Hash._coerce(block_hash) if block_hash is not None else None,
                require_canonical=bool(value.get("requireCanonical", False)),
            )
        if isinstance(value, str) and len(value.strip()) == 66:
            return cls(block_hash=Hash._coerce(value))
        return cls(block_number=BlockNumber._coerce(value))

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(encode_value),
        )

    @classmethod
    def __get_pydantic_json_schema__(cls, schema: Any, handler: Any) -> Dict[str, Any]:
        from ..openrpc.typemap import override_schema

        return override_schema(cls)

    def to_json(self) -> Any:
        if self.block_hash is not None:
            payload: Dict[str, Any] = {"blockHash": self.block_hash.hex_string()}
        else:
            payload = {"blockNumber": self.block_number.to_json()}
        if self.require_canonical:
            payload["requireCanonical"] = True
        return payload


def encode_value(value: Any) -> Any:
    """Convert a method result into its JSON wire form.

    Integers and byte strings become ``0x`` hex strings, containers are
    converted element by element.
    """

    if value is None or isinstance(value, (bool, str, float)):
        return value
    if isinstance(value, (BlockNumber, BlockNumberOrHash)):
        return value.to_json()
    if isinstance(value, Enum):
        return encode_value(value.value)
    if isinstance(value, int):
        return hex(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            item.name: encode_value(getattr(value, item.name))
            for item in dataclasses.fields(value)
        }
    if hasattr(value, "model_dump"):
        return {key: encode_value(getattr(value, key)) for key in type(value).model_fields}
    if isinstance(value, dict):
        return {str(key): encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [encode_value(item) for item in value]
    return value


__all__ = [
    "Address",
    "Big",
    "BlockNonce",
    "BlockNumber",
    "BlockNumberOrHash",
    "Hash",
    "HexBig",
    "HexBytes",
    "encode_value",
    "parse_hex_bytes",
    "parse_hex_int",
]
