"""Runtime configuration helpers for document discovery."""
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Final, List, Optional


def _parse_bool(value: str | None, *, default: bool = False) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    return value in {"1", "true", "yes", "on"}


def _parse_int(value: str | None, *, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_list(value: str | None, *, separators: str = ",") -> List[str]:
    if value is None:
        return []
    items = re.split(f"[{re.escape(separators)}]", value)
    return [item.strip() for item in items if item.strip()]


def _env_bool(name: str, *, default: bool = False) -> bool:
    return _parse_bool(os.getenv(name), default=default)


def _env_int(name: str, *, default: int) -> int:
    return _parse_int(os.getenv(name), default=default)


def _env_list(name: str, *, separators: str = ",") -> List[str]:
    return _parse_list(os.getenv(name), separators=separators)


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(name, "").strip()
    return Path(raw).expanduser() if raw else None


def schema_mutations() -> List[str]:
    """Mutation identifiers to run after assembly, in order."""

    return _env_list("RPCDOC_SCHEMA_MUTATIONS")


def method_blacklist() -> List[str]:
    """Regular expressions naming methods excluded from discovery.

    Patterns are separated by ``;`` or newlines so that commas stay usable
    inside quantifiers such as ``{1,3}``.
    """

    return _env_list("RPCDOC_METHOD_BLACKLIST", separators=";\n")


def strict_mutations() -> bool:
    return _env_bool("RPCDOC_STRICT_MUTATIONS", default=True)


def document_path() -> Optional[Path]:
    """Path of a pre-built document to serve instead of running discovery."""

    return _env_path("RPCDOC_DOCUMENT_PATH")


DEFAULT_HOST: Final[str] = os.getenv("RPCDOC_HOST", "127.0.0.1")
DEFAULT_PORT: Final[int] = _env_int("RPCDOC_PORT", default=8545)


__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "document_path",
    "method_blacklist",
    "schema_mutations",
    "strict_mutations",
]
