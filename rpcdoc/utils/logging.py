"""Structured logging scopes for discovery runs and RPC calls.

A scope tags every record it emits with ``scope_id`` and ``scope`` plus any
metadata given when it was opened. Code deeper in the call stack reaches the
innermost open scope through :func:`current_scope` and bumps its counters with
:func:`increment_counter`; both are no-ops outside a scope.
"""
from __future__ import annotations

import contextvars
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from time import monotonic
from typing import Dict, Iterator, Mapping, Optional

_ACTIVE: contextvars.ContextVar[Optional["ScopeContext"]] = contextvars.ContextVar(
    "rpcdoc_active_scope", default=None
)

LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"


def configure_root(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass(slots=True)
class ScopeContext:
    name: str
    logger: logging.Logger
    scope_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    metadata: Dict[str, object] = field(default_factory=dict)
    counters: Dict[str, int] = field(default_factory=dict)
    parent: Optional["ScopeContext"] = None
    started: float = field(default_factory=monotonic)

    def elapsed(self) -> float:
        return monotonic() - self.started

    def extra(self, **values: object) -> Dict[str, object]:
        payload: Dict[str, object] = {"scope_id": self.scope_id, "scope": self.name}
        if self.parent is not None:
            payload["parent_scope_id"] = self.parent.scope_id
        payload.update(self.metadata)
        payload.update(values)
        return payload

    def log(
        self, level: int, message: str, *, extra: Optional[Mapping[str, object]] = None
    ) -> None:
        self.logger.log(level, message, extra=self.extra(**dict(extra or {})))

    def increment(self, counter: str, amount: int = 1) -> int:
        self.counters[counter] = self.counters.get(counter, 0) + amount
        return self.counters[counter]


@contextmanager
def discovery_scope(
    name: str,
    *,
    logger: Optional[logging.Logger] = None,
    extra: Optional[Mapping[str, object]] = None,
) -> Iterator[ScopeContext]:
    """Open a scope logging ``<name>.start`` and ``<name>.finish``.

    The finish record carries ``duration_s`` and a snapshot of the counters.
    Exceptions are logged as ``<name>.error`` and re-raised.
    """

    scope = ScopeContext(
        name=name,
        logger=logger or logging.getLogger("rpcdoc.scope"),
        metadata=dict(extra or {}),
        parent=_ACTIVE.get(),
    )
    token = _ACTIVE.set(scope)
    scope.log(logging.INFO, f"{name}.start")
    try:
        yield scope
    except Exception:
        scope.logger.exception(f"{name}.error", extra=scope.extra())
        raise
    finally:
        _ACTIVE.reset(token)
        scope.log(
            logging.INFO,
            f"{name}.finish",
            extra={"duration_s": scope.elapsed(), "counters": dict(scope.counters)},
        )


def current_scope() -> Optional[ScopeContext]:
    return _ACTIVE.get()


def increment_counter(name: str, amount: int = 1) -> Optional[int]:
    """Bump *name* on the innermost open scope, if any."""

    scope = _ACTIVE.get()
    if scope is None:
        return None
    return scope.increment(name, amount)


__all__ = [
    "LOG_FORMAT",
    "ScopeContext",
    "configure_root",
    "current_scope",
    "discovery_scope",
    "increment_counter",
]
