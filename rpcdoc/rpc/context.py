"""Per-call context handed to RPC methods that ask for it."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(slots=True)
class Context:
    """Injected as the leading argument of methods annotated with it.

    Discovery never publishes this parameter.
    """

    method: str
    request_id: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def is_context_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, Context)


__all__ = ["Context", "is_context_type"]
