"""Build OpenRPC method records from registered callables."""
from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..rpc.context import is_context_type
from ..utils.errors import DeclarationMismatchError, DiscoveryError
from ..utils.logging import increment_counter
from .descriptors import make_content_descriptor
from .symbols import Declaration, Field, full_name
from .types import ContentDescriptor, ExternalDocs, Method, Schema

logger = logging.getLogger("rpcdoc.methods")

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


@dataclass(frozen=True)
class ArgSlot:
    name: str
    type: Any
    required: bool


def null_result() -> ContentDescriptor:
    return ContentDescriptor(
        name="null",
        description="Null",
        schema=Schema(type=["null"], description="Null"),
    )


def _type_hints(fn: Any, method: str) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(inspect.unwrap(fn))
    except (NameError, TypeError) as exc:
        raise DiscoveryError(f"cannot resolve annotations of {method}: {exc}", method=method) from exc


def _annotation(hints: Dict[str, Any], name: str, annotation: Any) -> Any:
    if name in hints:
        return hints[name]
    if annotation is inspect.Parameter.empty or isinstance(annotation, str):
        return Any
    return annotation


def arg_types(fn: Any, *, method: str, skip_receiver: bool) -> List[ArgSlot]:
    """Positional argument slots of *fn* that become published parameters."""

    return _signature_slots(fn, method=method, skip_receiver=skip_receiver)[0]


def _signature_slots(
    fn: Any, *, method: str, skip_receiver: bool
) -> Tuple[List[ArgSlot], bool]:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError) as exc:
        raise DiscoveryError(f"cannot inspect signature of {method}: {exc}", method=method) from exc
    hints = _type_hints(fn, method)
    slots: List[ArgSlot] = []
    for parameter in signature.parameters.values():
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            raise DeclarationMismatchError(
                f"{method} accepts *{parameter.name}; positional parameters cannot be correlated",
                method=method,
            )
        if parameter.kind not in _POSITIONAL:
            continue
        slots.append(
            ArgSlot(
                name=parameter.name,
                type=_annotation(hints, parameter.name, parameter.annotation),
                required=parameter.default is inspect.Parameter.empty,
            )
        )
    if skip_receiver and slots:
        slots = slots[1:]
    takes_context = bool(slots) and is_context_type(slots[0].type)
    if takes_context:
        slots = slots[1:]
    return slots, takes_context


def ret_types(fn: Any, *, method: str) -> List[Any]:
    """Result slots of *fn*: empty when it returns nothing or is unannotated."""

    hints = _type_hints(fn, method)
    if "return" in hints:
        tp = hints["return"]
    else:
        annotation = inspect.signature(fn).return_annotation
        if annotation is inspect.Signature.empty or isinstance(annotation, str):
            return []
        tp = annotation
    if tp is None or tp is type(None):
        return []
    return [tp]


def is_error_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, BaseException)


def is_deprecated(fn: Any) -> bool:
    for candidate in (fn, inspect.unwrap(fn)):
        if getattr(candidate, "__deprecated__", None) is not None:
            return True
    return False


def _declared_params(
    declaration: Declaration, slots: List[ArgSlot], takes_context: bool
) -> List[Field]:
    """Declared fields aligned with *slots*.

    The context field is dropped by position. Manifests may leave it out,
    in which case the declaration already lines up with the slots.
    """

    fields = list(declaration.params)
    declared = sum(max(len(item.names), 1) for item in fields)
    if takes_context and fields and declared > len(slots):
        fields = fields[1:]
        increment_counter("context_params")
    return fields


def build_method(
    name: str,
    receiver: Any,
    fn: Any,
    declaration: Declaration,
    *,
    include_source: bool = False,
) -> Method:
    """Describe one registered callable.

    Raises a :class:`DiscoveryError` subclass when the declaration cannot be
    correlated with the runtime signature or a type has no schema.
    """

    if declaration.variadic:
        raise DeclarationMismatchError(
            f"{name} accepts *args; positional parameters cannot be correlated", method=name
        )

    slots, takes_context = _signature_slots(fn, method=name, skip_receiver=receiver is not None)
    fields = _declared_params(declaration, slots, takes_context)

    params: List[ContentDescriptor] = []
    cursor = 0
    for item in fields:
        for name_index in range(max(len(item.names), 1)):
            if cursor >= len(slots):
                raise DeclarationMismatchError(
                    f"{name} declares more parameters than its signature accepts "
                    f"({len(fields)} declared, {len(slots)} in signature)",
                    method=name,
                )
            slot = slots[cursor]
            params.append(
                make_content_descriptor(
                    slot.type,
                    item,
                    f"{name}Parameter{cursor}",
                    name_index=name_index,
                    required=slot.required,
                )
            )
            cursor += 1
    if cursor != len(slots):
        raise DeclarationMismatchError(
            f"{name} signature accepts {len(slots)} parameters but {cursor} are declared",
            method=name,
        )

    result: Optional[ContentDescriptor] = None
    for index, tp in enumerate(ret_types(fn, method=name)):
        if is_error_type(tp):
            increment_counter("error_results")
            continue
        if result is not None:
            logger.warning("method.extra_result", extra={"method": name, "position": index})
            increment_counter("extra_results")
            continue
        item = declaration.results[index] if index < len(declaration.results) else Field()
        result = make_content_descriptor(tp, item, f"{name}Result{index}")

    method = Method(
        name=name,
        summary=declaration.doc,
        external_docs=ExternalDocs(
            description=full_name(fn),
            url=f"file://{declaration.filename}:{declaration.lineno}",
        ),
        params=params,
        result=result if result is not None else null_result(),
        deprecated=is_deprecated(fn),
    )
    if include_source:
        method.description = f"```\n{declaration.body_source()}\n```"
    return method


__all__ = [
    "ArgSlot",
    "arg_types",
    "build_method",
    "is_deprecated",
    "is_error_type",
    "null_result",
    "ret_types",
]
