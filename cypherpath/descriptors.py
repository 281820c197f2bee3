"""Descriptor types and normalization helpers for path and mutation compilers."""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional, Union

from typing_extensions import NotRequired, TypedDict

from .errors import InvalidDescriptorError, MalformedStepError

Scalar = Union[str, int, float, bool, None]

_PLAIN_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class NodeDescriptor(TypedDict):
    """Vertex pattern: a label plus optional equality properties."""

    label: str
    props: NotRequired[Optional[Mapping[str, Scalar]]]


class EdgeDescriptor(TypedDict):
    """Relationship pattern: a type label plus optional equality properties."""

    label: str
    props: NotRequired[Optional[Mapping[str, Scalar]]]


class ConnectionRef(TypedDict):
    """Bare reference to a relationship between two identified nodes."""

    subject: Any
    predicate: str
    object: Any
    subject_label: NotRequired[str]
    object_label: NotRequired[str]


class Step:
    """One directional hop of a path. Use the ``Out`` or ``In`` variant."""

    __slots__ = ("edge", "node")

    direction = ""

    def __init__(self, edge: EdgeDescriptor, node: NodeDescriptor):
        if type(self) is Step:
            raise TypeError("Step is abstract; use Out or In")
        self.edge = edge
        self.node = node

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Step):
            return NotImplemented
        return (
            self.direction == other.direction
            and self.edge == other.edge
            and self.node == other.node
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(edge={self.edge!r}, node={self.node!r})"


class Out(Step):
    """Hop from the previous node to ``node`` along ``edge``."""

    __slots__ = ()
    direction = "Out"


class In(Step):
    """Hop from ``node`` to the previous node along ``edge``."""

    __slots__ = ()
    direction = "In"


_STEP_VARIANTS = {"Out": Out, "In": In}


def quote_name(name: str) -> str:
    """Return a label or property key as it must appear in Cypher text."""
    if _PLAIN_NAME.match(name):
        return name
    return "`" + name.replace("`", "``") + "`"


def _normalize_props(props: Any, ctx: str) -> Optional[Dict[str, Scalar]]:
    if props is None:
        return None
    if not isinstance(props, Mapping):
        raise InvalidDescriptorError(f"props for {ctx} must be a mapping")
    normalized: Dict[str, Scalar] = {}
    for key, value in props.items():
        if not isinstance(key, str) or not key.strip():
            raise InvalidDescriptorError(f"{ctx} contains an invalid property name")
        normalized[key] = value
    return normalized


def normalize_descriptor(
    descriptor: Any, ctx: str, *, require_label: bool = True
) -> Dict[str, Any]:
    """Validate a node or edge descriptor and return a private copy.

    The copy is what compilers work on; caller-owned mappings are never
    written to.
    """
    if not isinstance(descriptor, Mapping):
        raise InvalidDescriptorError(f"{ctx} must be a mapping with a 'label'")
    label = descriptor.get("label")
    props = _normalize_props(descriptor.get("props"), ctx)
    if label is None and not require_label:
        return {"label": None, "props": props}
    if not isinstance(label, str) or not label.strip():
        raise InvalidDescriptorError(f"{ctx} requires a non-empty string label")
    return {"label": label, "props": props}


def normalize_step(step: Any, index: int) -> Optional[Step]:
    """Coerce a step into an ``Out``/``In`` variant.

    Accepts variant instances and single-key mappings such as
    ``{"Out": {"edge": ..., "node": ...}}``. Returns ``None`` for shapes that
    match neither variant so callers can decide whether to skip or fail.
    """
    if isinstance(step, Step):
        return step
    if not isinstance(step, Mapping):
        return None
    for key, variant in _STEP_VARIANTS.items():
        payload = step.get(key)
        if payload:
            if not isinstance(payload, Mapping):
                raise MalformedStepError(f"step {index}: '{key}' must be a mapping")
            edge = payload.get("edge")
            node = payload.get("node")
            if edge is None or node is None:
                raise MalformedStepError(
                    f"step {index}: '{key}' requires both 'edge' and 'node'"
                )
            return variant(edge, node)
    return None
