"""Compile path and mutation descriptions into parameterized Cypher statements."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from .descriptors import (
    EdgeDescriptor,
    NodeDescriptor,
    normalize_descriptor,
    normalize_step,
    quote_name,
)
from .errors import CompileError, MalformedStepError, PathTooLongError

logger = logging.getLogger(__name__)

ParameterBag = Dict[str, Any]

PARAMETER_STYLES = ("dollar", "braces")

IDENTIFIER_POOL: Tuple[str, ...] = ("a", "b", "c", "d", "e", "f", "g")


class Statement(NamedTuple):
    """Compiled statement text plus the parameter bag it references."""

    text: str
    parameters: ParameterBag
    returns: Tuple[str, ...] = ()


class PredicateGroup(NamedTuple):
    predicates: List[str]
    bag_name: Optional[str]
    bag_value: Optional[Dict[str, Any]]


class _StepFragment(NamedTuple):
    pattern: str
    edge_id: str
    node_id: str
    edge_predicates: PredicateGroup
    node_predicates: PredicateGroup


class IdentifierAllocator:
    """Hands out the single-letter names that label pattern elements.

    Names are given first come, first served and never reused within one
    allocator. Each compilation owns its own allocator.
    """

    def __init__(self, pool: Sequence[str] = IDENTIFIER_POOL) -> None:
        self._pool = tuple(pool)
        self._allocated: List[str] = []

    @property
    def allocated(self) -> List[str]:
        return list(self._allocated)

    def allocate(self) -> str:
        if len(self._allocated) >= len(self._pool):
            raise PathTooLongError(
                f"path too long: identifier pool of {len(self._pool)} exhausted"
            )
        name = self._pool[len(self._allocated)]
        self._allocated.append(name)
        return name


def placeholder(bag_name: str, parameter_style: str = "dollar") -> str:
    """Render a reference to a parameter bag in the requested style."""
    if parameter_style == "dollar":
        return "$" + bag_name
    if parameter_style == "braces":
        return "{" + bag_name + "}"
    raise CompileError(
        f"unknown parameter style {parameter_style!r}; expected one of {PARAMETER_STYLES}"
    )


def build_predicates(
    var: str,
    props: Optional[Mapping[str, Any]],
    bag_name: str,
    parameter_style: str = "dollar",
) -> PredicateGroup:
    """Return one ``var.key=<bag>.key`` equality per property, in key order."""
    if not props:
        return PredicateGroup([], None, None)
    ref = placeholder(bag_name, parameter_style)
    predicates = []
    for key in props:
        name = quote_name(key)
        predicates.append(f"{var}.{name}={ref}.{name}")
    return PredicateGroup(predicates, bag_name, dict(props))


def _compile_step(
    step: Any,
    index: int,
    allocator: IdentifierAllocator,
    parameter_style: str,
) -> _StepFragment:
    edge = normalize_descriptor(step.edge, f"step {index} edge")
    node = normalize_descriptor(step.node, f"step {index} node")
    edge_id = allocator.allocate()
    node_id = allocator.allocate()
    edge_label = quote_name(edge["label"])
    node_label = quote_name(node["label"])
    if step.direction == "Out":
        pattern = f"-[{edge_id}:{edge_label}]->({node_id}:{node_label})"
    else:
        pattern = f"<-[{edge_id}:{edge_label}]-({node_id}:{node_label})"
    return _StepFragment(
        pattern,
        edge_id,
        node_id,
        build_predicates(edge_id, edge["props"], f"{edge_id}Props", parameter_style),
        build_predicates(node_id, node["props"], f"{node_id}Props", parameter_style),
    )


def compile_path(
    start: NodeDescriptor,
    steps: Sequence[Any],
    *,
    parameter_style: str = "dollar",
    skip_malformed_steps: bool = False,
) -> Statement:
    """Compile a start node and a list of ``Out``/``In`` steps into a MATCH.

    The statement returns every bound identifier in allocation order. Start
    properties bind to ``props``; step properties bind to ``<id>Props``.

    Raises:
        MalformedStepError: a step is neither ``Out`` nor ``In`` and
            ``skip_malformed_steps`` is false
        PathTooLongError: the path needs more than seven identifiers
    """
    placeholder("props", parameter_style)  # rejects unknown styles up front
    allocator = IdentifierAllocator()
    start_node = normalize_descriptor(start, "path start")
    root = allocator.allocate()
    match = f"MATCH ({root}:{quote_name(start_node['label'])})"

    start_group = build_predicates(root, start_node["props"], "props", parameter_style)
    where = list(start_group.predicates)
    parameters: ParameterBag = {"props": start_node["props"]}

    for index, raw in enumerate(steps):
        step = normalize_step(raw, index)
        if step is None:
            if skip_malformed_steps:
                logger.debug("compile_path skipping malformed step %d: %r", index, raw)
                continue
            raise MalformedStepError(f"step {index} must be an Out or In step, got {raw!r}")
        fragment = _compile_step(step, index, allocator, parameter_style)
        match += fragment.pattern
        for group in (fragment.edge_predicates, fragment.node_predicates):
            if group.bag_name is None:
                continue
            where.extend(group.predicates)
            parameters[group.bag_name] = group.bag_value

    lines = [match]
    if where:
        lines.append("WHERE " + " AND ".join(where))
    lines.append("RETURN " + ",".join(allocator.allocated))
    return Statement("\n".join(lines), parameters, tuple(allocator.allocated))


def _identity_pattern(var: str, label: Optional[str], bag_name: str, parameter_style: str) -> str:
    ref = placeholder(bag_name, parameter_style)
    if label is None:
        return f"({var} {{id: {ref}.id}})"
    return f"({var}:{quote_name(label)} {{id: {ref}.id}})"


def _literal_text(value: Any) -> str:
    if value is None:
        text = "null"
    elif isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def compile_node_count(label: str) -> Statement:
    node = normalize_descriptor({"label": label}, "count label")
    return Statement(f"MATCH (n:{quote_name(node['label'])}) RETURN count(*)", {}, ("count(*)",))


def compile_node_upsert(node: NodeDescriptor, *, parameter_style: str = "dollar") -> Statement:
    """MERGE a node on its ``id`` property and set every other property.

    Identical SET lists are applied on create and on match, so the write is
    idempotent.
    """
    normalized = normalize_descriptor(node, "node")
    props = normalized["props"]
    ref = placeholder("props", parameter_style)
    assignments = []
    for key in props or {}:
        if key == "id":
            continue
        name = quote_name(key)
        assignments.append(f"n.{name} = {ref}.{name}")

    lines = ["MERGE " + _identity_pattern("n", normalized["label"], "props", parameter_style)]
    if assignments:
        joined = ", ".join(assignments)
        lines.append("ON CREATE SET " + joined)
        lines.append("ON MATCH SET " + joined)
    lines.append("RETURN n")
    return Statement("\n".join(lines), {"props": props}, ("n",))


def compile_relationship_upsert(
    start: NodeDescriptor,
    relationship: EdgeDescriptor,
    end: NodeDescriptor,
    *,
    parameter_style: str = "dollar",
    bind_relationship_props: bool = False,
) -> Statement:
    """MERGE a relationship between two nodes matched by ``id``.

    Relationship properties are written as quoted literals unless
    ``bind_relationship_props`` is set, in which case they bind to
    ``relProps``.
    """
    start_node = normalize_descriptor(start, "relationship start")
    rel = normalize_descriptor(relationship, "relationship")
    end_node = normalize_descriptor(end, "relationship end")

    lines = [
        "MATCH "
        + _identity_pattern("a", start_node["label"], "startProps", parameter_style)
        + ","
        + _identity_pattern("b", end_node["label"], "endProps", parameter_style),
        f"MERGE (a)-[r:{quote_name(rel['label'])}]->(b)",
    ]
    parameters: ParameterBag = {
        "startProps": start_node["props"],
        "endProps": end_node["props"],
    }

    rel_props = rel["props"]
    if rel_props:
        if bind_relationship_props:
            ref = placeholder("relProps", parameter_style)
            assignments = [f"r.{quote_name(key)} = {ref}.{quote_name(key)}" for key in rel_props]
            parameters["relProps"] = rel_props
        else:
            assignments = [f"r.{quote_name(key)}={_literal_text(value)}" for key, value in rel_props.items()]
        joined = ", ".join(assignments)
        lines.append("ON CREATE SET " + joined)
        lines.append("ON MATCH SET " + joined)

    lines.append("RETURN a,r,b")
    return Statement("\n".join(lines), parameters, ("a", "r", "b"))


def compile_relationship_delete(
    start: NodeDescriptor,
    relationship_label: str,
    end: NodeDescriptor,
    *,
    parameter_style: str = "dollar",
) -> Statement:
    # Endpoints built from a ConnectionRef may carry no label.
    start_node = normalize_descriptor(start, "relationship start", require_label=False)
    rel = normalize_descriptor({"label": relationship_label}, "relationship")
    end_node = normalize_descriptor(end, "relationship end", require_label=False)
    text = "\n".join(
        [
            "MATCH "
            + _identity_pattern("a", start_node["label"], "startProps", parameter_style)
            + f"-[r:{quote_name(rel['label'])}]->"
            + _identity_pattern("b", end_node["label"], "endProps", parameter_style),
            "DELETE r",
        ]
    )
    return Statement(text, {"startProps": start_node["props"], "endProps": end_node["props"]})


def compile_node_delete(node: NodeDescriptor, *, parameter_style: str = "dollar") -> Statement:
    normalized = normalize_descriptor(node, "node")
    text = "\n".join(
        [
            "MATCH " + _identity_pattern("n", normalized["label"], "props", parameter_style),
            "OPTIONAL MATCH (n)-[r]-()",
            "DELETE n,r",
        ]
    )
    return Statement(text, {"props": normalized["props"]})
