"""Graph client: compile, execute and batch path and mutation operations."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .compiler import (
    Statement,
    compile_node_count,
    compile_node_delete,
    compile_node_upsert,
    compile_path,
    compile_relationship_delete,
    compile_relationship_upsert,
    placeholder,
)
from .config import Neo4jSettings
from .descriptors import ConnectionRef, EdgeDescriptor, NodeDescriptor
from .errors import ClosedError, NotCreatedError
from .executor import AggregateResult, Transport, execute_statement

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")

ConnectionTriple = Tuple[NodeDescriptor, EdgeDescriptor, NodeDescriptor]


def _returned(result: AggregateResult, column: str) -> bool:
    # Entities with no properties arrive as empty mappings and still count.
    return any(value is not None and value is not False for value in result.column(column))


class Graph:
    """Client for a property-graph database reached through a ``Transport``.

    Every operation compiles one statement and runs it in its own
    transaction. Batch operations run their items one after another and
    stop at the first failure.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        parameter_style: str = "dollar",
        skip_malformed_steps: bool = False,
        bind_relationship_props: bool = False,
    ) -> None:
        placeholder("props", parameter_style)
        self._transport = transport
        self._parameter_style = parameter_style
        self._skip_malformed_steps = skip_malformed_steps
        self._bind_relationship_props = bind_relationship_props
        self._closed = False

    @classmethod
    def connect(cls, settings: Optional[Neo4jSettings] = None, **overrides: Any) -> "Graph":
        """Open a graph client over the Neo4j Bolt driver.

        Keyword overrides win over ``settings``, which win over the
        environment and the field defaults.
        """
        from .neo4j_transport import Neo4jTransport

        options = {
            key: overrides.pop(key)
            for key in ("skip_malformed_steps", "bind_relationship_props")
            if key in overrides
        }
        if settings is None:
            settings = Neo4jSettings.from_env(**overrides)
        elif overrides:
            settings = Neo4jSettings.from_env(**{**settings.model_dump(), **overrides})
        return cls(
            Neo4jTransport.from_settings(settings),
            parameter_style=settings.parameter_style,
            **options,
        )

    @property
    def transport(self) -> Transport:
        return self._transport

    def close(self) -> None:
        """Close the client and its transport.

        After closing, every operation raises ClosedError. Calling close()
        again is a no-op.
        """
        if self._closed:
            return
        self._closed = True
        close_fn = getattr(self._transport, "close", None)
        if close_fn is not None:
            close_fn()

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _assert_open(self) -> None:
        if self._closed:
            raise ClosedError("graph client is closed")

    def __enter__(self) -> "Graph":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def query(self, statement: Statement) -> AggregateResult:
        """Run a compiled statement and return its aggregated columns."""
        self._assert_open()
        return execute_statement(self._transport, statement)

    def get_node_count(self, label: str) -> int:
        """Return the number of nodes with ``label``, or -1 if no count came back."""
        logger.debug("Graph.get_node_count %s", label)
        result = self.query(compile_node_count(label))
        counts = result.column("count(*)")
        if not counts:
            logger.debug("Graph.get_node_count %s %d", label, -1)
            return -1
        count = counts[0]
        logger.debug("Graph.get_node_count %s %s", label, count)
        return count

    def get_nodes_with_result(
        self, start: NodeDescriptor, steps: Sequence[Any]
    ) -> Tuple[List[Any], AggregateResult]:
        logger.debug("Graph.get_nodes %s %s", start, steps)
        statement = compile_path(
            start,
            steps,
            parameter_style=self._parameter_style,
            skip_malformed_steps=self._skip_malformed_steps,
        )
        result = self.query(statement)
        nodes = result.column(statement.returns[-1])
        logger.debug("Graph.get_nodes %s %s", result, nodes)
        return nodes, result

    def get_nodes(self, start: NodeDescriptor, steps: Sequence[Any]) -> List[Any]:
        """Follow ``steps`` from ``start`` and return the nodes at the far end.

        Only the column of the last node in the path is returned; use
        get_nodes_with_result() for every bound column.
        """
        nodes, _ = self.get_nodes_with_result(start, steps)
        return nodes

    def write_node(self, node: NodeDescriptor) -> None:
        """Create or update ``node``, keyed by its ``id`` property."""
        logger.debug("Graph.write_node %s", node)
        result = self.query(compile_node_upsert(node, parameter_style=self._parameter_style))
        if not _returned(result, "n"):
            logger.debug("Graph.write_node not created %s", result)
            raise NotCreatedError("node was not created")

    def write_nodes(self, nodes: Iterable[NodeDescriptor]) -> int:
        logger.debug("Graph.write_nodes %s", nodes)
        return self._run_batch("write_nodes", nodes, self.write_node)

    def write_connection(
        self, start: NodeDescriptor, relationship: EdgeDescriptor, end: NodeDescriptor
    ) -> None:
        """Create or update a relationship between two existing nodes."""
        logger.debug("Graph.write_connection %s %s %s", start, relationship, end)
        statement = compile_relationship_upsert(
            start,
            relationship,
            end,
            parameter_style=self._parameter_style,
            bind_relationship_props=self._bind_relationship_props,
        )
        result = self.query(statement)
        if not all(_returned(result, column) for column in ("a", "r", "b")):
            logger.debug("Graph.write_connection not created %s", result)
            raise NotCreatedError("relationship was not created")

    def write_connections(self, connections: Iterable[ConnectionTriple]) -> int:
        logger.debug("Graph.write_connections %s", connections)
        return self._run_batch(
            "write_connections",
            connections,
            lambda conn: self.write_connection(conn[0], conn[1], conn[2]),
        )

    def delete_connection(
        self, start: NodeDescriptor, relationship_label: str, end: NodeDescriptor
    ) -> None:
        logger.debug("Graph.delete_connection %s %s %s", start, relationship_label, end)
        self.query(
            compile_relationship_delete(
                start, relationship_label, end, parameter_style=self._parameter_style
            )
        )

    def delete_connections(self, connections: Iterable[ConnectionRef]) -> int:
        logger.debug("Graph.delete_connections %s", connections)

        def delete(conn: ConnectionRef) -> None:
            start = {"label": conn.get("subject_label"), "props": {"id": conn["subject"]}}
            end = {"label": conn.get("object_label"), "props": {"id": conn["object"]}}
            self.delete_connection(start, conn["predicate"], end)  # type: ignore[arg-type]

        return self._run_batch("delete_connections", connections, delete)

    def delete_node_and_connections(self, node: NodeDescriptor) -> None:
        logger.debug("Graph.delete_node_and_connections %s", node)
        self.query(compile_node_delete(node, parameter_style=self._parameter_style))

    def _run_batch(
        self, name: str, items: Iterable[ItemT], run_one: Callable[[ItemT], None]
    ) -> int:
        self._assert_open()
        done = 0
        for item in items:
            try:
                run_one(item)
            except Exception:
                logger.debug("Graph.%s failed after %d items", name, done)
                raise
            done += 1
        return done
