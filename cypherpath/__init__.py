"""Compile graph paths and mutations to Cypher and run them transactionally."""

from .client import ConnectionTriple, Graph
from .compiler import (
    IdentifierAllocator,
    Statement,
    build_predicates,
    compile_node_count,
    compile_node_delete,
    compile_node_upsert,
    compile_path,
    compile_relationship_delete,
    compile_relationship_upsert,
)
from .config import Neo4jSettings, get_settings
from .descriptors import ConnectionRef, EdgeDescriptor, In, NodeDescriptor, Out, Step
from .executor import (
    AggregateResult,
    DataEvent,
    EndEvent,
    ErrorEvent,
    TransactionHandle,
    Transport,
    execute_statement,
)
from .errors import (
    # Error types
    ErrorCode,
    CypherPathError,
    TransportError,
    NotCreatedError,
    CompileError,
    PathTooLongError,
    MalformedStepError,
    InvalidDescriptorError,
    ClosedError,
    ConfigurationError,
    wrap_transport_error,
)

__version__ = "0.1.0"

__all__ = [
    "version",
    "Graph",
    "ConnectionTriple",
    "Statement",
    "IdentifierAllocator",
    "build_predicates",
    "compile_path",
    "compile_node_count",
    "compile_node_upsert",
    "compile_node_delete",
    "compile_relationship_upsert",
    "compile_relationship_delete",
    "Neo4jSettings",
    "get_settings",
    "NodeDescriptor",
    "EdgeDescriptor",
    "ConnectionRef",
    "Step",
    "Out",
    "In",
    "AggregateResult",
    "DataEvent",
    "ErrorEvent",
    "EndEvent",
    "Transport",
    "TransactionHandle",
    "execute_statement",
    # Error types
    "ErrorCode",
    "CypherPathError",
    "TransportError",
    "NotCreatedError",
    "CompileError",
    "PathTooLongError",
    "MalformedStepError",
    "InvalidDescriptorError",
    "ClosedError",
    "ConfigurationError",
    "wrap_transport_error",
]


def version() -> str:
    """Return the package version string."""
    return __version__
