"""Error taxonomy shared by the compiler, the executor and the client."""

from __future__ import annotations

from typing import Optional


class ErrorCode:
    """Error codes carried by every cypherpath exception."""
    UNKNOWN = "UNKNOWN"
    TRANSPORT = "TRANSPORT"
    NOT_CREATED = "NOT_CREATED"
    COMPILE = "COMPILE"
    PATH_TOO_LONG = "PATH_TOO_LONG"
    MALFORMED_STEP = "MALFORMED_STEP"
    INVALID_DESCRIPTOR = "INVALID_DESCRIPTOR"
    CLOSED = "CLOSED"
    CONFIG = "CONFIG"


class CypherPathError(Exception):
    """Base exception class for all cypherpath errors."""

    def __init__(self, message: str, code: str = ErrorCode.UNKNOWN):
        super().__init__(message)
        self.code = code


class TransportError(CypherPathError):
    """Error reported by the transport while a statement was running.

    The original exception (driver error, stream error event) is kept on
    ``cause`` and chained as ``__cause__`` when raised.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, ErrorCode.TRANSPORT)
        self.cause = cause


class NotCreatedError(CypherPathError):
    """Error raised when an upsert did not return the written entity."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.NOT_CREATED)


class CompileError(CypherPathError):
    """Error raised when a description cannot be compiled into a statement."""

    def __init__(self, message: str, code: str = ErrorCode.COMPILE):
        super().__init__(message, code)


class PathTooLongError(CompileError):
    """Error raised when a path needs more identifiers than the pool holds."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.PATH_TOO_LONG)


class MalformedStepError(CompileError):
    """Error raised when a step is neither ``Out`` nor ``In``."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.MALFORMED_STEP)


class InvalidDescriptorError(CompileError):
    """Error raised when a node or edge descriptor has an unusable shape."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.INVALID_DESCRIPTOR)


class ClosedError(CypherPathError):
    """Error raised when operations are attempted on a closed graph client."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CLOSED)


class ConfigurationError(CypherPathError):
    """Error raised when connection settings cannot be used."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG)


def wrap_transport_error(err: BaseException) -> CypherPathError:
    """Return a typed exception for an error raised by the transport.

    Errors that are already cypherpath errors pass through unchanged so a
    transport may raise its own ``TransportError`` without double wrapping.

    Args:
        err: The exception reported by the transport

    Returns:
        A ``TransportError`` carrying ``err`` as its cause, or ``err`` itself
    """
    if isinstance(err, CypherPathError):
        return err
    message = str(err) or type(err).__name__
    return TransportError(message, cause=err)
