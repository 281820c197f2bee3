from cypherpath import (
    ClosedError,
    CompileError,
    ConfigurationError,
    CypherPathError,
    ErrorCode,
    InvalidDescriptorError,
    MalformedStepError,
    NotCreatedError,
    PathTooLongError,
    TransportError,
    wrap_transport_error,
)


# ============================================================================
# Error Class Hierarchy Tests
# ============================================================================


def test_error_code_constants_defined() -> None:
    assert ErrorCode.UNKNOWN == "UNKNOWN"
    assert ErrorCode.TRANSPORT == "TRANSPORT"
    assert ErrorCode.NOT_CREATED == "NOT_CREATED"
    assert ErrorCode.PATH_TOO_LONG == "PATH_TOO_LONG"
    assert ErrorCode.MALFORMED_STEP == "MALFORMED_STEP"
    assert ErrorCode.CLOSED == "CLOSED"


def test_base_error_defaults() -> None:
    err = CypherPathError("test message")
    assert str(err) == "test message"
    assert err.code == ErrorCode.UNKNOWN
    assert isinstance(err, Exception)


def test_transport_error_code() -> None:
    cause = OSError("reset")
    err = TransportError("reset", cause=cause)
    assert err.code == ErrorCode.TRANSPORT
    assert err.cause is cause
    assert isinstance(err, CypherPathError)


def test_not_created_error_code() -> None:
    err = NotCreatedError("node was not created")
    assert err.code == ErrorCode.NOT_CREATED
    assert isinstance(err, CypherPathError)


def test_compile_errors_share_a_base() -> None:
    assert PathTooLongError("x").code == ErrorCode.PATH_TOO_LONG
    assert MalformedStepError("x").code == ErrorCode.MALFORMED_STEP
    assert InvalidDescriptorError("x").code == ErrorCode.INVALID_DESCRIPTOR
    for cls in (PathTooLongError, MalformedStepError, InvalidDescriptorError):
        assert issubclass(cls, CompileError)


def test_closed_and_config_error_codes() -> None:
    assert ClosedError("closed").code == ErrorCode.CLOSED
    assert ConfigurationError("bad").code == ErrorCode.CONFIG


# ============================================================================
# wrap_transport_error Tests
# ============================================================================


def test_wrap_transport_error_wraps_foreign_errors() -> None:
    cause = RuntimeError("foobar")
    err = wrap_transport_error(cause)
    assert isinstance(err, TransportError)
    assert err.cause is cause
    assert str(err) == "foobar"


def test_wrap_transport_error_uses_type_name_for_empty_message() -> None:
    err = wrap_transport_error(TimeoutError())
    assert str(err) == "TimeoutError"


def test_wrap_transport_error_preserves_typed_errors() -> None:
    original = NotCreatedError("node was not created")
    assert wrap_transport_error(original) is original
