import pytest

from conftest import RecordingTransport, failure, rows
from cypherpath import (
    AggregateResult,
    DataEvent,
    EndEvent,
    ErrorEvent,
    Statement,
    TransportError,
    execute_statement,
)

STATEMENT = Statement("MATCH (n) RETURN n", {"props": {"id": 1}})


def test_writes_statement_and_commits() -> None:
    transport = RecordingTransport(rows())
    execute_statement(transport, STATEMENT)
    assert len(transport.handles) == 1
    handle = transport.handles[0]
    assert handle.writes == [("MATCH (n) RETURN n", {"props": {"id": 1}})]
    assert handle.committed


def test_collects_data_events_by_column() -> None:
    transport = RecordingTransport(rows({"foo": "bar"}, {"foo": "baz"}))
    result = execute_statement(transport, STATEMENT)
    assert result == {"foo": ["bar", "baz"]}
    assert isinstance(result, AggregateResult)


def test_columns_are_independent() -> None:
    transport = RecordingTransport(rows({"a": 1, "b": 2}, {"b": 3}))
    result = execute_statement(transport, STATEMENT)
    assert result == {"a": [1], "b": [2, 3]}


def test_ignores_empty_data_events() -> None:
    transport = RecordingTransport(rows(None, {}))
    assert execute_statement(transport, STATEMENT) == {}


def test_stream_error_is_raised_with_cause() -> None:
    boom = RuntimeError("foobar")
    transport = RecordingTransport(failure(boom, {"foo": "bar"}))
    with pytest.raises(TransportError) as excinfo:
        execute_statement(transport, STATEMENT)
    assert excinfo.value.cause is boom
    assert excinfo.value.__cause__ is boom
    assert str(excinfo.value) == "foobar"


def test_only_first_error_is_kept() -> None:
    first = RuntimeError("first")
    second = RuntimeError("second")
    transport = RecordingTransport(
        [ErrorEvent(first), DataEvent({"foo": "bar"}), ErrorEvent(second), EndEvent()]
    )
    with pytest.raises(TransportError) as excinfo:
        execute_statement(transport, STATEMENT)
    assert excinfo.value.cause is first
    # The stream is still drained to its terminal event.
    assert transport.handles[0].consumed == 4


def test_transport_error_from_stream_passes_through() -> None:
    original = TransportError("already typed")
    transport = RecordingTransport(failure(original))
    with pytest.raises(TransportError) as excinfo:
        execute_statement(transport, STATEMENT)
    assert excinfo.value is original


def test_open_failure_is_wrapped() -> None:
    class BrokenTransport:
        def open(self):
            raise ConnectionRefusedError("no server")

    with pytest.raises(TransportError) as excinfo:
        execute_statement(BrokenTransport(), STATEMENT)
    assert isinstance(excinfo.value.cause, ConnectionRefusedError)


def test_unknown_event_is_a_transport_error() -> None:
    transport = RecordingTransport([object(), EndEvent()])
    with pytest.raises(TransportError):
        execute_statement(transport, STATEMENT)


def test_events_after_end_are_not_consumed() -> None:
    transport = RecordingTransport([DataEvent({"x": 1}), EndEvent(), DataEvent({"x": 2})])
    assert execute_statement(transport, STATEMENT) == {"x": [1]}
    assert transport.handles[0].consumed == 2


def test_stream_without_end_event_still_completes() -> None:
    transport = RecordingTransport([DataEvent({"x": 1})])
    assert execute_statement(transport, STATEMENT) == {"x": [1]}


def test_aggregate_result_helpers() -> None:
    result = AggregateResult()
    result.add_row({"n": "first"})
    result.add_row({"n": "second"})
    assert result.column("n") == ["first", "second"]
    assert result.column("missing") == []
    assert result.first("n") == "first"
    assert result.first("missing", -1) == -1
