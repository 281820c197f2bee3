"""Run one compiled statement per transaction and fold the streamed rows."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from typing_extensions import Protocol

from .compiler import Statement
from .errors import wrap_transport_error

logger = logging.getLogger(__name__)


class DataEvent:
    """One streamed row: a mapping from column name to a single value."""

    __slots__ = ("row",)

    def __init__(self, row: Optional[Mapping[str, Any]]):
        self.row = row

    def __repr__(self) -> str:
        return f"DataEvent({self.row!r})"


class ErrorEvent:
    """An error reported by the stream. Only the first one is kept."""

    __slots__ = ("error",)

    def __init__(self, error: BaseException):
        self.error = error

    def __repr__(self) -> str:
        return f"ErrorEvent({self.error!r})"


class EndEvent:
    """Terminal event of a statement's stream."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "EndEvent()"


Event = Union[DataEvent, ErrorEvent, EndEvent]


class TransactionHandle(Protocol):
    def write(self, statement: str, parameters: Mapping[str, Any]) -> None:
        """Queue a statement; nothing is sent until ``commit``."""

    def commit(self) -> Iterable[Event]:
        """Flush queued writes and return the row-event stream."""


class Transport(Protocol):
    def open(self) -> TransactionHandle:
        """Start a new transaction."""


class AggregateResult(dict):
    """Column-oriented rows: each column name maps to its values in order."""

    def add_row(self, row: Mapping[str, Any]) -> None:
        for key, value in row.items():
            self.setdefault(key, []).append(value)

    def column(self, name: str) -> List[Any]:
        values = self.get(name) or []
        if not isinstance(values, list):
            raise TypeError(f"column '{name}' must be a list")
        return values

    def first(self, name: str, default: Any = None) -> Any:
        values = self.column(name)
        return values[0] if values else default


def execute_statement(transport: Transport, statement: Statement) -> AggregateResult:
    """Run ``statement`` in its own transaction and return the folded rows.

    Rows are aggregated in receipt order until the terminal event. If the
    stream reported an error, or the transport raised while opening, writing
    or streaming, the first such error is raised as a ``TransportError`` and
    the partial aggregate is discarded.
    """
    logger.debug("execute_statement %s params=%s", statement.text, sorted(statement.parameters))
    result = AggregateResult()
    captured: Optional[BaseException] = None
    try:
        handle = transport.open()
        handle.write(statement.text, statement.parameters)
        for event in handle.commit():
            if isinstance(event, EndEvent):
                break
            if isinstance(event, ErrorEvent):
                if captured is None:
                    logger.debug("execute_statement error %r", event.error)
                    captured = event.error
            elif isinstance(event, DataEvent):
                if event.row:
                    result.add_row(event.row)
            else:
                raise TypeError(f"unexpected transport event {event!r}")
    except Exception as err:  # noqa: BLE001
        if captured is None:
            logger.debug("execute_statement transport raised %r", err)
            captured = err

    if captured is not None:
        wrapped = wrap_transport_error(captured)
        if wrapped is captured:
            raise wrapped
        raise wrapped from captured
    return result
