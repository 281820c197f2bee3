from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pytest

from cypherpath import DataEvent, EndEvent, ErrorEvent, Graph


def rows(*values: Optional[Mapping[str, Any]]) -> List[Any]:
    """Script a successful stream: one DataEvent per row, then EndEvent."""
    return [DataEvent(value) for value in values] + [EndEvent()]


def failure(error: BaseException, *values: Mapping[str, Any]) -> List[Any]:
    """Script a stream that reports ``error`` after the given rows."""
    return [DataEvent(value) for value in values] + [ErrorEvent(error), EndEvent()]


class RecordingHandle:
    def __init__(self, events: Iterable[Any]) -> None:
        self._events = list(events)
        self.writes: List[Tuple[str, Dict[str, Any]]] = []
        self.committed = False
        self.consumed = 0

    def write(self, statement: str, parameters: Mapping[str, Any]) -> None:
        self.writes.append((statement, parameters))

    def commit(self) -> Iterable[Any]:
        self.committed = True
        return self._iterate()

    def _iterate(self) -> Iterable[Any]:
        for event in self._events:
            self.consumed += 1
            yield event


class RecordingTransport:
    """Replays one scripted event list per opened transaction."""

    def __init__(self, *scripts: List[Any]) -> None:
        self._scripts = list(scripts)
        self.handles: List[RecordingHandle] = []
        self.closed = False

    def script(self, *events: Any) -> "RecordingTransport":
        self._scripts.append(list(events))
        return self

    def open(self) -> RecordingHandle:
        events = self._scripts.pop(0) if self._scripts else [EndEvent()]
        handle = RecordingHandle(events)
        self.handles.append(handle)
        return handle

    def close(self) -> None:
        self.closed = True

    @property
    def statements(self) -> List[str]:
        return [statement for handle in self.handles for statement, _ in handle.writes]

    @property
    def parameters(self) -> List[Mapping[str, Any]]:
        return [params for handle in self.handles for _, params in handle.writes]


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def graph(transport: RecordingTransport) -> Graph:
    return Graph(transport)
