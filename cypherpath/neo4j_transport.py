"""Transport backed by the official Neo4j Bolt driver."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from neo4j import Driver, GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

from .config import Neo4jSettings
from .errors import TransportError
from .executor import DataEvent, EndEvent, ErrorEvent, Event

logger = logging.getLogger(__name__)


class Neo4jTransaction:
    """Explicit driver transaction that queues writes until ``commit``.

    The session is opened lazily when the event stream is first iterated and
    is closed on every path. The driver transaction is committed once all
    rows were read, and rolled back when the stream reports an error.
    """

    def __init__(self, driver: Driver, database: Optional[str] = None) -> None:
        self._driver = driver
        self._database = database
        self._writes: List[Tuple[str, Dict[str, Any]]] = []
        self._committed = False

    def write(self, statement: str, parameters: Mapping[str, Any]) -> None:
        if self._committed:
            raise TransportError("transaction already committed")
        self._writes.append((statement, dict(parameters or {})))

    def commit(self) -> Iterator[Event]:
        if self._committed:
            raise TransportError("transaction already committed")
        self._committed = True
        return self._stream()

    def _stream(self) -> Iterator[Event]:
        session_kwargs: Dict[str, Any] = {}
        if self._database:
            session_kwargs["database"] = self._database
        session = self._driver.session(**session_kwargs)
        tx = None
        try:
            tx = session.begin_transaction()
            for statement, parameters in self._writes:
                for record in tx.run(statement, parameters):
                    yield DataEvent(record.data())
            tx.commit()
        except (Neo4jError, DriverError) as err:
            logger.debug("Neo4jTransaction error %r", err)
            yield ErrorEvent(err)
        finally:
            if tx is not None and not tx.closed():
                tx.close()
            session.close()
        yield EndEvent()


class Neo4jTransport:
    """Opens one explicit Neo4j transaction per ``open()`` call."""

    def __init__(
        self,
        uri: Optional[str] = None,
        *,
        auth: Optional[Tuple[str, str]] = None,
        database: Optional[str] = None,
        driver: Optional[Driver] = None,
    ) -> None:
        if driver is None:
            if not uri:
                raise TypeError("Neo4jTransport requires a uri or an existing driver")
            driver = GraphDatabase.driver(uri, auth=auth)
            self._owns_driver = True
        else:
            self._owns_driver = False
        self._driver = driver
        self._database = database
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Neo4jSettings) -> "Neo4jTransport":
        return cls(settings.uri, auth=settings.auth(), database=settings.database)

    @property
    def driver(self) -> Driver:
        return self._driver

    def open(self) -> Neo4jTransaction:
        if self._closed:
            raise TransportError("transport is closed")
        return Neo4jTransaction(self._driver, self._database)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_driver:
            self._driver.close()
