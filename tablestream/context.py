"""Callback context handed to processor callbacks for each consumed message."""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from concurrent.futures import CancelledError, Future
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from .graph import GroupGraph, loop_name, table_name
from .headers import Headers, RecordHeader

Emitter = Callable[[str, str, "bytes | None", "Headers | None"], Future]


class CallbackFailure(Exception):
    """Raised to stop a callback immediately and shut down the processor."""

    def __init__(self, err: BaseException) -> None:
        super().__init__(err)
        self.err = err
        self.__cause__ = err

    def __str__(self) -> str:
        return str(self.err)


class Table(Protocol):
    """The partition storage of a group table or joined table."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...

    def set_offset(self, offset: int) -> None: ...

    def track_message_write(self, size: int) -> None: ...


class View(Protocol):
    """A lookup table returning decoded values."""

    def get(self, key: str) -> Any: ...


@dataclass
class Message:
    """The consumed message a callback is invoked for."""

    key: str = ""
    timestamp: datetime | None = None
    topic: str = ""
    offset: int = 0
    partition: int = 0
    headers: list[RecordHeader] = field(default_factory=list)
    value: bytes | None = None


@dataclass
class Counters:
    """Number of emits started, emits finished and storage writes."""

    emits: int = 0
    dones: int = 0
    stores: int = 0


_STATELESS = "Cannot access state in stateless processor"


def _future_error(future: Future) -> BaseException | None:
    if future.cancelled():
        return CancelledError()
    return future.exception()


class Context:
    """Access to the group table, joins, lookups and emits within a callback.

    The message is committed once the callback has finished and every emit
    it started has succeeded. If any emit fails, ``async_failer`` is called
    instead. Synchronous misuse calls ``sync_failer`` and then raises
    :class:`CallbackFailure`.
    """

    def __init__(
        self,
        graph: GroupGraph | None = None,
        message: Message | None = None,
        *,
        emitter: Emitter | None = None,
        commit: Callable[[], None] | None = None,
        default_headers: Mapping[str, bytes] | None = None,
        async_failer: Callable[[BaseException], None] | None = None,
        sync_failer: Callable[[BaseException], None] | None = None,
        table: Table | None = None,
        pviews: Mapping[str, Table] | None = None,
        views: Mapping[str, View] | None = None,
        track_output_stats: Callable[[str, int], None] | None = None,
    ) -> None:
        self.graph = graph
        self.message = message if message is not None else Message()
        self._emitter = emitter
        self._commit = commit or (lambda: None)
        self._default_headers = Headers(default_headers or {})
        self._async_failer = async_failer
        self._sync_failer = sync_failer
        self._table = table
        self._pviews = pviews
        self._views = views
        self._track_output_stats = track_output_stats or (lambda topic, size: None)
        self._headers: Headers | None = None
        self._done = False
        self._lock = threading.RLock()
        self.counters = Counters()
        self.errors: list[BaseException] = []
        self.completed = threading.Event()

    # message accessors

    def topic(self) -> str:
        """Return the topic of the input message."""
        return self.message.topic

    def key(self) -> str:
        """Return the key of the input message."""
        return self.message.key

    def partition(self) -> int:
        """Return the partition of the input message."""
        return self.message.partition

    def offset(self) -> int:
        """Return the offset of the input message."""
        return self.message.offset

    def group(self) -> str:
        """Return the group of the processor."""
        return self._require_graph().group()

    def timestamp(self) -> datetime | None:
        """Return the timestamp of the input message."""
        return self.message.timestamp

    def headers(self) -> Headers:
        """Return the headers of the input message."""
        if self._headers is None:
            self._headers = Headers.from_records(self.message.headers)
        return self._headers

    # state

    def value(self) -> Any:
        """Return the value of the message's key in the group table."""
        try:
            return self._value_for_key(self.key())
        except CallbackFailure:
            raise
        except Exception as err:
            self.fail(err)

    def set_value(self, value: Any, headers: Mapping[str, bytes] | None = None) -> None:
        """Store ``value`` for the message's key and send it to the table topic."""
        try:
            self._set_value_for_key(self.key(), value, headers)
        except CallbackFailure:
            raise
        except Exception as err:
            self.fail(err)

    def delete(self, headers: Mapping[str, bytes] | None = None) -> None:
        """Delete the message's key from local storage and the table topic."""
        try:
            self._delete_key(self.key(), headers)
        except CallbackFailure:
            raise
        except Exception as err:
            self.fail(err)

    def join(self, topic: str) -> Any:
        """Return the value of the message's key in a copartitioned table."""
        view = (self._pviews or {}).get(topic)
        if view is None:
            self.fail(LookupError(f"table {topic} not subscribed"))
        key = self.key()
        try:
            data = view.get(key)
        except Exception as err:
            self.fail(RuntimeError(f"error getting key {key} of table {topic}: {err}"))
        if data is None:
            return None
        try:
            return self._require_graph().codec(topic).decode(data)
        except Exception as err:
            self.fail(ValueError(f"error decoding value key {key} of table {topic}: {err}"))

    def lookup(self, topic: str, key: str) -> Any:
        """Return the value of ``key`` in the lookup table ``topic``."""
        view = (self._views or {}).get(topic)
        if view is None:
            self.fail(LookupError(f"topic {topic} not subscribed"))
        try:
            return view.get(key)
        except Exception as err:
            self.fail(RuntimeError(f"error getting key {key} of table {topic}: {err}"))

    # emitting

    def emit(
        self,
        topic: str,
        key: str,
        value: Any,
        headers: Mapping[str, bytes] | None = None,
    ) -> None:
        """Asynchronously write ``value`` for ``key`` into an output topic."""
        graph = self._require_graph()
        if topic == "":
            self.fail(ValueError("cannot emit to empty topic"))
        if loop_name(graph.group()) == topic:
            self.fail(ValueError("cannot emit to loop topic (use Loopback instead)"))
        if table_name(graph.group()) == topic:
            self.fail(ValueError("cannot emit to table topic (use SetValue instead)"))
        if not graph.is_output_topic(topic):
            self.fail(
                ValueError(
                    f"topic {topic} is not configured for output. "
                    "Did you specify output(..) when defining the processor?"
                )
            )
        codec = graph.codec(topic)
        if codec is None:
            self.fail(LookupError(f"no codec for topic {topic}"))

        data = None
        if value is not None:
            try:
                data = codec.encode(value)
            except Exception as err:
                self.fail(ValueError(f"error encoding message for topic {topic}: {err}"))

        self._emit(topic, key, data, headers)

    def loopback(
        self, key: str, value: Any, headers: Mapping[str, bytes] | None = None
    ) -> None:
        """Asynchronously send ``value`` to ``key`` via the group's loop topic."""
        edge = self._require_graph().loop_stream()
        if edge is None:
            self.fail(LookupError("no loop topic configured"))
        try:
            data = edge.codec.encode(value)
        except Exception as err:
            self.fail(ValueError(f"error encoding message for key {key}: {err}"))
        self._emit(edge.topic, key, data, headers)

    def fail(self, err: BaseException) -> None:
        """Stop the callback and shut the processor down."""
        if self._sync_failer is not None:
            self._sync_failer(err)
        raise CallbackFailure(err)

    def defer_commit(self) -> Callable[[BaseException | None], None]:
        """Postpone the commit until the returned function has been called.

        The returned function takes an error or ``None``; only its first call
        counts.
        """
        with self._lock:
            self.counters.emits += 1
        called = threading.Lock()

        def done(err: BaseException | None = None) -> None:
            if called.acquire(blocking=False):
                self._emit_done(err)

        return done

    # lifecycle

    def start(self) -> None:
        """Mark the beginning of processing, before any emit."""
        self.completed.clear()

    def finish(self, err: BaseException | None = None) -> None:
        """Mark the callback as returned; commit once all emits are done."""
        with self._lock:
            self._done = True
            self._try_commit(err)

    # internals

    def _require_graph(self) -> GroupGraph:
        if self.graph is None:
            raise CallbackFailure(RuntimeError("context has no group graph"))
        return self.graph

    def _stateful(self) -> bool:
        return (
            self.graph is not None
            and self.graph.group_table() is not None
            and self._table is not None
        )

    def _send(self, topic: str, key: str, value: bytes | None, headers: Any) -> Future:
        if self._emitter is None:
            raise RuntimeError("context has no emitter")
        return self._emitter(topic, key, value, headers)

    def _emit(
        self,
        topic: str,
        key: str,
        value: bytes | None,
        headers: Mapping[str, bytes] | None,
    ) -> None:
        self.counters.emits += 1
        future = self._send(topic, key, value, self._default_headers.merged(headers))

        def on_done(fut: Future) -> None:
            error = _future_error(fut)
            if error is not None:
                wrapped = RuntimeError(f"error emitting to {topic}: {error}")
                wrapped.__cause__ = error
                error = wrapped
            self._emit_done(error)

        future.add_done_callback(on_done)
        self._track_output_stats(topic, len(value or b""))

    def _value_for_key(self, key: str) -> Any:
        if self._table is None or self.graph is None or self.graph.group_table() is None:
            raise RuntimeError(_STATELESS)
        try:
            data = self._table.get(key)
        except Exception as err:
            raise RuntimeError(f"error reading value: {err}") from err
        if data is None:
            return None
        try:
            return self.graph.group_table().codec.decode(data)
        except Exception as err:
            raise ValueError(f"error decoding value: {err}") from err

    def _delete_key(self, key: str, headers: Mapping[str, bytes] | None) -> None:
        if not self._stateful():
            raise RuntimeError(_STATELESS)
        self.counters.stores += 1
        try:
            self._table.delete(key)
        except Exception as err:
            raise RuntimeError(f"error deleting key ({key}) from storage: {err}") from err

        self.counters.emits += 1
        topic = self.graph.group_table().topic
        future = self._send(topic, key, None, headers)
        future.add_done_callback(lambda fut: self._emit_done(_future_error(fut)))

    def _set_value_for_key(
        self, key: str, value: Any, headers: Mapping[str, bytes] | None
    ) -> None:
        if not self._stateful():
            raise RuntimeError(_STATELESS)
        if value is None:
            raise ValueError("cannot set nil as value")
        edge = self.graph.group_table()
        try:
            encoded = edge.codec.encode(value)
        except Exception as err:
            raise ValueError(f"error encoding value: {err}") from err

        self.counters.stores += 1
        try:
            self._table.set(key, encoded)
        except Exception as err:
            raise RuntimeError(f"error storing value: {err}") from err

        topic = edge.topic
        self.counters.emits += 1
        future = self._send(topic, key, encoded, headers)

        def on_done(fut: Future) -> None:
            error = _future_error(fut)
            if error is None:
                offset = getattr(fut.result(), "offset", 0)
                if offset:
                    try:
                        self._table.set_offset(offset)
                    except Exception as err:
                        error = err
            self._emit_done(error)

        future.add_done_callback(on_done)
        self._track_output_stats(topic, len(encoded))
        self._table.track_message_write(len(encoded))

    def _emit_done(self, err: BaseException | None) -> None:
        with self._lock:
            self.counters.dones += 1
            self._try_commit(err)

    def _try_commit(self, err: BaseException | None) -> None:
        if err is not None:
            self.errors.append(err)
        if not self._done or self.counters.emits > self.counters.dones:
            return

        if self.errors:
            if len(self.errors) == 1:
                detail = str(self.errors[0])
            else:
                detail = f"{len(self.errors)} errors occurred: " + "; ".join(
                    str(e) for e in self.errors
                )
            failure = RuntimeError(
                f"could not commit message with key '{self.key()}': {detail}"
            )
            failure.__cause__ = self.errors[-1]
            if self._async_failer is not None:
                self._async_failer(failure)
        else:
            self._commit()
        self.completed.set()