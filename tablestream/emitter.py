"""Emitter that encodes messages and produces them into one topic."""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Future
from typing import Any, Protocol

from .codec import Codec
from .headers import Headers


class EmitterClosedError(Exception):
    """Raised or delivered when emitting after the emitter has been finished."""

    def __init__(self, message: str = "emitter already closed") -> None:
        super().__init__(message)


class EmitterEncodeError(ValueError):
    """The message could not be encoded with the emitter's codec."""


class Producer(Protocol):
    """The producer an emitter writes through."""

    def emit(self, topic: str, key: str, value: bytes | None) -> Future: ...

    def emit_with_headers(
        self, topic: str, key: str, value: bytes | None, headers: Headers | None
    ) -> Future: ...

    def close(self) -> None: ...


ProducerBuilder = Callable[[Sequence[str], str, Any], Producer]


class Emitter:
    """Emits messages into a specific topic, encoding them with a codec.

    Each emit returns a :class:`concurrent.futures.Future` that completes
    when the producer has delivered the message or failed to.
    """

    def __init__(
        self,
        brokers: Sequence[str],
        topic: str,
        codec: Codec,
        *,
        producer_builder: ProducerBuilder,
        client_id: str | None = None,
        hasher: Any = None,
        default_headers: Mapping[str, bytes] | None = None,
    ) -> None:
        if client_id is None:
            client_id = f"tablestream-emitter-{topic}"
        try:
            producer = producer_builder(list(brokers), client_id, hasher)
        except Exception as err:
            raise RuntimeError(f"error creating Kafka producer: {err}") from err

        self.codec = codec
        self.producer = producer
        self.topic = str(topic)
        self.default_headers = Headers(default_headers) if default_headers is not None else None
        self._cond = threading.Condition()
        self._pending = 0
        self._closed = False

    def _emit_done(self, _future: Future) -> None:
        with self._cond:
            self._pending -= 1
            self._cond.notify_all()

    def emit_with_headers(
        self, key: str, msg: Any, headers: Mapping[str, bytes] | None
    ) -> Future:
        """Send ``msg`` for ``key`` with ``headers`` merged over the defaults.

        Raises :class:`EmitterEncodeError` if the message cannot be encoded.
        After :meth:`finish`, the returned future fails with
        :class:`EmitterClosedError`.
        """
        data = None
        if msg is not None:
            try:
                data = self.codec.encode(msg)
            except Exception as err:
                raise EmitterEncodeError(
                    f"Error encoding value for key {key} in topic {self.topic}: {err}"
                ) from err

        with self._cond:
            if self._closed:
                future: Future = Future()
                future.set_exception(EmitterClosedError())
                return future
            self._pending += 1

        try:
            if headers is None and self.default_headers is None:
                future = self.producer.emit(self.topic, key, data)
            else:
                merged = Headers(self.default_headers or {}).merged(headers)
                future = self.producer.emit_with_headers(self.topic, key, data, merged)
        except BaseException:
            self._emit_done(None)  # type: ignore[arg-type]
            raise
        future.add_done_callback(self._emit_done)
        return future

    def emit(self, key: str, msg: Any) -> Future:
        """Send ``msg`` for ``key`` using the emitter's codec."""
        return self.emit_with_headers(key, msg, None)

    def emit_sync_with_headers(
        self, key: str, msg: Any, headers: Mapping[str, bytes] | None
    ) -> None:
        """Send ``msg`` with ``headers`` and wait; raise the delivery error if any."""
        self.emit_with_headers(key, msg, headers).result()

    def emit_sync(self, key: str, msg: Any) -> None:
        """Send ``msg`` for ``key`` and wait until it is delivered."""
        self.emit_sync_with_headers(key, msg, None)

    def finish(self) -> None:
        """Reject new emits, wait for pending ones and close the producer."""
        with self._cond:
            if self._closed:
                raise EmitterClosedError()
            self._closed = True
            self._cond.wait_for(lambda: self._pending == 0)
        self.producer.close()

    def __enter__(self) -> "Emitter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        with self._cond:
            closed = self._closed
        if not closed:
            self.finish()