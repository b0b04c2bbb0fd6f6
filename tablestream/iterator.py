"""Iterator over the keys and decoded values of a table."""

from __future__ import annotations

from collections.abc import Iterator as _PyIterator
from typing import Any, Protocol

from .codec import Codec


class StorageIterator(Protocol):
    """The raw storage iterator wrapped by :class:`Iterator`."""

    def next(self) -> bool: ...

    def key(self) -> bytes | None: ...

    def value(self) -> bytes | None: ...

    def err(self) -> BaseException | None: ...

    def release(self) -> None: ...

    def seek(self, key: bytes) -> bool: ...


class Iterator:
    """Iterates over key/value pairs of a storage, decoding values with a codec.

    Can also be used as a Python iterator of ``(key, value)`` pairs and as a
    context manager that releases the iterator on exit.
    """

    def __init__(self, storage_iterator: StorageIterator, codec: Codec) -> None:
        self._iter = storage_iterator
        self._codec = codec

    def next(self) -> bool:
        """Advance to the next pair; return False when exhausted or failed."""
        return self._iter.next()

    def key(self) -> str:
        """Return the current key."""
        raw = self._iter.key()
        if raw is None:
            return ""
        return bytes(raw).decode("utf-8", "surrogateescape")

    def value(self) -> Any:
        """Return the current value decoded by the codec, or None if absent."""
        data = self._iter.value()
        if data is None:
            return None
        return self._codec.decode(data)

    def err(self) -> BaseException | None:
        """Return the error that stopped the iteration, if any."""
        return self._iter.err()

    def release(self) -> None:
        """Release the iterator; it cannot be used afterwards."""
        self._iter.release()

    def seek(self, key: str) -> bool:
        """Move to the first pair whose key is greater or equal to ``key``.

        After a successful seek, the current pair is available immediately;
        calling :meth:`next` would skip it.
        """
        return self._iter.seek(key.encode("utf-8", "surrogateescape"))

    def __iter__(self) -> _PyIterator[tuple[str, Any]]:
        while self.next():
            yield self.key(), self.value()
        error = self.err()
        if error is not None:
            raise error

    def __enter__(self) -> "Iterator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()