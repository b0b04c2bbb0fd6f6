"""Message headers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class RecordHeader:
    """A single header as carried on a wire record."""

    key: bytes
    value: bytes


class Headers(dict):
    """Message headers: a mapping of header name to raw bytes."""

    @classmethod
    def from_records(cls, records: Iterable[RecordHeader] | None) -> "Headers":
        """Build headers from record headers; later keys override earlier ones."""
        return cls(
            (bytes(record.key).decode("utf-8", "surrogateescape"), record.value)
            for record in records or ()
        )

    def merged(self, *args: Mapping[str, bytes] | None) -> "Headers | None":
        """Return a new instance with all headers merged, later keys winning.

        ``None`` arguments are ignored. If everything is empty, ``None`` is
        returned.
        """
        if not self and not any(args):
            return None
        result = Headers(self)
        for headers in args:
            if headers:
                result.update(headers)
        return result or None

    def to_records(self) -> list[RecordHeader]:
        """Convert the headers to a list of record headers."""
        return [
            RecordHeader(key.encode("utf-8", "surrogateescape"), value)
            for key, value in self.items()
        ]