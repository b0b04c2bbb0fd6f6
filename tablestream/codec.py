"""Codecs that turn values into bytes and back."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_DECIMAL = re.compile(rb"[+-]?[0-9]+")


class CodecError(ValueError):
    """Raised when a value cannot be encoded or data cannot be decoded."""


class Codec(ABC):
    """Encodes values to bytes and decodes bytes to values."""

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Return the byte representation of ``value``."""

    @abstractmethod
    def decode(self, data: bytes) -> Any:
        """Return the value represented by ``data``."""


class Bytes(Codec):
    """Passes bytes through unchanged."""

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise CodecError(
                f"Bytes: value to encode is not of type bytes but {type(value).__name__}"
            )
        return bytes(value)

    def decode(self, data: bytes) -> Any:
        return data


class String(Codec):
    """Converts between ``str`` and UTF-8 bytes."""

    def encode(self, value: Any) -> bytes:
        if not isinstance(value, str):
            raise CodecError(
                f"String: value to encode is not of type str but {type(value).__name__}"
            )
        return value.encode("utf-8", "surrogateescape")

    def decode(self, data: bytes) -> Any:
        return bytes(data).decode("utf-8", "surrogateescape")


class Int64(Codec):
    """Converts between 64-bit signed integers and their decimal text."""

    def encode(self, value: Any) -> bytes:
        if isinstance(value, bool) or not isinstance(value, int):
            raise CodecError(
                f"Int64: value to encode is not of type int but {type(value).__name__}"
            )
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise CodecError(f"Int64: value {value} is out of the int64 range")
        return str(value).encode("ascii")

    def decode(self, data: bytes) -> Any:
        raw = bytes(data)
        if not _DECIMAL.fullmatch(raw):
            raise CodecError(f"Int64: cannot parse {raw!r} as a decimal integer")
        number = int(raw)
        if not _INT64_MIN <= number <= _INT64_MAX:
            raise CodecError(f"Int64: {raw!r} is out of the int64 range")
        return number