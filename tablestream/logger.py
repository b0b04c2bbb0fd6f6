"""Prefixing logger used by the library's components."""

from __future__ import annotations

import logging
from typing import Any, Iterable


class Logger:
    """Wraps a standard logger, adding a stack of prefixes and a debug switch.

    ``log`` may be any object with ``info`` and ``debug`` methods taking a
    format string and arguments, such as :class:`logging.Logger`.
    """

    def __init__(
        self,
        log: Any = None,
        debug: bool = False,
        prefix_path: Iterable[str] = (),
    ) -> None:
        self._log = log if log is not None else logging.getLogger("tablestream")
        self.debug_enabled = debug
        self._prefix_path = tuple(prefix_path)
        joined = " > ".join(self._prefix_path)
        self._prefix = f"[{joined}] " if joined else ""

    def info(self, msg: str, *args: Any) -> None:
        """Log an informational message with the current prefix."""
        self._log.info(self._prefix + msg, *args)

    def debug(self, msg: str, *args: Any) -> None:
        """Log a debug message if debugging is enabled."""
        if self.debug_enabled:
            self._log.debug(self._prefix + msg, *args)

    def prefix(self, prefix: str) -> "Logger":
        """Return a logger whose prefix path is extended by ``prefix``."""
        path = self._prefix_path + ((prefix,) if prefix else ())
        return Logger(self._log, self.debug_enabled, path)

    def current_prefix(self) -> str:
        """Return the rendered prefix added to every message."""
        return self._prefix


_default_logger = Logger(logging.getLogger("tablestream"))


def default_logger() -> Logger:
    """Return the library's default logger."""
    return _default_logger


def set_debug(enabled: bool) -> None:
    """Enable or disable debug output on the default logger."""
    _default_logger.debug_enabled = bool(enabled)


def wrap_logger(log: Any, debug: bool) -> Logger:
    """Wrap ``log`` into a library logger with the given debug setting."""
    return Logger(log, debug)