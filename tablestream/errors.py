"""Error types and helpers for reporting failures in user callbacks."""

from __future__ import annotations

import traceback
from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent


class ProcessingError(Exception):
    """A non-transient error occurred while processing a message."""

    def __init__(self, partition: int, err: BaseException) -> None:
        super().__init__(partition, err)
        self.partition = partition
        self.err = err
        self.__cause__ = err

    def __str__(self) -> str:
        return f"error processing message (partition={self.partition}): {self.err}"


class SetupError(Exception):
    """A non-transient error occurred while setting up partitions on rebalance."""

    def __init__(self, partition: int, err: BaseException) -> None:
        super().__init__(partition, err)
        self.partition = partition
        self.err = err
        self.__cause__ = err

    def __str__(self) -> str:
        return f"error setting up (partition={self.partition}): {self.err}"


class VisitAbortedError(Exception):
    """A visit over all values could not finish due to cancellation or rebalance."""

    def __init__(
        self, message: str = "VisitAll aborted due to context cancel or rebalance"
    ) -> None:
        super().__init__(message)


class TopicNotFoundError(LookupError):
    """The requested topic does not exist."""

    def __init__(self, message: str = "requested topic was not found") -> None:
        super().__init__(message)


def _is_internal(frame: traceback.FrameSummary) -> bool:
    try:
        return Path(frame.filename).resolve().parent == _PACKAGE_DIR
    except (OSError, ValueError):
        return False


def _format(frame: traceback.FrameSummary) -> str:
    return f"{frame.name}\n\t{frame.filename}:{frame.lineno}"


def user_stacktrace(exc: BaseException) -> list[str]:
    """Return the frames of ``exc`` that belong to user code, innermost first.

    Frames of this package at the innermost end are skipped, and collection
    stops at the next frame of this package. If no user frame is found, all
    frames are returned.
    """
    frames = list(reversed(traceback.extract_tb(exc.__traceback__)))

    start = 0
    while start < len(frames) and _is_internal(frames[start]):
        start += 1

    lines = []
    for frame in frames[start:]:
        if _is_internal(frame):
            break
        lines.append(_format(frame))

    if not lines:
        lines = [_format(frame) for frame in frames]
    return lines