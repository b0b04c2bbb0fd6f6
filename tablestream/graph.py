"""Group graphs: the topics a processor group consumes from and produces to."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from .codec import Codec

DEFAULT_TABLE_SUFFIX = "-table"
DEFAULT_LOOP_SUFFIX = "-loop"

ProcessCallback = Callable[[Any, Any], None]


@dataclass
class _Suffixes:
    table: str = DEFAULT_TABLE_SUFFIX
    loop: str = DEFAULT_LOOP_SUFFIX


_suffixes = _Suffixes()


class GraphError(ValueError):
    """Raised when a group graph is defined or used incorrectly."""


def set_table_suffix(suffix: str) -> None:
    """Change the suffix appended to a group name to form its table topic."""
    _suffixes.table = str(suffix)


def set_loop_suffix(suffix: str) -> None:
    """Change the suffix appended to a group name to form its loop topic."""
    _suffixes.loop = str(suffix)


def reset_suffixes() -> None:
    """Restore both the table and loop suffixes to their defaults."""
    _suffixes.table = DEFAULT_TABLE_SUFFIX
    _suffixes.loop = DEFAULT_LOOP_SUFFIX


def table_name(group: str) -> str:
    """Return the name of the table topic of ``group``."""
    return str(group) + _suffixes.table


def loop_name(group: str) -> str:
    """Return the name of the loop topic of ``group``."""
    return str(group) + _suffixes.loop


def group_table(group: str) -> str:
    """Return the name of the group table of ``group``."""
    return table_name(group)


def strings_to_streams(*args: str) -> list[str]:
    """Return the given names as a list of stream names."""
    return [str(name) for name in args]


def _codec_name(codec: Codec | None) -> str:
    return "None" if codec is None else type(codec).__name__


class Edge:
    """A topic together with the codec of its messages.

    Every edge has a ``topic`` and a ``codec`` attribute.
    """

    topic: str
    codec: Codec | None

    def __str__(self) -> str:
        return f"{self.topic}/{_codec_name(self.codec)}"


@dataclass
class InputStream(Edge):
    """An input stream consumed with a callback, starting at the newest offset."""

    topic: str
    codec: Codec | None
    callback: ProcessCallback | None = None


@dataclass
class InputStreams(Edge):
    """Several input streams sharing one codec and callback."""

    edges: tuple[InputStream, ...] = ()

    @property
    def topic(self) -> str:  # type: ignore[override]
        return ",".join(edge.topic for edge in self.edges)

    @property
    def codec(self) -> Codec | None:  # type: ignore[override]
        return self.edges[0].codec if self.edges else None

    def __iter__(self):
        return iter(self.edges)

    def __len__(self) -> int:
        return len(self.edges)

    def __str__(self) -> str:
        if not self.edges:
            return "empty input streams"
        return f"input streams: {self.topic}/{_codec_name(self.codec)}"


@dataclass
class LoopStream(Edge):
    """The group's loopback stream; its topic is set when the group is defined."""

    topic: str
    codec: Codec | None
    callback: ProcessCallback | None = None


@dataclass
class InputTable(Edge):
    """A copartitioned table joined by the group."""

    topic: str
    codec: Codec | None


@dataclass
class CrossTable(Edge):
    """A table looked up by the group, not necessarily copartitioned."""

    topic: str
    codec: Codec | None


@dataclass
class GroupTableEdge(Edge):
    """The group's own table; its topic is set when the group is defined."""

    topic: str
    codec: Codec | None


@dataclass
class OutputStream(Edge):
    """A stream the group may emit into."""

    topic: str
    codec: Codec | None


@dataclass
class VisitorEdge(Edge):
    """A named visitor that iterates over the whole group state."""

    topic: str
    callback: ProcessCallback | None = None
    codec: Codec | None = field(default=None, init=False)

    def __str__(self) -> str:
        return f"visitor {self.topic}"


def chain_edges(*args: Iterable[Edge]) -> list[Edge]:
    """Concatenate several lists of edges into one."""
    return [edge for edges in args for edge in edges]


def edge_topics(edges: Iterable[Edge]) -> list[str]:
    """Return the topic names of ``edges``."""
    return [edge.topic for edge in edges]


def input_stream(topic: str, codec: Codec | None, callback: ProcessCallback) -> InputStream:
    """Define an input stream edge processed by ``callback``."""
    return InputStream(str(topic), codec, callback)


def inputs(
    topics: Iterable[str], codec: Codec | None, callback: ProcessCallback
) -> InputStreams | None:
    """Define several input streams sharing a codec and callback.

    Returns ``None`` if no topics are given.
    """
    edges = tuple(input_stream(topic, codec, callback) for topic in topics)
    if not edges:
        return None
    return InputStreams(edges)


def loop(codec: Codec | None, callback: ProcessCallback) -> LoopStream:
    """Define the group's loopback stream edge."""
    return LoopStream("", codec, callback)


def join(topic: str, codec: Codec | None) -> InputTable:
    """Define a copartitioned table edge."""
    return InputTable(str(topic), codec)


def lookup(topic: str, codec: Codec | None) -> CrossTable:
    """Define a lookup table edge."""
    return CrossTable(str(topic), codec)


def persist(codec: Codec | None) -> GroupTableEdge:
    """Define the group table edge; its topic derives from the group name."""
    return GroupTableEdge("", codec)


def output(topic: str, codec: Codec | None) -> OutputStream:
    """Define an output stream edge."""
    return OutputStream(str(topic), codec)


def visitor(name: str, callback: ProcessCallback) -> VisitorEdge:
    """Define a visitor edge."""
    return VisitorEdge(name, callback)


class GroupGraph:
    """Specification of a processor group and all topics it uses."""

    def __init__(self, group: str) -> None:
        self._group = str(group)
        self._input_tables: list[Edge] = []
        self._cross_tables: list[Edge] = []
        self._input_streams: list[Edge] = []
        self._output_streams: list[Edge] = []
        self._loop_stream: list[Edge] = []
        self._group_table: list[Edge] = []
        self._visitors: list[Edge] = []
        self._codecs: dict[str, Codec | None] = {}
        self._callbacks: dict[str, ProcessCallback | None] = {}
        self._output_topics: set[str] = set()
        self._join_check: dict[str, bool] = {}

    def group(self) -> str:
        """Return the group name."""
        return self._group

    def input_streams(self) -> list[Edge]:
        """Return all input stream edges."""
        return list(self._input_streams)

    def joint_tables(self) -> list[Edge]:
        """Return all joined table edges."""
        return list(self._input_tables)

    def lookup_tables(self) -> list[Edge]:
        """Return all lookup table edges."""
        return list(self._cross_tables)

    def loop_stream(self) -> Edge | None:
        """Return the loopback edge, if any."""
        return self._loop_stream[0] if self._loop_stream else None

    def group_table(self) -> Edge | None:
        """Return the group table edge, if any."""
        return self._group_table[0] if self._group_table else None

    def output_streams(self) -> list[Edge]:
        """Return all output stream edges."""
        return list(self._output_streams)

    def all_edges(self) -> list[Edge]:
        """Return every edge of the graph."""
        return chain_edges(
            self._input_tables,
            self._cross_tables,
            self._input_streams,
            self._output_streams,
            self._loop_stream,
            self._group_table,
            self._visitors,
        )

    def is_output_topic(self, topic: str) -> bool:
        """Return whether ``topic`` is a declared output stream."""
        return topic in self._output_topics

    def inputs(self) -> list[Edge]:
        """Return all input topics: streams, joined and lookup tables."""
        return chain_edges(self._input_streams, self._input_tables, self._cross_tables)

    def copartitioned(self) -> list[Edge]:
        """Return all copartitioned edges: input streams and joined tables."""
        return chain_edges(self._input_streams, self._input_tables)

    def codec(self, topic: str) -> Codec | None:
        """Return the codec registered for ``topic``, or ``None``."""
        return self._codecs.get(topic)

    def callback(self, topic: str) -> ProcessCallback | None:
        """Return the callback registered for ``topic``, or ``None``."""
        return self._callbacks.get(topic)

    def joint(self, topic: str) -> bool:
        """Return whether ``topic`` is a joined table."""
        return self._join_check.get(topic, False)

    def validate(self) -> None:
        """Raise :class:`GraphError` if the graph is invalid."""
        if len(self._loop_stream) > 1:
            raise GraphError("more than one loop stream in group graph")
        if len(self._group_table) > 1:
            raise GraphError("more than one group table in group graph")
        if not self._input_streams:
            raise GraphError("no input stream in group graph")
        for edge in chain_edges(
            self._output_streams, self._input_streams, self._input_tables, self._cross_tables
        ):
            if edge.topic == loop_name(self._group):
                raise GraphError("should not directly use loop stream")
            if edge.topic == table_name(self._group):
                raise GraphError("should not directly use group table")
        if self._visitors and not self._group_table:
            raise GraphError("visitors cannot be used in a stateless processor")

    def _validate_input_topic(self, topic: str) -> None:
        if topic == "":
            raise GraphError("Input topic cannot be empty. This will not work.")
        if topic in self._callbacks:
            raise GraphError(
                f"Callback for topic {topic} already exists. "
                "It is illegal to consume a topic twice"
            )

    def _add_input(self, edge: InputStream) -> None:
        self._validate_input_topic(edge.topic)
        self._codecs[edge.topic] = edge.codec
        self._callbacks[edge.topic] = edge.callback
        self._input_streams.append(edge)

    def _add(self, edge: Any) -> None:
        if isinstance(edge, InputStreams):
            for item in edge:
                self._add_input(item)
        elif isinstance(edge, InputStream):
            self._add_input(edge)
        elif isinstance(edge, LoopStream):
            edge.topic = loop_name(self._group)
            self._codecs[edge.topic] = edge.codec
            self._callbacks[edge.topic] = edge.callback
            self._loop_stream.append(edge)
        elif isinstance(edge, OutputStream):
            self._codecs[edge.topic] = edge.codec
            self._output_streams.append(edge)
            self._output_topics.add(edge.topic)
        elif isinstance(edge, InputTable):
            self._codecs[edge.topic] = edge.codec
            self._input_tables.append(edge)
            self._join_check[edge.topic] = True
        elif isinstance(edge, CrossTable):
            self._codecs[edge.topic] = edge.codec
            self._cross_tables.append(edge)
        elif isinstance(edge, GroupTableEdge):
            edge.topic = group_table(self._group)
            self._codecs[edge.topic] = edge.codec
            self._group_table.append(edge)
        elif isinstance(edge, VisitorEdge):
            self._visitors.append(edge)


def define_group(group: str, *args: Edge | None) -> GroupGraph:
    """Create a group graph from a group name and its edges.

    Unknown objects and ``None`` among the edges are ignored.
    """
    graph = GroupGraph(group)
    for edge in args:
        graph._add(edge)
    return graph