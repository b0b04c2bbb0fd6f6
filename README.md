# tablestream

Building blocks for stateful stream processing on partitioned, key/value
message topics. The package has no dependencies beyond the standard library.

## Modules

- `tablestream.codec`: the abstract `Codec` with `encode()` and `decode()`,
  and the codecs `Bytes`, `String` (UTF-8) and `Int64` (64-bit integers as
  decimal text). A value of the wrong type, an integer out of range or
  unparsable data raises `CodecError`.
- `tablestream.headers`: `Headers`, a `dict` of header name to bytes, with
  `merged(*others)` (later keys win; returns `None` if everything is empty),
  `to_records()` and `Headers.from_records()` for lists of `RecordHeader`.
- `tablestream.config`: the `Config` dataclass with the enums `Compression`,
  `RequiredAcks` and `InitialOffset`; `default_config()`, `global_config()`
  (returns a copy) and `replace_global_config()` (raises `ValueError` for
  `None`).
- `tablestream.logger`: `Logger` wraps any object with `info` and `debug`
  methods (a `logging.Logger` by default) and adds stacked prefixes:
  `logger.prefix("a").prefix("b")` renders `"[a > b] "` before every message.
  `default_logger()`, `wrap_logger(log, debug)` and `set_debug(enabled)`.
- `tablestream.errors`: `ProcessingError`, `SetupError`, `VisitAbortedError`,
  `TopicNotFoundError`, and `user_stacktrace(exc)`, which returns the frames
  of an exception's traceback that lie outside this package.
- `tablestream.graph`: edges and group graphs (see below).
- `tablestream.copartition_strategy`: `CopartitioningStrategy`, `MemberMetadata`
  and `Assignment` (see below).
- `tablestream.iterator`: `Iterator` wraps a storage iterator and decodes
  values with a codec.
- `tablestream.emitter`: `Emitter` encodes values and hands them to a producer.
- `tablestream.context`: `Context`, what a processing callback receives.

## Defining a group

```python
from tablestream.codec import Int64, String
from tablestream.graph import define_group, input_stream, output, persist


def count(ctx, msg):
    counter = ctx.value() or 0
    ctx.set_value(counter + 1)
    ctx.emit("counts", ctx.key(), f"{ctx.key()} seen {counter + 1} times")


graph = define_group(
    "example-group",
    input_stream("example-stream", String(), count),
    output("counts", String()),
    persist(Int64()),
)
graph.validate()  # raises GraphError if the graph is inconsistent
```

The edge constructors are `input_stream`, `inputs` (several streams sharing
a codec and callback), `loop`, `join`, `lookup`, `persist`, `output` and
`visitor`. `define_group` raises `GraphError` for an empty input topic or a
topic consumed twice; `validate()` rejects graphs without input streams,
with more than one loop or group table, with edges that use the group's own
table or loop topic directly, or with visitors but no group table.

The group table topic takes its name from the group, here
`example-group-table`; the loop topic gets the suffix `-loop`. Change both
with `set_table_suffix()` and `set_loop_suffix()`, and restore the defaults
with `reset_suffixes()`.

## Balancing partitions

```python
from tablestream.copartition_strategy import CopartitioningStrategy, MemberMetadata

strategy = CopartitioningStrategy()
plan = strategy.plan(
    {"M1": MemberMetadata(topics=["T1"]), "M2": MemberMetadata(topics=["T1"])},
    {"T1": [0, 1, 2]},
)
# {"M1": {"T1": [0, 1]}, "M2": {"T1": [2]}}
```

Members are sorted and each gets a contiguous range of the sorted partitions
for every topic it requests. If the topics do not all have the same
partitions, `plan` raises `BalanceError`. With
`CopartitioningStrategy(fail_on_inconsistent_topics=True)`, members that ask
for different sets of topics raise `BalanceError` as well.

## Emitting

An `Emitter` needs a `producer_builder`: a callable taking
`(brokers, client_id, hasher)` and returning an object with `emit`,
`emit_with_headers` and `close`, where the emit methods return a
`concurrent.futures.Future`.

```python
from concurrent.futures import Future

from tablestream.codec import String
from tablestream.emitter import Emitter


class PrintingProducer:
    def emit(self, topic, key, value):
        return self.emit_with_headers(topic, key, value, None)

    def emit_with_headers(self, topic, key, value, headers):
        print(topic, key, value, headers)
        future = Future()
        future.set_result(None)
        return future

    def close(self):
        pass


with Emitter(["localhost:9092"], "example-stream", String(),
             producer_builder=lambda brokers, client_id, hasher: PrintingProducer()) as emitter:
    emitter.emit_sync("some-key", "some-value")
```

`emit()` and `emit_with_headers()` return the producer's future; an
unencodable value raises `EmitterEncodeError`. `emit_sync()` waits and raises
the delivery error, if any. `finish()` rejects further emits, waits for
pending ones and closes the producer; emits after that yield a future failed
with `EmitterClosedError`.

## Callback context

`Context` is built with the group graph, the consumed `Message`, an emitter
callable returning futures, a commit callable, and optionally the group
table storage, joined tables (`pviews`) and lookup views. It offers
`key()`, `topic()`, `partition()`, `offset()`, `timestamp()`, `headers()`,
`value()`, `set_value()`, `delete()`, `join()`, `lookup()`, `emit()`,
`loopback()`, `fail()` and `defer_commit()`. Misuse (emitting to an
undeclared topic, reading state without a group table, encoding failures and
so on) raises `CallbackFailure`. After `finish()`, the commit callable runs
once every emit has succeeded; if any failed, `async_failer` is called
instead.

## Iterating over storage

`Iterator(storage_iterator, codec)` offers `next()`, `key()`, `value()`,
`err()`, `seek()` and `release()`. It can also be looped over directly,
yielding `(key, value)` pairs, and used as a context manager that releases
it on exit.

## What this package does not do

It contains no network client, no processor runner, no view and no storage
engine. Producers, storage and storage iterators, tables and views are
supplied by the caller through the small interfaces described above.

## Running the tests

```
pip install -e .[test]
pytest
```