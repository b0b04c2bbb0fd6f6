"""Client configuration and the process-wide default configuration."""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass

DEFAULT_CHANNEL_BUFFER_SIZE = 256
DEFAULT_MAX_PROCESSING_TIME = 1.0
DEFAULT_FLUSH_FREQUENCY = 0.1
DEFAULT_FLUSH_BYTES = 64 * 1024
DEFAULT_PRODUCER_MAX_RETRIES = 10
DEFAULT_VERSION = (2, 0, 0, 0)
DEFAULT_REBALANCE_STRATEGY = "copartition"


class Compression(enum.Enum):
    """Producer message compression codec."""

    NONE = 0
    GZIP = 1
    SNAPPY = 2
    LZ4 = 3
    ZSTD = 4


class RequiredAcks(enum.IntEnum):
    """How many acknowledgements the producer waits for."""

    NO_RESPONSE = 0
    WAIT_FOR_LOCAL = 1
    WAIT_FOR_ALL = -1


class InitialOffset(enum.IntEnum):
    """Where a stream consumer starts when no committed offset exists."""

    NEWEST = -1
    OLDEST = -2


@dataclass
class Config:
    """Settings for consumers and producers.

    Durations are in seconds. ``initial_offset`` applies to streams only;
    tables are always consumed from the oldest offset.
    """

    version: tuple[int, ...] = DEFAULT_VERSION
    client_id: str = "tablestream"
    channel_buffer_size: int = DEFAULT_CHANNEL_BUFFER_SIZE

    consumer_return_errors: bool = True
    consumer_max_processing_time: float = DEFAULT_MAX_PROCESSING_TIME
    initial_offset: InitialOffset = InitialOffset.NEWEST
    rebalance_strategy: str = DEFAULT_REBALANCE_STRATEGY

    required_acks: RequiredAcks = RequiredAcks.WAIT_FOR_LOCAL
    compression: Compression = Compression.SNAPPY
    flush_frequency: float = DEFAULT_FLUSH_FREQUENCY
    flush_bytes: int = DEFAULT_FLUSH_BYTES
    producer_return_successes: bool = True
    producer_return_errors: bool = True
    producer_retry_max: int = DEFAULT_PRODUCER_MAX_RETRIES


def default_config() -> Config:
    """Return a new configuration with the library's defaults."""
    return Config()


_global_config = default_config()


def replace_global_config(config: Config | None) -> None:
    """Register the configuration used when no other one is given."""
    global _global_config
    if config is None:
        raise ValueError("nil config registered as global config")
    _global_config = dataclasses.replace(config)


def global_config() -> Config:
    """Return a copy of the currently registered global configuration."""
    return dataclasses.replace(_global_config)