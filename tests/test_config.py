import pytest

from tablestream.config import (
    DEFAULT_FLUSH_BYTES,
    DEFAULT_FLUSH_FREQUENCY,
    DEFAULT_MAX_PROCESSING_TIME,
    DEFAULT_PRODUCER_MAX_RETRIES,
    Compression,
    InitialOffset,
    RequiredAcks,
    default_config,
    global_config,
    replace_global_config,
)


@pytest.fixture
def restore_global():
    saved = global_config()
    yield
    replace_global_config(saved)


def test_default_config_equal():
    cfg = default_config()
    assert cfg.version == (2, 0, 0, 0)
    assert cfg.consumer_return_errors is True
    assert cfg.consumer_max_processing_time == DEFAULT_MAX_PROCESSING_TIME
    assert cfg.initial_offset == InitialOffset.NEWEST
    assert cfg.rebalance_strategy == "copartition"
    assert cfg.required_acks == RequiredAcks.WAIT_FOR_LOCAL
    assert cfg.compression == Compression.SNAPPY
    assert cfg.flush_frequency == DEFAULT_FLUSH_FREQUENCY
    assert cfg.flush_bytes == DEFAULT_FLUSH_BYTES
    assert cfg.producer_return_successes is True
    assert cfg.producer_return_errors is True
    assert cfg.producer_retry_max == DEFAULT_PRODUCER_MAX_RETRIES


def test_default_config_pinned_values():
    cfg = default_config()
    assert cfg.flush_bytes == 64 * 1024
    assert cfg.producer_retry_max == 10


def test_default_config_returns_fresh_instances():
    first = default_config()
    second = default_config()
    assert first == second
    first.client_id = "changed"
    assert second.client_id != "changed"


def test_replace_global_config_succeeds(restore_global):
    custom = default_config()
    custom.version = (0, 8, 2, 0)
    replace_global_config(custom)
    assert global_config().version == custom.version


def test_replace_global_config_none_raises(restore_global):
    with pytest.raises(ValueError):
        replace_global_config(None)


def test_replace_global_config_stores_copy(restore_global):
    custom = default_config()
    replace_global_config(custom)
    custom.client_id = "mutated-after"
    assert global_config().client_id == default_config().client_id


def test_global_config_returns_copy(restore_global):
    cfg = global_config()
    cfg.producer_retry_max = 99
    assert global_config().producer_retry_max == DEFAULT_PRODUCER_MAX_RETRIES