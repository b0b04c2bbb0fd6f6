import pytest

from tablestream.codec import Bytes, Codec, CodecError, Int64, String


def test_codec_is_abstract():
    with pytest.raises(TypeError):
        Codec()


@pytest.mark.parametrize("value", [b"", b"value", bytes(range(256))])
def test_bytes_round_trip(value):
    codec = Bytes()
    assert codec.decode(codec.encode(value)) == value


def test_bytes_encode_accepts_bytearray():
    assert Bytes().encode(bytearray(b"abc")) == b"abc"


@pytest.mark.parametrize("value", ["text", 12, None])
def test_bytes_encode_rejects_non_bytes(value):
    with pytest.raises(CodecError):
        Bytes().encode(value)


@pytest.mark.parametrize("value", ["", "value", "grüße", "日本"])
def test_string_round_trip(value):
    codec = String()
    assert codec.decode(codec.encode(value)) == value


def test_string_encode_is_utf8():
    assert String().encode("value") == b"value"


def test_string_decode_invalid_utf8_round_trips():
    codec = String()
    data = b"\xff\xfe"
    assert codec.encode(codec.decode(data)) == data


@pytest.mark.parametrize("value", [123, b"bytes", None])
def test_string_encode_rejects_non_str(value):
    with pytest.raises(CodecError):
        String().encode(value)


def test_int64_encode_decimal():
    assert Int64().encode(1312) == b"1312"


@pytest.mark.parametrize("value", [0, 1, -1, 1312, 2**63 - 1, -(2**63)])
def test_int64_round_trip(value):
    codec = Int64()
    assert codec.decode(codec.encode(value)) == value


@pytest.mark.parametrize("value", ["1312", 1.5, True, None])
def test_int64_encode_rejects_non_int(value):
    with pytest.raises(CodecError):
        Int64().encode(value)


@pytest.mark.parametrize("value", [2**63, -(2**63) - 1])
def test_int64_encode_rejects_out_of_range(value):
    with pytest.raises(CodecError):
        Int64().encode(value)


@pytest.mark.parametrize(
    "data", [b"", b"abc", b" 1", b"1 ", b"1_000", b"0x10", b"1.5", b"--1"]
)
def test_int64_decode_rejects_malformed(data):
    with pytest.raises(CodecError):
        Int64().decode(data)


def test_int64_decode_rejects_overflow():
    with pytest.raises(CodecError):
        Int64().decode(str(2**63).encode())