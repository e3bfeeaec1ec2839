import pytest
from hypothesis import given
from hypothesis import strategies as st

from middb.protocol import (
    DeleteRequest,
    ErrorResponse,
    GetRequest,
    OkResponse,
    PingRequest,
    PongResponse,
    ProtocolError,
    PutRequest,
    ValueResponse,
    decode_request,
    decode_response,
    encode_request,
    encode_response,
)


def test_request_encode_decode():
    encoded = encode_request(PutRequest(b"test_key", b"test_value"))
    decoded = decode_request(encoded)
    assert isinstance(decoded, PutRequest)
    assert decoded.key == b"test_key"
    assert decoded.value == b"test_value"


def test_response_encode_decode():
    decoded = decode_response(encode_response(ValueResponse(b"data")))
    assert decoded == ValueResponse(b"data")


def test_ping_wire_bytes():
    assert encode_request(PingRequest()) == b"\x03\x00\x00\x00"


def test_get_wire_bytes():
    expected = b"\x00\x00\x00\x00" + b"\x01" + b"\x00" * 7 + b"k"
    assert encode_request(GetRequest(b"k")) == expected


def test_value_none_wire_bytes():
    assert encode_response(ValueResponse(None)) == b"\x01\x00\x00\x00\x00"


@pytest.mark.parametrize(
    "request_",
    [GetRequest(b"a"), PutRequest(b"", b"v"), DeleteRequest(b"key1"), PingRequest()],
)
def test_request_round_trip(request_):
    assert decode_request(encode_request(request_)) == request_


@pytest.mark.parametrize(
    "response",
    [OkResponse(), ValueResponse(None), ValueResponse(b""), ErrorResponse("bad"), PongResponse()],
)
def test_response_round_trip(response):
    assert decode_response(encode_response(response)) == response


@given(st.binary(), st.binary())
def test_put_round_trip_property(key, value):
    assert decode_request(encode_request(PutRequest(key, value))) == PutRequest(key, value)


@given(st.text())
def test_error_round_trip_property(message):
    assert decode_response(encode_response(ErrorResponse(message))) == ErrorResponse(message)


def test_truncated_request_raises():
    encoded = encode_request(PutRequest(b"key", b"value"))
    with pytest.raises(ProtocolError):
        decode_request(encoded[:-1])


def test_unknown_variant_raises():
    with pytest.raises(ProtocolError):
        decode_request(b"\x09\x00\x00\x00")
    with pytest.raises(ProtocolError):
        decode_response(b"\x04\x00\x00\x00")


def test_bad_option_tag_raises():
    with pytest.raises(ProtocolError):
        decode_response(b"\x01\x00\x00\x00\x02")


def test_invalid_utf8_raises():
    data = b"\x02\x00\x00\x00" + b"\x01" + b"\x00" * 7 + b"\xff"
    with pytest.raises(ProtocolError):
        decode_response(data)


def test_empty_input_raises():
    with pytest.raises(ProtocolError):
        decode_request(b"")