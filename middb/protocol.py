"""Request and response messages and their binary wire encoding.

Variants are tagged with a little-endian u32 index; byte strings and text
carry a little-endian u64 length prefix; optional values carry a one-byte
presence tag.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional, Union

from middb.errors import MiddbError

MAX_FRAME_SIZE = 10 * 1024 * 1024

_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class ProtocolError(MiddbError):
    """A message could not be encoded or decoded."""


@dataclass(frozen=True)
class GetRequest:
    key: bytes


@dataclass(frozen=True)
class PutRequest:
    key: bytes
    value: bytes


@dataclass(frozen=True)
class DeleteRequest:
    key: bytes


@dataclass(frozen=True)
class PingRequest:
    pass


@dataclass(frozen=True)
class OkResponse:
    pass


@dataclass(frozen=True)
class ValueResponse:
    value: Optional[bytes]


@dataclass(frozen=True)
class ErrorResponse:
    message: str


@dataclass(frozen=True)
class PongResponse:
    pass


Request = Union[GetRequest, PutRequest, DeleteRequest, PingRequest]
Response = Union[OkResponse, ValueResponse, ErrorResponse, PongResponse]


def _blob(data: bytes) -> bytes:
    data = bytes(data)
    return _U64.pack(len(data)) + data


class _Decoder:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise ProtocolError("unexpected end of message")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def variant(self) -> int:
        return _U32.unpack(self.take(4))[0]

    def blob(self) -> bytes:
        (length,) = _U64.unpack(self.take(8))
        return self.take(length)

    def text(self) -> str:
        try:
            return self.blob().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"invalid UTF-8 in string: {exc}") from None

    def optional_blob(self) -> Optional[bytes]:
        tag = self.take(1)[0]
        if tag == 0:
            return None
        if tag == 1:
            return self.blob()
        raise ProtocolError(f"invalid option tag: {tag}")


def encode_request(request: Request) -> bytes:
    match request:
        case GetRequest(key=key):
            return _U32.pack(0) + _blob(key)
        case PutRequest(key=key, value=value):
            return _U32.pack(1) + _blob(key) + _blob(value)
        case DeleteRequest(key=key):
            return _U32.pack(2) + _blob(key)
        case PingRequest():
            return _U32.pack(3)
    raise ProtocolError(f"not a request: {request!r}")


def decode_request(data: bytes) -> Request:
    decoder = _Decoder(data)
    variant = decoder.variant()
    if variant == 0:
        return GetRequest(decoder.blob())
    if variant == 1:
        key = decoder.blob()
        return PutRequest(key, decoder.blob())
    if variant == 2:
        return DeleteRequest(decoder.blob())
    if variant == 3:
        return PingRequest()
    raise ProtocolError(f"invalid request variant: {variant}")


def encode_response(response: Response) -> bytes:
    match response:
        case OkResponse():
            return _U32.pack(0)
        case ValueResponse(value=None):
            return _U32.pack(1) + b"\x00"
        case ValueResponse(value=value):
            return _U32.pack(1) + b"\x01" + _blob(value)
        case ErrorResponse(message=message):
            return _U32.pack(2) + _blob(message.encode("utf-8"))
        case PongResponse():
            return _U32.pack(3)
    raise ProtocolError(f"not a response: {response!r}")


def decode_response(data: bytes) -> Response:
    decoder = _Decoder(data)
    variant = decoder.variant()
    if variant == 0:
        return OkResponse()
    if variant == 1:
        return ValueResponse(decoder.optional_blob())
    if variant == 2:
        return ErrorResponse(decoder.text())
    if variant == 3:
        return PongResponse()
    raise ProtocolError(f"invalid response variant: {variant}")