"""Asynchronous client for the key/value server."""

from __future__ import annotations

import asyncio
import struct
from typing import Optional

from middb.errors import InvalidArgumentError, MiddbError
from middb.protocol import (
    MAX_FRAME_SIZE,
    DeleteRequest,
    ErrorResponse,
    GetRequest,
    OkResponse,
    PingRequest,
    PongResponse,
    ProtocolError,
    PutRequest,
    Request,
    Response,
    ValueResponse,
    decode_response,
    encode_request,
)

_FRAME_LEN = struct.Struct(">I")


class ClientError(MiddbError):
    """The server reported an error or the exchange failed."""


def _split_address(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise InvalidArgumentError(f"invalid address: {addr!r}")
    return host.strip("[]"), int(port)


class Client:
    """One connection to a server; requests are sent one at a time."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer

    @classmethod
    async def connect(cls, addr: str) -> "Client":
        """Open a connection to ``host:port``."""
        host, port = _split_address(addr)
        reader, writer = await asyncio.open_connection(host, port)
        return cls(reader, writer)

    async def get(self, key: bytes) -> Optional[bytes]:
        """Return the value stored under ``key``, or None when absent."""
        response = await self._send(GetRequest(bytes(key)))
        match response:
            case ValueResponse(value=value):
                return value
            case ErrorResponse(message=message):
                raise ClientError(message)
        raise ClientError("Unexpected response")

    async def put(self, key: bytes, value: bytes) -> None:
        self._expect_ok(await self._send(PutRequest(bytes(key), bytes(value))))

    async def delete(self, key: bytes) -> None:
        self._expect_ok(await self._send(DeleteRequest(bytes(key))))

    async def ping(self) -> None:
        if not isinstance(await self._send(PingRequest()), PongResponse):
            raise ClientError("Expected pong")

    async def close(self) -> None:
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError:
            pass

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    @staticmethod
    def _expect_ok(response: Response) -> None:
        match response:
            case OkResponse():
                return
            case ErrorResponse(message=message):
                raise ClientError(message)
        raise ClientError("Unexpected response")

    async def _send(self, request: Request) -> Response:
        payload = encode_request(request)
        self._writer.write(_FRAME_LEN.pack(len(payload)) + payload)
        await self._writer.drain()

        try:
            (length,) = _FRAME_LEN.unpack(await self._reader.readexactly(_FRAME_LEN.size))
            if length > MAX_FRAME_SIZE:
                raise ClientError("Response too large")
            body = await self._reader.readexactly(length)
        except asyncio.IncompleteReadError:
            raise ClientError("connection closed by server") from None

        try:
            return decode_response(body)
        except ProtocolError as exc:
            raise ClientError(str(exc)) from exc