"""TCP server exposing a key/value database over the framed protocol."""

from __future__ import annotations

import asyncio
import struct
import sys
from typing import Any, Optional

from middb.errors import InvalidArgumentError
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
    decode_request,
    encode_response,
)

_FRAME_LEN = struct.Struct(">I")


def _split_address(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise InvalidArgumentError(f"invalid address: {addr!r}")
    return host.strip("[]"), int(port)


def handle_request(db: Any, request: Request) -> Response:
    """Apply ``request`` to ``db``; database failures become error responses."""
    match request:
        case GetRequest(key=key):
            try:
                value = db.get(key)
            except Exception as exc:
                return ErrorResponse(str(exc))
            return ValueResponse(None if value is None else bytes(value))
        case PutRequest(key=key, value=value):
            try:
                db.put(key, value)
            except Exception as exc:
                return ErrorResponse(str(exc))
            return OkResponse()
        case DeleteRequest(key=key):
            try:
                db.delete(key)
            except Exception as exc:
                return ErrorResponse(str(exc))
            return OkResponse()
        case PingRequest():
            return PongResponse()
    raise TypeError(f"not a request: {request!r}")


class Server:
    """Serves ``db`` on ``addr``; each connection is handled concurrently.

    ``db`` needs ``get(key)``, ``put(key, value)`` and ``delete(key)``.
    """

    def __init__(self, db: Any, addr: str) -> None:
        self.db = db
        self.addr = addr
        self.address: Optional[tuple[str, int]] = None
        self.started = asyncio.Event()

    async def run(self) -> None:
        """Listen and serve until cancelled."""
        host, port = _split_address(self.addr)
        server = await asyncio.start_server(self._handle_connection, host, port)
        self.address = tuple(server.sockets[0].getsockname()[:2])
        print(f"Server listening on {self.addr}")
        self.started.set()
        async with server:
            await server.serve_forever()

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        peer = writer.get_extra_info("peername")
        if peer:
            print(f"New connection from {peer[0]}:{peer[1]}")
        try:
            await self._serve(reader, writer)
        except (OSError, EOFError, ProtocolError) as exc:
            print(f"Connection error: {exc}", file=sys.stderr)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    async def _serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        while True:
            try:
                header = await reader.readexactly(_FRAME_LEN.size)
            except (asyncio.IncompleteReadError, OSError):
                return
            (length,) = _FRAME_LEN.unpack(header)
            if length == 0 or length > MAX_FRAME_SIZE:
                raise ProtocolError("Invalid length")

            request = decode_request(await reader.readexactly(length))
            payload = encode_response(handle_request(self.db, request))
            writer.write(_FRAME_LEN.pack(len(payload)) + payload)
            await writer.drain()