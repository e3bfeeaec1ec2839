"""Write-ahead log: checksummed entry encoding, reader and writer."""

from __future__ import annotations

import enum
import os
import struct
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

from middb.errors import CorruptionError

HEADER_SIZE = 8

_HEADER = struct.Struct("<II")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")

PathLike = Union[str, "os.PathLike[str]"]


class EntryType(enum.IntEnum):
    PUT = 1
    DELETE = 2

    @classmethod
    def from_u8(cls, value: int) -> "EntryType":
        try:
            return cls(value)
        except ValueError:
            raise CorruptionError(f"Invalid entry type: {value}") from None


@dataclass
class WalEntry:
    """One logged mutation.

    Encoded as ``crc32 | data_len`` followed by the sequence number, the
    entry type, the length-prefixed key and the length-prefixed value.
    """

    sequence_number: int
    entry_type: EntryType
    key: bytes
    value: Optional[bytes] = None

    @classmethod
    def put(cls, sequence_number: int, key: bytes, value: bytes) -> "WalEntry":
        return cls(sequence_number, EntryType.PUT, bytes(key), bytes(value))

    @classmethod
    def delete(cls, sequence_number: int, key: bytes) -> "WalEntry":
        return cls(sequence_number, EntryType.DELETE, bytes(key), None)

    def encode(self) -> bytes:
        value = self.value or b""
        body = b"".join(
            (
                _U64.pack(self.sequence_number),
                bytes([int(self.entry_type)]),
                _U32.pack(len(self.key)),
                bytes(self.key),
                _U32.pack(len(value)),
                bytes(value),
            )
        )
        return _HEADER.pack(zlib.crc32(body), len(body)) + body

    @classmethod
    def decode(cls, data: bytes) -> tuple["WalEntry", int]:
        """Decode one entry from the front of ``data``; return it and its size."""
        data = bytes(data)
        if len(data) < HEADER_SIZE:
            raise CorruptionError("WAL entry too short")

        crc, data_len = _HEADER.unpack_from(data, 0)
        if len(data) < HEADER_SIZE + data_len:
            raise CorruptionError("WAL entry incomplete")

        body = data[HEADER_SIZE:HEADER_SIZE + data_len]
        computed = zlib.crc32(body)
        if crc != computed:
            raise CorruptionError(
                f"WAL entry CRC mismatch: expected {crc:#x}, got {computed:#x}"
            )

        offset = 0
        if offset + 8 > len(body):
            raise CorruptionError("Invalid sequence number")
        (sequence_number,) = _U64.unpack_from(body, offset)
        offset += 8

        if offset >= len(body):
            raise CorruptionError("Invalid entry type")
        entry_type = EntryType.from_u8(body[offset])
        offset += 1

        if offset + 4 > len(body):
            raise CorruptionError("Invalid key length")
        (key_len,) = _U32.unpack_from(body, offset)
        offset += 4

        if offset + key_len > len(body):
            raise CorruptionError("Invalid key data")
        key = body[offset:offset + key_len]
        offset += key_len

        if offset + 4 > len(body):
            raise CorruptionError("Invalid value length")
        (value_len,) = _U32.unpack_from(body, offset)
        offset += 4

        value: Optional[bytes] = None
        if value_len > 0:
            if offset + value_len > len(body):
                raise CorruptionError("Invalid value data")
            value = body[offset:offset + value_len]

        return cls(sequence_number, entry_type, key, value), HEADER_SIZE + data_len


class WalReader:
    """Reads entries sequentially from a log file."""

    def __init__(self, path: PathLike) -> None:
        self._file = open(path, "rb")
        self.offset = 0

    def next_entry(self) -> Optional[WalEntry]:
        """Return the next entry, or None at the end of the log."""
        header = self._file.read(HEADER_SIZE)
        if len(header) < HEADER_SIZE:
            return None

        _, data_len = _HEADER.unpack(header)
        body = self._file.read(data_len)
        if len(body) < data_len:
            raise CorruptionError("WAL entry incomplete")

        entry, size = WalEntry.decode(header + body)
        self.offset += size
        return entry

    def read_all(self) -> list[WalEntry]:
        return list(self)

    def __iter__(self) -> Iterator[WalEntry]:
        while (entry := self.next_entry()) is not None:
            yield entry

    def close(self) -> None:
        self._file.close()

    def __enter__(self) -> "WalReader":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class WalWriter:
    """Appends encoded entries to a log file."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)
        self._file = open(self.path, "ab")
        self.bytes_written = 0

    def append(self, entry: WalEntry) -> None:
        encoded = entry.encode()
        self._file.write(encoded)
        self.bytes_written += len(encoded)

    def flush(self) -> None:
        self._file.flush()

    def sync(self) -> None:
        """Flush buffered data and force it to stable storage."""
        self._file.flush()
        os.fsync(self._file.fileno())

    def close(self) -> None:
        if not self._file.closed:
            self._file.flush()
            self._file.close()

    def __enter__(self) -> "WalWriter":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()