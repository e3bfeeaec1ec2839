"""SSTable footer, block handles and table metadata."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from middb.errors import CorruptionError

SSTABLE_MAGIC = 0x5354414254414244
FOOTER_VERSION = 1
FOOTER_SIZE = 48
BLOCK_HANDLE_SIZE = 16

_HANDLE = struct.Struct("<QQ")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


@dataclass(frozen=True)
class BlockHandle:
    """Location of a block inside a table file."""

    offset: int
    size: int

    def encode(self) -> bytes:
        return _HANDLE.pack(self.offset, self.size)

    @classmethod
    def decode(cls, data: bytes) -> "BlockHandle":
        """Read a handle from the first 16 bytes of ``data``."""
        if len(data) < BLOCK_HANDLE_SIZE:
            raise CorruptionError("BlockHandle too short")
        offset, size = _HANDLE.unpack_from(bytes(data), 0)
        return cls(offset, size)


@dataclass
class Footer:
    """Fixed-size trailer pointing at the index and bloom filter blocks."""

    index_handle: BlockHandle
    bloom_handle: BlockHandle
    version: int = FOOTER_VERSION

    def encode(self) -> bytes:
        out = bytearray(FOOTER_SIZE)
        out[0:16] = self.index_handle.encode()
        out[16:32] = self.bloom_handle.encode()
        out[32:36] = _U32.pack(self.version)
        out[40:48] = _U64.pack(SSTABLE_MAGIC)
        return bytes(out)

    @classmethod
    def decode(cls, data: bytes) -> "Footer":
        data = bytes(data)
        if len(data) != FOOTER_SIZE:
            raise CorruptionError(
                f"Invalid footer size: expected {FOOTER_SIZE}, got {len(data)}"
            )

        (magic,) = _U64.unpack_from(data, 40)
        if magic != SSTABLE_MAGIC:
            raise CorruptionError(
                f"Invalid SSTable magic number: expected {SSTABLE_MAGIC:#x}, got {magic:#x}"
            )

        index_handle = BlockHandle.decode(data[0:16])
        bloom_handle = BlockHandle.decode(data[16:32])

        (version,) = _U32.unpack_from(data, 32)
        if version != FOOTER_VERSION:
            raise CorruptionError(f"Unsupported SSTable version: {version}")

        return cls(index_handle, bloom_handle, version)


@dataclass
class SSTableMetadata:
    """Summary of a written table: identity, size and key range."""

    file_id: int
    file_size: int
    smallest_key: bytes
    largest_key: bytes
    num_entries: int
    level: int

    def may_contain(self, key: bytes) -> bool:
        """True when ``key`` lies within the table's inclusive key range."""
        return self.smallest_key <= bytes(key) <= self.largest_key