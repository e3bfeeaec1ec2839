"""Prefix-compressed sorted key/value blocks with restart points."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Iterator, Optional

from middb.errors import CorruptionError, InvalidArgumentError

_U32 = struct.Struct("<I")
_MAX_VARINT_SHIFT = 64


def common_prefix_len(a: bytes, b: bytes) -> int:
    """Return the length of the longest common prefix of ``a`` and ``b``."""
    length = 0
    for x, y in zip(a, b):
        if x != y:
            break
        length += 1
    return length


def _encode_varint(value: int) -> bytes:
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


@dataclass
class Block:
    """Entry bytes plus the offsets at which full keys are stored."""

    data: bytes = b""
    restarts: list[int] = field(default_factory=lambda: [0])

    def encode(self) -> bytes:
        """Serialise as entries, restart offsets, then the restart count."""
        parts = [bytes(self.data)]
        parts.extend(_U32.pack(restart) for restart in self.restarts)
        parts.append(_U32.pack(len(self.restarts)))
        return b"".join(parts)

    @classmethod
    def decode(cls, data: bytes) -> "Block":
        """Parse a block produced by :meth:`encode`."""
        data = bytes(data)
        if len(data) < 4:
            raise CorruptionError("Block too short")

        count_offset = len(data) - 4
        (num_restarts,) = _U32.unpack_from(data, count_offset)
        if num_restarts == 0:
            raise CorruptionError("Block has no restart points")

        restarts_offset = count_offset - num_restarts * 4
        if restarts_offset < 0:
            raise CorruptionError("Invalid restart points")

        restarts = list(struct.unpack_from(f"<{num_restarts}I", data, restarts_offset))
        return cls(data[:restarts_offset], restarts)


class BlockBuilder:
    """Accumulates sorted entries into a :class:`Block`."""

    def __init__(self, restart_interval: int) -> None:
        self.restart_interval = restart_interval
        self._data = bytearray()
        self._restarts: list[int] = [0]
        self._counter = 0
        self._last_key = b""
        self._estimated_size = 0

    def add(self, key: bytes, value: bytes) -> None:
        """Append an entry; keys must be non-empty and strictly increasing."""
        key = bytes(key)
        value = bytes(value)
        if not key:
            raise InvalidArgumentError("Key cannot be empty")
        if self._last_key and key <= self._last_key:
            raise InvalidArgumentError("Keys must be added in sorted order")

        if self._counter < self.restart_interval:
            shared = common_prefix_len(self._last_key, key)
        else:
            self._restarts.append(len(self._data))
            self._counter = 0
            shared = 0

        self._data += _encode_varint(shared)
        self._data += _encode_varint(len(key) - shared)
        self._data += _encode_varint(len(value))
        self._data += key[shared:]
        self._data += value

        self._last_key = key
        self._counter += 1
        self._estimated_size = len(self._data) + len(self._restarts) * 4 + 4

    def is_empty(self) -> bool:
        return not self._data

    def current_size_estimate(self) -> int:
        """Encoded size of the block as of the last added entry."""
        return self._estimated_size

    def finish(self) -> Block:
        return Block(bytes(self._data), list(self._restarts))


class BlockIterator:
    """Cursor over the entries of a block.

    The cursor is valid while ``key`` is non-empty; ``key`` and ``value``
    hold the current entry.
    """

    def __init__(self, block: Block) -> None:
        self._data = bytes(block.data)
        self._restarts = list(block.restarts)
        self._pos = 0
        self._restart_index = 0
        self.key = b""
        self.value = b""

    def valid(self) -> bool:
        return bool(self.key)

    def seek(self, target: bytes) -> None:
        """Position at the first entry whose key is ``>= target``."""
        target = bytes(target)
        self._seek_to_restart_point(0)
        while (entry := self._parse_next_entry()) is not None:
            self.key, self.value = entry
            if self.key >= target:
                return
        self.key = b""
        self.value = b""

    def next(self) -> None:
        """Advance to the following entry, invalidating at the end."""
        entry = self._parse_next_entry()
        if entry is None:
            self.key = b""
            self.value = b""
        else:
            self.key, self.value = entry

    def __iter__(self) -> Iterator[tuple[bytes, bytes]]:
        """Yield every ``(key, value)`` pair from the start of the block."""
        self.seek(b"")
        while self.valid():
            yield self.key, self.value
            self.next()

    def _seek_to_restart_point(self, index: int) -> None:
        self.key = b""
        self._restart_index = index
        self._pos = self._restarts[index]

    def _decode_varint(self) -> Optional[int]:
        result = 0
        shift = 0
        while True:
            if self._pos >= len(self._data):
                return None
            byte = self._data[self._pos]
            self._pos += 1
            result |= (byte & 0x7F) << shift
            if byte < 0x80:
                return result
            shift += 7
            if shift >= _MAX_VARINT_SHIFT:
                return None

    def _parse_next_entry(self) -> Optional[tuple[bytes, bytes]]:
        if self._pos >= len(self._data):
            return None

        shared = self._decode_varint()
        if shared is None:
            return None
        non_shared = self._decode_varint()
        if non_shared is None:
            return None
        value_len = self._decode_varint()
        if value_len is None:
            return None

        if self._pos + non_shared + value_len > len(self._data):
            return None
        if shared > len(self.key):
            raise CorruptionError("Shared prefix longer than previous key")

        key_end = self._pos + non_shared
        key = self.key[:shared] + self._data[self._pos:key_end]
        value_end = key_end + value_len
        value = self._data[key_end:value_end]
        self._pos = value_end
        return key, value