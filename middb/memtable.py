"""In-memory write buffer with tombstones and size accounting."""

from __future__ import annotations

import enum
from typing import Any, Iterator, Union

from middb.skiplist import SkipList

NODE_OVERHEAD = 40
DEFAULT_FLUSH_THRESHOLD = 64 * 1024 * 1024

BytesLike = Union[bytes, bytearray, memoryview, str]


class Tombstone(enum.Enum):
    """Marker stored in place of a value for a deleted key."""

    TOMBSTONE = "tombstone"

    def __repr__(self) -> str:
        return "Tombstone"


TOMBSTONE = Tombstone.TOMBSTONE


def _byte_len(data: BytesLike) -> int:
    if isinstance(data, str):
        return len(data.encode("utf-8"))
    if isinstance(data, (bytes, bytearray)):
        return len(data)
    if isinstance(data, memoryview):
        return data.nbytes
    raise TypeError(f"expected bytes or str, got {type(data).__name__}")


class MemTable:
    """Sorted buffer of recent writes; deletions are kept as tombstones."""

    def __init__(self, flush_threshold: int = DEFAULT_FLUSH_THRESHOLD) -> None:
        self.flush_threshold = flush_threshold
        self._data = SkipList()
        self._approx_size = 0

    def approx_size(self) -> int:
        """Approximate number of bytes written into the table."""
        return self._approx_size

    def should_flush(self) -> bool:
        return self._approx_size >= self.flush_threshold

    def __len__(self) -> int:
        return len(self._data)

    def put(self, key: BytesLike, value: BytesLike) -> None:
        entry_size = _byte_len(key) + _byte_len(value) + NODE_OVERHEAD
        self._data.insert(key, value)
        self._approx_size += entry_size

    def get(self, key: BytesLike) -> Any:
        """Return the live value for ``key``, or None if absent or deleted."""
        entry = self._data.get(key)
        return None if entry is TOMBSTONE else entry

    def delete(self, key: BytesLike) -> None:
        entry_size = _byte_len(key) + NODE_OVERHEAD
        self._data.insert(key, TOMBSTONE)
        self._approx_size += entry_size

    def __iter__(self) -> Iterator[tuple[Any, Any]]:
        """Yield ``(key, value_or_tombstone)`` pairs in key order."""
        return iter(self._data)

    def range(self, start: BytesLike, end: BytesLike) -> Iterator[tuple[Any, Any]]:
        """Yield entries with keys in ``[start, end)``, tombstones included."""
        return self._data.range(start, end)

    def clear(self) -> None:
        self._data = SkipList()
        self._approx_size = 0