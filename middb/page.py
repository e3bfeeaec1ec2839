"""Fixed-size pages of raw bytes."""

from __future__ import annotations

from typing import Optional

from middb.errors import InvalidArgumentError

PAGE_SIZE = 4096


class Page:
    """A mutable block of exactly ``PAGE_SIZE`` bytes."""

    __slots__ = ("data",)

    def __init__(self, data: Optional[bytes] = None) -> None:
        if data is None:
            self.data = bytearray(PAGE_SIZE)
            return
        if len(data) != PAGE_SIZE:
            raise InvalidArgumentError(
                f"Page data must be {PAGE_SIZE} bytes, got {len(data)}"
            )
        self.data = bytearray(data)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Page":
        """Build a page from exactly ``PAGE_SIZE`` bytes."""
        return cls(data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Page):
            return NotImplemented
        return self.data == other.data

    def __repr__(self) -> str:
        return f"Page(<{PAGE_SIZE} bytes>)"

    def copy(self) -> "Page":
        return Page(self.data)

    def get_slice(self, offset: int, length: int) -> bytes:
        """Return ``length`` bytes starting at ``offset``."""
        if offset < 0 or length < 0 or offset + length > PAGE_SIZE:
            raise InvalidArgumentError(
                f"Slice out of bounds: offset={offset}, len={length}, page_size={PAGE_SIZE}"
            )
        return bytes(self.data[offset:offset + length])

    def write_at(self, offset: int, data: bytes) -> None:
        """Overwrite bytes starting at ``offset`` with ``data``."""
        if offset < 0 or offset + len(data) > PAGE_SIZE:
            raise InvalidArgumentError(
                f"Write out of bounds: offset={offset}, len={len(data)}, page_size={PAGE_SIZE}"
            )
        self.data[offset:offset + len(data)] = data

    def zero(self) -> None:
        """Reset every byte of the page to zero."""
        self.data[:] = bytes(PAGE_SIZE)