"""An ordered map backed by a probabilistic skip list."""

from __future__ import annotations

from typing import Any, Iterator, Optional

MAX_HEIGHT = 16
_PROMOTION_PROBABILITY = 0.25
_U64_MASK = (1 << 64) - 1


class _Node:
    __slots__ = ("key", "value", "forward")

    def __init__(self, key: Any, value: Any, height: int) -> None:
        self.key = key
        self.value = value
        self.forward: list[Optional[_Node]] = [None] * height


class _Lcg:
    """Deterministic linear congruential generator for node heights."""

    def __init__(self, seed: int = 12345) -> None:
        self._state = seed

    def random(self) -> float:
        self._state = (self._state * 1103515245 + 12345) & _U64_MASK
        return ((self._state // 65536) % 32768) / 32768.0


class SkipList:
    """Sorted key/value map with expected logarithmic insert, lookup and removal."""

    def __init__(self) -> None:
        self._head = _Node(None, None, MAX_HEIGHT)
        self._len = 0
        self._height = 1
        self._rng = _Lcg()

    def __len__(self) -> int:
        return self._len

    def _random_height(self) -> int:
        height = 1
        while height < MAX_HEIGHT and self._rng.random() < _PROMOTION_PROBABILITY:
            height += 1
        return height

    def _update_path(self, key: Any) -> list[_Node]:
        update = [self._head] * MAX_HEIGHT
        current = self._head
        for level in reversed(range(self._height)):
            nxt = current.forward[level]
            while nxt is not None and nxt.key < key:
                current = nxt
                nxt = current.forward[level]
            update[level] = current
        return update

    def _find(self, key: Any) -> Optional[_Node]:
        current = self._head
        for level in reversed(range(self._height)):
            nxt = current.forward[level]
            while nxt is not None:
                if nxt.key < key:
                    current = nxt
                    nxt = current.forward[level]
                elif nxt.key == key:
                    return nxt
                else:
                    break
        return None

    def insert(self, key: Any, value: Any) -> None:
        """Insert ``key`` or replace the value already stored under it."""
        update = self._update_path(key)
        candidate = update[0].forward[0]
        if candidate is not None and candidate.key == key:
            candidate.value = value
            return

        height = self._random_height()
        if height > self._height:
            self._height = height

        node = _Node(key, value, height)
        for level in range(height):
            node.forward[level] = update[level].forward[level]
            update[level].forward[level] = node
        self._len += 1

    def get(self, key: Any) -> Any:
        """Return the value stored under ``key``, or None when absent."""
        node = self._find(key)
        return None if node is None else node.value

    def __contains__(self, key: Any) -> bool:
        return self._find(key) is not None

    def remove(self, key: Any) -> Any:
        """Remove ``key`` and return its value, or None when absent."""
        update = self._update_path(key)
        node = update[0].forward[0]
        if node is None or node.key != key:
            return None

        for level, successor in enumerate(node.forward):
            update[level].forward[level] = successor

        while self._height > 1 and self._head.forward[self._height - 1] is None:
            self._height -= 1

        self._len -= 1
        return node.value

    def __iter__(self) -> Iterator[tuple[Any, Any]]:
        node = self._head.forward[0]
        while node is not None:
            yield node.key, node.value
            node = node.forward[0]

    def range(self, start: Any, end: Any) -> Iterator[tuple[Any, Any]]:
        """Yield the pairs whose keys lie in ``[start, end)`` in order."""
        current = self._head
        for level in reversed(range(self._height)):
            nxt = current.forward[level]
            while nxt is not None and nxt.key < start:
                current = nxt
                nxt = current.forward[level]

        node = current.forward[0]
        while node is not None and node.key < end:
            yield node.key, node.value
            node = node.forward[0]