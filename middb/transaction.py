"""Multi-version transactions with optimistic conflict detection."""

from __future__ import annotations

import enum
import itertools
import threading
from dataclasses import dataclass, field
from typing import Optional, Union

from middb.errors import MiddbError


class TxnStatus(enum.Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class Put:
    """A buffered write that stores ``value``."""

    value: bytes


@dataclass(frozen=True)
class Delete:
    """A buffered write that removes the key."""


WriteOp = Union[Put, Delete]


class TxnError(MiddbError):
    """Base class for transaction failures."""


class TxnNotFoundError(TxnError):
    def __init__(self, txn_id: int) -> None:
        super().__init__(f"transaction {txn_id} not found")
        self.txn_id = txn_id


class TxnNotActiveError(TxnError):
    def __init__(self, txn_id: int) -> None:
        super().__init__(f"transaction {txn_id} not active")
        self.txn_id = txn_id


class ConflictError(TxnError):
    def __init__(self, key: bytes) -> None:
        super().__init__(f"conflict on key {key!r}")
        self.key = key


@dataclass
class Transaction:
    """Read and write sets of one transaction against a snapshot version."""

    id: int
    start_version: int
    status: TxnStatus = TxnStatus.ACTIVE
    read_set: set[bytes] = field(default_factory=set)
    write_set: dict[bytes, WriteOp] = field(default_factory=dict)

    def record_read(self, key: bytes) -> None:
        self.read_set.add(bytes(key))

    def record_put(self, key: bytes, value: bytes) -> None:
        self.write_set[bytes(key)] = Put(bytes(value))

    def record_delete(self, key: bytes) -> None:
        self.write_set[bytes(key)] = Delete()

    def get_local(self, key: bytes) -> Optional[WriteOp]:
        """Return this transaction's own pending write to ``key``, if any."""
        return self.write_set.get(bytes(key))

    def is_active(self) -> bool:
        return self.status is TxnStatus.ACTIVE


@dataclass(frozen=True)
class _CommittedWrite:
    version: int
    value: Optional[bytes]


class TransactionManager:
    """Hands out transactions, validates them at commit and keeps versions."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._next_txn_id = 1
        self._current_version = 0
        self._active: dict[int, Transaction] = {}
        self._committed: dict[bytes, list[_CommittedWrite]] = {}

    def _live(self, txn_id: int) -> Transaction:
        txn = self._active.get(txn_id)
        if txn is None:
            raise TxnNotFoundError(txn_id)
        return txn

    def begin(self) -> int:
        """Start a transaction on the current snapshot and return its id."""
        with self._lock:
            txn_id = self._next_txn_id
            self._next_txn_id += 1
            self._active[txn_id] = Transaction(txn_id, self._current_version)
            return txn_id

    def record_read(self, txn_id: int, key: bytes) -> None:
        with self._lock:
            txn = self._live(txn_id)
            if not txn.is_active():
                raise TxnNotActiveError(txn_id)
            txn.record_read(key)

    def record_write(self, txn_id: int, key: bytes, value: Optional[bytes]) -> None:
        """Buffer a put of ``value``, or a delete when ``value`` is None."""
        with self._lock:
            txn = self._live(txn_id)
            if not txn.is_active():
                raise TxnNotActiveError(txn_id)
            if value is None:
                txn.record_delete(key)
            else:
                txn.record_put(key, value)

    def get_local(self, txn_id: int, key: bytes) -> Optional[WriteOp]:
        with self._lock:
            return self._live(txn_id).get_local(key)

    def get_start_version(self, txn_id: int) -> int:
        with self._lock:
            return self._live(txn_id).start_version

    def commit(self, txn_id: int) -> tuple[int, list[tuple[bytes, WriteOp]]]:
        """Validate and commit; return the commit version and the applied writes.

        The transaction is removed from the active set even when validation
        fails.
        """
        with self._lock:
            txn = self._active.pop(txn_id, None)
            if txn is None:
                raise TxnNotFoundError(txn_id)
            if not txn.is_active():
                raise TxnNotActiveError(txn_id)

            self._check_conflicts(txn)

            self._current_version += 1
            commit_version = self._current_version
            writes = list(txn.write_set.items())
            for key, op in writes:
                value = op.value if isinstance(op, Put) else None
                self._committed.setdefault(key, []).append(
                    _CommittedWrite(commit_version, value)
                )
            txn.status = TxnStatus.COMMITTED
            return commit_version, writes

    def abort(self, txn_id: int) -> None:
        with self._lock:
            txn = self._active.pop(txn_id, None)
            if txn is None:
                raise TxnNotFoundError(txn_id)
            txn.status = TxnStatus.ABORTED

    def _check_conflicts(self, txn: Transaction) -> None:
        for key in itertools.chain(txn.read_set, txn.write_set):
            versions = self._committed.get(key, ())
            if any(write.version > txn.start_version for write in versions):
                raise ConflictError(key)

    def get_visible_value(self, key: bytes, start_version: int) -> Optional[bytes]:
        """Latest committed value of ``key`` at or before ``start_version``."""
        with self._lock:
            visible = [
                write
                for write in self._committed.get(bytes(key), ())
                if write.version <= start_version
            ]
        if not visible:
            return None
        return max(visible, key=lambda write: write.version).value

    def active_count(self) -> int:
        with self._lock:
            return len(self._active)

    def current_version(self) -> int:
        with self._lock:
            return self._current_version

    def gc(self, min_version: int) -> None:
        """Drop committed versions older than ``min_version``."""
        with self._lock:
            for key in list(self._committed):
                kept = [w for w in self._committed[key] if w.version >= min_version]
                if kept:
                    self._committed[key] = kept
                else:
                    del self._committed[key]