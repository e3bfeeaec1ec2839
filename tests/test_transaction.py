import pytest

from middb.transaction import (
    ConflictError,
    Delete,
    Put,
    Transaction,
    TransactionManager,
    TxnNotFoundError,
    TxnStatus,
)


def test_begin_transaction():
    tm = TransactionManager()
    txn1 = tm.begin()
    txn2 = tm.begin()
    assert txn1 == 1
    assert txn2 == 2
    assert tm.active_count() == 2


def test_commit_transaction():
    tm = TransactionManager()
    txn = tm.begin()
    tm.record_write(txn, b"key", b"value")
    version, writes = tm.commit(txn)
    assert version == 1
    assert len(writes) == 1
    assert writes == [(b"key", Put(b"value"))]
    assert tm.active_count() == 0
    assert tm.current_version() == 1


def test_abort_transaction():
    tm = TransactionManager()
    txn = tm.begin()
    tm.record_write(txn, b"key", b"value")
    tm.abort(txn)
    assert tm.active_count() == 0
    assert tm.get_visible_value(b"key", 100) is None


def test_snapshot_isolation():
    tm = TransactionManager()
    t1 = tm.begin()
    tm.record_write(t1, b"key", b"v1")
    tm.commit(t1)

    t2 = tm.begin()
    start_version = tm.get_start_version(t2)

    t3 = tm.begin()
    tm.record_write(t3, b"key", b"v2")
    tm.commit(t3)

    assert tm.get_visible_value(b"key", start_version) == b"v1"
    assert tm.commit(t2)[1] == []


def test_write_conflict():
    tm = TransactionManager()
    t1 = tm.begin()
    t2 = tm.begin()
    tm.record_read(t1, b"key")
    tm.record_write(t2, b"key", b"v2")
    tm.commit(t2)

    with pytest.raises(ConflictError) as excinfo:
        tm.commit(t1)
    assert excinfo.value.key == b"key"
    assert tm.active_count() == 0


def test_write_write_conflict():
    tm = TransactionManager()
    t1 = tm.begin()
    t2 = tm.begin()
    tm.record_write(t1, b"key", b"a")
    tm.record_write(t2, b"key", b"b")
    tm.commit(t2)
    with pytest.raises(ConflictError):
        tm.commit(t1)
    assert tm.get_visible_value(b"key", tm.current_version()) == b"b"


def test_gc():
    tm = TransactionManager()
    for i in range(5):
        t = tm.begin()
        tm.record_write(t, b"key", f"v{i}".encode())
        tm.commit(t)

    tm.gc(3)
    assert tm.get_visible_value(b"key", 2) is None
    assert tm.get_visible_value(b"key", 5) == b"v4"


def test_delete_visibility():
    tm = TransactionManager()
    t1 = tm.begin()
    tm.record_write(t1, b"key", b"value")
    tm.commit(t1)

    t2 = tm.begin()
    tm.record_write(t2, b"key", None)
    tm.commit(t2)

    assert tm.get_visible_value(b"key", 2) is None
    assert tm.get_visible_value(b"key", 1) == b"value"


def test_get_local_sees_own_writes():
    tm = TransactionManager()
    t = tm.begin()
    assert tm.get_local(t, b"a") is None
    tm.record_write(t, b"a", b"1")
    assert tm.get_local(t, b"a") == Put(b"1")
    tm.record_write(t, b"a", None)
    assert tm.get_local(t, b"a") == Delete()


def test_unknown_transaction_raises():
    tm = TransactionManager()
    with pytest.raises(TxnNotFoundError):
        tm.commit(42)
    with pytest.raises(TxnNotFoundError):
        tm.abort(42)
    with pytest.raises(TxnNotFoundError):
        tm.record_read(42, b"k")
    with pytest.raises(TxnNotFoundError):
        tm.get_start_version(42)


def test_committed_transaction_is_gone():
    tm = TransactionManager()
    t = tm.begin()
    tm.commit(t)
    with pytest.raises(TxnNotFoundError):
        tm.record_write(t, b"k", b"v")


def test_transaction_record_sets():
    txn = Transaction(7, 3)
    assert txn.is_active()
    txn.record_read(b"r")
    txn.record_put(b"w", b"v")
    txn.record_delete(b"d")
    assert txn.read_set == {b"r"}
    assert txn.get_local(b"w") == Put(b"v")
    assert txn.get_local(b"d") == Delete()
    txn.status = TxnStatus.ABORTED
    assert not txn.is_active()