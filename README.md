# middb

Building blocks for a small embedded database, in plain Python with no
third-party dependencies.

- `middb.skiplist.SkipList`: an ordered map with `insert`, `get`, `remove`,
  `in`, `len()`, ordered iteration and half-open `range(start, end)` queries.
- `middb.memtable.MemTable`: an in-memory write buffer over a skip list. It
  records deletions as `Tombstone`s and keeps an approximate byte size
  (`approx_size()`), so `should_flush()` tells you when it has reached its
  `flush_threshold` (64 MiB by default).
- `middb.block`: prefix-compressed data blocks with restart points. Use
  `BlockBuilder` to build a `Block`, `Block.encode()` / `Block.decode()` to
  serialise it, and `BlockIterator` to read it back with `seek` and `next`.
- `middb.footer`: `BlockHandle`, the 48-byte table `Footer` with its magic
  number and version check, and `SSTableMetadata` with `may_contain(key)`.
- `middb.page`: `Page`, a mutable block of exactly 4096 bytes with bounds-checked
  `get_slice` and `write_at`.
- `middb.wal`: a write-ahead log with CRC-32-checked records (`WalEntry`,
  `WalWriter`, `WalReader`).
- `middb.transaction`: a snapshot-isolation `TransactionManager`. It detects
  conflicts on commit and can garbage-collect old versions with `gc()`.
- `middb.expr`, `middb.plan` and `middb.executor`: a small query engine. You
  build expressions (`Literal`, `Column`, `BinaryOp`), plan a scan with
  `Planner`, and run it with `Executor` over registered `Table`s.
- `middb.protocol`, `middb.client` and `middb.server`: a length-prefixed binary
  request/response protocol over TCP, with an asyncio `Client` and `Server`.

Errors derive from `middb.errors.MiddbError`. Malformed stored or transmitted
data raises `CorruptionError`, and out-of-range arguments raise
`InvalidArgumentError`.

## Installation

```
pip install .
```

To also install what the test suite needs:

```
pip install ".[test]"
```

## Examples

### Skip list and memtable

```python
from middb.skiplist import SkipList
from middb.memtable import MemTable

items = SkipList()
for i in range(10):
    items.insert(i, i * 10)
assert list(items.range(3, 7)) == [(3, 30), (4, 40), (5, 50), (6, 60)]

table = MemTable(flush_threshold=100)
table.put(b"key1", b"value1")
table.delete(b"key1")
assert table.get(b"key1") is None
```

### Blocks

```python
from middb.block import Block, BlockBuilder, BlockIterator

builder = BlockBuilder(restart_interval=16)
builder.add(b"apple", b"red")
builder.add(b"banana", b"yellow")
block = Block.decode(builder.finish().encode())
assert list(BlockIterator(block)) == [(b"apple", b"red"), (b"banana", b"yellow")]
```

Keys must be non-empty and added in strictly increasing order. Otherwise
`add` raises `InvalidArgumentError`.

### Write-ahead log

```python
from middb.wal import WalEntry, WalReader, WalWriter

with WalWriter("db.wal") as writer:
    writer.append(WalEntry.put(1, b"key1", b"value1"))
    writer.append(WalEntry.delete(2, b"key1"))
    writer.sync()

with WalReader("db.wal") as reader:
    for entry in reader:
        print(entry.sequence_number, entry.entry_type, entry.key, entry.value)
```

`WalWriter` opens its file for appending. A record whose checksum does not
match raises `CorruptionError`.

### Transactions

```python
from middb.transaction import TransactionManager, ConflictError

manager = TransactionManager()
txn = manager.begin()
manager.record_write(txn, b"key", b"value")
version, writes = manager.commit(txn)
assert manager.get_visible_value(b"key", version) == b"value"
```

Passing `None` as the value to `record_write` buffers a delete. If another
transaction has committed a key that this one read or wrote since this one
started, `commit` raises `ConflictError`.

### Queries

```python
from middb.expr import BinaryOp, BinaryOperator, Column, Literal
from middb.executor import Executor, Row, Table
from middb.plan import Planner

users = Table("users")
users.add_row(Row({"name": "Alice", "age": 30}))
users.add_row(Row({"name": "Bob", "age": 25}))

executor = Executor()
executor.register_table("users", users)

planner = Planner()
predicate = BinaryOp(BinaryOperator.GT, Column("age"), Literal(25))
rows = executor.execute(planner.to_physical(planner.plan("users", predicate)))
assert [row.get_column("name") for row in rows] == ["Alice"]
```

Scanning a table that has not been registered raises `QueryError`.

### Network client and server

```python
import asyncio
from middb.client import Client

async def demo():
    async with await Client.connect("127.0.0.1:7878") as client:
        await client.ping()
        await client.put(b"key1", b"value1")
        print(await client.get(b"key1"))
        await client.delete(b"key1")

asyncio.run(demo())
```

To serve a store, create `middb.server.Server(db, "127.0.0.1:7878")` and await
its `run()` method. It serves until it is cancelled. `db` can be any object with
`get(key)`, `put(key, value)` and `delete(key)`. If one of these raises, the
client receives the message and raises `ClientError`.

## What is not included

The pieces above are not wired together into a database. There is no
file-backed or in-memory page store that uses `Page`. There is no writer or
reader that lays out blocks, a bloom filter and a `Footer` into a table file.
There is no engine that combines the memtable, the log and tables behind
`get`/`put`/`delete`. The server therefore needs a store object from you, and
the package installs no command-line program.