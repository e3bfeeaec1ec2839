"""Storage-engine building blocks: skip list, memtable, SSTable blocks and footer, pages, WAL, transactions, queries and a TCP protocol."""

__version__ = "0.1.0"