[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "middb"
version = "0.1.0"
description = "Storage-engine building blocks: skip-list memtable, SSTable blocks and footer, pages, write-ahead log, MVCC transactions, a query executor and a TCP key-value protocol."
requires-python = ">=3.10"
keywords = ["database", "lsm", "sstable", "skiplist", "wal", "mvcc", "key-value"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Framework :: AsyncIO",
    "Topic :: Database :: Database Engines/Servers",
]
dependencies = []

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "hypothesis",
]

[tool.hatch.build.targets.wheel]
packages = ["middb"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
strict = true
packages = ["middb"]
