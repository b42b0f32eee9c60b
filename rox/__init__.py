"""
Python binding for RocksDB.

This package wraps an embedded RocksDB database with:
- open(path, db_opts, cf_opts) / close() - Handle lifecycle with sanitized options
- put(key, value) - Bytes stored as-is, other values pickled
- get(key, {"decode": True}) - Optional unpickling on read, NOT_FOUND if missing
- delete(key) / count() - Default column family delete, approximate key count
- stream_keys() / stream() - Lazy cursor iteration with guaranteed cursor release
"""

from rox.engine.database import Database, open
from rox.engine.stream import CursorStream, StreamState
from rox.models.exceptions import (
    ClosedError,
    DecodeError,
    EngineError,
    InvalidIterator,
    InvalidOptionError,
    RoxError,
)
from rox.models.options import (
    AccessHint,
    CompactionStyle,
    CompressionType,
    WalRecoveryMode,
)
from rox.models.outcome import NOT_FOUND

__version__ = "0.1.0"

__all__ = [
    "NOT_FOUND",
    "AccessHint",
    "ClosedError",
    "CompactionStyle",
    "CompressionType",
    "CursorStream",
    "Database",
    "DecodeError",
    "EngineError",
    "InvalidIterator",
    "InvalidOptionError",
    "RoxError",
    "StreamState",
    "WalRecoveryMode",
]
