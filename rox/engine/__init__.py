"""
Database façade, cursor streams and the RocksDB engine adapter.
"""

from rox.engine.database import Database
from rox.engine.stream import CursorStream, StreamState

__all__ = ["CursorStream", "Database", "StreamState"]
