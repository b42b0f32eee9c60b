"""
Database - handle façade over a NativeEngine.
"""

import logging
import os
from typing import Any

from rox.engine.stream import CursorStream
from rox.interfaces.native_engine import CfHandle, NativeEngine, SnapshotHandle
from rox.models.codec import decode, encode, encode_raw, encode_term
from rox.models.exceptions import ClosedError
from rox.models.options import Options, as_dict, sanitize_opts, split_read_opts
from rox.models.outcome import NOT_FOUND

logger = logging.getLogger(__name__)

Key = str | bytes | bytearray | memoryview


def to_key(key: Key) -> bytes:
    """
    Convert a str or bytes-like key to bytes.

    Raises:
        TypeError: For any other key type.
    """
    if isinstance(key, bytes):
        return key
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, (bytearray, memoryview)):
        return bytes(key)
    raise TypeError(f"key must be str or bytes-like, got {type(key).__name__}")


class Database:
    """
    An open RocksDB database.

    Provides:
    - put(key, value[, write_opts][, cf=]): Store bytes as-is, other values pickled
    - get(key[, read_opts]): Read a key, NOT_FOUND if missing
    - delete(key): Remove a key from the default column family
    - count(): Approximate number of keys
    - stream_keys()/stream(): Lazy cursor-backed iteration

    Get and delete only address the default column family; put is the
    only operation that takes a column-family handle.

    The database must be closed explicitly (or used as a context
    manager). Closing twice raises ClosedError.
    """

    def __init__(self, engine: NativeEngine, handle: Any, path: str) -> None:
        """
        Wrap an already-open native handle. Use Database.open() instead.

        Args:
            engine: Engine that issued the handle.
            handle: Opaque database handle.
            path: Database path, for messages.
        """
        self._engine = engine
        self._handle = handle
        self._path = path
        self._closed = False

    @classmethod
    def open(
        cls,
        path: str | os.PathLike,
        db_opts: Options | None = None,
        cf_opts: Options | None = None,
        *,
        engine: NativeEngine | None = None,
    ) -> "Database":
        """
        Open a database with the given database and column-family options.

        Args:
            path: Database directory.
            db_opts: Database options, e.g. ``{"create_if_missing": True}``.
            cf_opts: Default column family options.
            engine: Native engine to use (RocksDB by default).

        Returns:
            The open Database.

        Raises:
            EngineError: If the engine cannot open the database.
        """
        if engine is None:
            from rox.engine.rocksdb import RocksDBEngine

            engine = RocksDBEngine()

        str_path = os.fspath(path)
        handle = engine.open(os.fsencode(str_path), sanitize_opts(db_opts), sanitize_opts(cf_opts))
        logger.debug(f"Opened database at {str_path}")
        return cls(engine, handle, str_path)

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _assert_open(self, operation: str) -> None:
        if self._closed:
            raise ClosedError(self._path, operation)

    def close(self) -> None:
        """
        Close the database and release its native resources.

        Raises:
            ClosedError: If the database was already closed.
            EngineError: If the engine fails to release the handle.
        """
        self._assert_open("close")
        self._engine.close(self._handle)
        self._closed = True
        logger.debug(f"Closed database at {self._path}")

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self._closed:
            self.close()

    def put(
        self,
        key: Key,
        value: Any,
        write_opts: Options | None = None,
        cf: CfHandle | None = None,
    ) -> None:
        """
        Store a value.

        Bytes-like values are stored unchanged; anything else is pickled
        first and must be read back with ``decode=True``.

        Args:
            key: Key to write.
            value: Bytes or any picklable value.
            write_opts: Write options, e.g. ``{"sync": True}``.
            cf: Column family handle; default column family if None.
        """
        self._put(key, encode(value), write_opts, cf)

    def put_raw(
        self,
        key: Key,
        data: bytes | bytearray | memoryview,
        write_opts: Options | None = None,
        cf: CfHandle | None = None,
    ) -> None:
        """Store bytes-like data without any serialization."""
        self._put(key, encode_raw(data), write_opts, cf)

    def put_value(
        self,
        key: Key,
        value: Any,
        write_opts: Options | None = None,
        cf: CfHandle | None = None,
    ) -> None:
        """Store the pickled form of value, even when value is bytes."""
        self._put(key, encode_term(value), write_opts, cf)

    def _put(
        self, key: Key, data: bytes, write_opts: Options | None, cf: CfHandle | None
    ) -> None:
        self._assert_open("put")
        self._engine.put(self._handle, to_key(key), data, as_dict(write_opts), cf)

    def get(self, key: Key, read_opts: Options | None = None) -> Any:
        """
        Read a key from the default column family.

        Pass ``{"decode": True}`` to unpickle values stored with put()
        or put_value(). Without it the stored bytes are returned.

        Args:
            key: Key to read.
            read_opts: Read options, optionally with ``decode``.

        Returns:
            The stored bytes or decoded value, or NOT_FOUND.

        Raises:
            DecodeError: If decode was requested and the bytes are not pickled.
            EngineError: If the engine read fails.
        """
        self._assert_open("get")
        directives = split_read_opts(read_opts)
        data = self._engine.get(self._handle, to_key(key), directives.options)
        if data is None:
            return NOT_FOUND
        if directives.decode:
            return decode(data)
        return data

    def delete(self, key: Key) -> None:
        """Remove a key from the default column family."""
        self._assert_open("delete")
        self._engine.delete(self._handle, to_key(key), {})

    def count(self) -> int:
        """
        Return the engine's estimate of the number of keys.

        The value is approximate; it can lag behind recent writes or
        count overwritten and deleted keys.
        """
        self._assert_open("count")
        return self._engine.count_estimate(self._handle)

    def stream_keys(
        self,
        read_opts: Options | None = None,
        *,
        reverse: bool = False,
        start: Key | None = None,
    ) -> CursorStream:
        """
        Return a lazy stream of keys in key order.

        Args:
            read_opts: Read options for the cursor.
            reverse: Iterate from the last key backwards.
            start: Begin at the first key >= start.
        """
        self._assert_open("stream keys")
        return CursorStream(
            self._engine,
            self._handle,
            read_opts,
            keys_only=True,
            reverse=reverse,
            start=None if start is None else to_key(start),
        )

    def stream(
        self,
        read_opts: Options | None = None,
        *,
        reverse: bool = False,
        start: Key | None = None,
    ) -> CursorStream:
        """
        Return a lazy stream of (key, value) pairs in key order.

        With ``{"decode": True}`` each value is unpickled as it is pulled.

        Args:
            read_opts: Read options for the cursor, optionally with ``decode``.
            reverse: Iterate from the last key backwards.
            start: Begin at the first key >= start.
        """
        self._assert_open("stream")
        return CursorStream(
            self._engine,
            self._handle,
            read_opts,
            reverse=reverse,
            start=None if start is None else to_key(start),
        )

    def create_column_family(self, name: str, cf_opts: Options | None = None) -> CfHandle:
        """Create a column family and return its handle."""
        self._assert_open("create column family")
        return self._engine.create_column_family(self._handle, name, sanitize_opts(cf_opts))

    def column_family(self, name: str) -> CfHandle:
        """Return the handle of an existing column family."""
        self._assert_open("get column family")
        return self._engine.column_family(self._handle, name)

    def snapshot(self) -> SnapshotHandle:
        """
        Take a point-in-time read view.

        Pass it as the ``snapshot`` read option to get(), stream() or
        stream_keys(), and release it with release_snapshot(). The RocksDB
        engine only honors it for get() and rejects it on streams.
        """
        self._assert_open("snapshot")
        snapshot = self._engine.snapshot(self._handle)
        logger.debug(f"Took snapshot of {self._path}")
        return snapshot

    def release_snapshot(self, snapshot: SnapshotHandle) -> None:
        self._assert_open("release snapshot")
        self._engine.release_snapshot(snapshot)
        logger.debug(f"Released snapshot of {self._path}")


def open(
    path: str | os.PathLike,
    db_opts: Options | None = None,
    cf_opts: Options | None = None,
    *,
    engine: NativeEngine | None = None,
) -> Database:
    """Open a database. Shorthand for Database.open()."""
    return Database.open(path, db_opts, cf_opts, engine=engine)
