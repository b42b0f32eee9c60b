"""
RocksDBEngine - NativeEngine backed by the rocksdict RocksDB binding.
"""

import logging
import os
from collections.abc import Callable
from typing import Any

import rocksdict
from rocksdict import Options, Rdict, ReadOptions, WriteOptions

from rox.interfaces.native_engine import (
    CfHandle,
    Cursor,
    DbHandle,
    Directive,
    IteratorMode,
    Move,
    NativeEngine,
    Seek,
    SnapshotHandle,
)
from rox.models.exceptions import EngineError, InvalidIterator, InvalidOptionError, RoxError
from rox.models.options import (
    BLOCK_BASED_TABLE_OPTION_NAMES,
    CF_OPTION_NAMES,
    DB_OPTION_NAMES,
    READ_OPTION_NAMES,
    WRITE_OPTION_NAMES,
    CompactionStyle,
    CompressionType,
    WalRecoveryMode,
)

logger = logging.getLogger(__name__)

# Property backing count_estimate()
ESTIMATE_NUM_KEYS = "rocksdb.estimate-num-keys"

# A setter is a method name on the rocksdict options object, or a callable
# taking (options_object, value)
Setter = str | Callable[[Any, Any], None]


def _native_call(operation: str, fn: Callable[..., Any], *args: Any) -> Any:
    """Invoke a rocksdict function and re-raise failures as EngineError."""
    try:
        return fn(*args)
    except RoxError:
        raise
    except Exception as e:
        raise EngineError(operation, e) from e


def _snapshot_get(snapshot: Any, key: bytes) -> bytes | None:
    # Snapshot only supports item access
    try:
        return snapshot[key]
    except KeyError:
        return None


def _enum_setter(
    method: str, enum_cls: type, factory_cls: str, factories: dict[str, str]
) -> Callable[[Any, Any], None]:
    """Build a setter converting an option enum to a rocksdict enum value."""

    def setter(target: Any, value: Any) -> None:
        member = enum_cls(value)
        factory = factories.get(member.value)
        if factory is None:
            raise InvalidOptionError(method, value, "not available in RocksDB")
        native_value = getattr(getattr(rocksdict, factory_cls), factory)()
        getattr(target, method)(native_value)

    return setter


def _apply_block_based_table(target: Any, value: Any) -> None:
    table_opts = rocksdict.BlockBasedOptions()
    _configure(
        table_opts,
        dict(value),
        BLOCK_BASED_TABLE_SETTERS,
        BLOCK_BASED_TABLE_OPTION_NAMES,
        "block-based table",
    )
    target.set_block_based_table_factory(table_opts)


def _disable_block_cache(target: Any, value: Any) -> None:
    if value:
        target.disable_cache()


DB_SETTERS: dict[str, Setter] = {
    "total_threads": "increase_parallelism",
    "db_log_dir": lambda target, value: target.set_db_log_dir(os.fsdecode(value)),
    "wal_dir": lambda target, value: target.set_wal_dir(os.fsdecode(value)),
    "table_cache_numshardbits": "set_table_cache_num_shard_bits",
    "wal_recovery_mode": _enum_setter(
        "set_wal_recovery_mode",
        WalRecoveryMode,
        "DBRecoveryMode",
        {
            "tolerate_corrupted_tail_records": "tolerate_corrupted_tail_records",
            "absolute_consistency": "absolute_consistency",
            "point_in_time_recovery": "point_in_time",
            "skip_any_corrupted_records": "skip_any_corrupted_record",
        },
    ),
}

CF_SETTERS: dict[str, Setter] = {
    "block_cache_size_mb_for_point_lookup": "optimize_for_point_lookup",
    "memtable_memory_budget": "optimize_level_style_compaction",
    "level0_file_num_compaction_trigger": "set_level_zero_file_num_compaction_trigger",
    "level0_slowdown_writes_trigger": "set_level_zero_slowdown_writes_trigger",
    "level0_stop_writes_trigger": "set_level_zero_stop_writes_trigger",
    "inplace_update_num_locks": "set_inplace_update_locks",
    "compression": _enum_setter(
        "set_compression_type",
        CompressionType,
        "DBCompressionType",
        {
            "snappy": "snappy",
            "zlib": "zlib",
            "bzip2": "bz2",
            "lz4": "lz4",
            "lz4h": "lz4hc",
            "none": "none",
        },
    ),
    "compaction_style": _enum_setter(
        "set_compaction_style",
        CompactionStyle,
        "DBCompactionStyle",
        {"level": "level", "universal": "universal", "fifo": "fifo"},
    ),
    "block_based_table_options": _apply_block_based_table,
}

BLOCK_BASED_TABLE_SETTERS: dict[str, Setter] = {
    "no_block_cache": _disable_block_cache,
    "block_cache_size": lambda target, value: target.set_block_cache(rocksdict.Cache(value)),
    "bloom_filter_policy": lambda target, value: target.set_bloom_filter(value, False),
}


def _resolve_setter(target: Any, name: str, setters: dict[str, Setter]) -> Setter | None:
    """Find how to apply name to target, or None if rocksdict has no way to."""
    setter = setters.get(name)
    if callable(setter):
        return setter

    candidates = (setter,) if setter is not None else (f"set_{name}", name)
    for candidate in candidates:
        if not candidate.startswith("_") and callable(getattr(target, candidate, None)):
            return candidate
    return None


def _configure(
    target: Any,
    opts: dict[str, Any],
    setters: dict[str, Setter],
    recognized: frozenset[str],
    kind: str,
) -> None:
    """
    Apply an option mapping to a rocksdict options object.

    Recognized options that this RocksDB build no longer supports are
    logged and skipped. Unknown options must match a native setter.

    Raises:
        InvalidOptionError: If an option is unknown or its value is rejected.
    """
    for name, value in opts.items():
        setter = _resolve_setter(target, name, setters)
        if setter is None:
            if name in recognized:
                logger.warning(f"Ignoring {kind} option {name}: not supported by RocksDB")
                continue
            raise InvalidOptionError(name, value)

        try:
            if isinstance(setter, str):
                getattr(target, setter)(value)
            else:
                setter(target, value)
        except InvalidOptionError:
            raise
        except Exception as e:
            raise InvalidOptionError(name, value, str(e)) from e


class _RocksDbHandle(DbHandle):
    __slots__ = ("rdict", "path", "column_families")

    def __init__(self, rdict: Rdict, path: str) -> None:
        self.rdict = rdict
        self.path = path
        # Column family rdicts hold a reference to the db; each must be
        # closed before the db releases its LOCK file.
        self.column_families: list[Rdict] = []

    def __repr__(self) -> str:
        return f"<DbHandle {self.path}>"


class _RocksCfHandle(CfHandle):
    __slots__ = ("rdict", "name")

    def __init__(self, rdict: Rdict, name: str) -> None:
        self.rdict = rdict
        self.name = name

    def __repr__(self) -> str:
        return f"<CfHandle {self.name}>"


class _RocksSnapshot(SnapshotHandle):
    __slots__ = ("snapshot",)

    def __init__(self, snapshot: Any) -> None:
        self.snapshot = snapshot


class _RocksCursor(Cursor):
    __slots__ = ("it", "mode")

    def __init__(self, it: Any, mode: IteratorMode) -> None:
        self.it = it
        self.mode = mode


class RocksDBEngine(NativeEngine):
    """
    NativeEngine on top of rocksdict in raw mode.

    Raw mode stores keys and values as plain bytes, leaving serialization
    decisions to the binding. Database and column-family options are
    applied to one rocksdict ``Options`` object, as RocksDB merges them.
    """

    def open(
        self, path: bytes, db_opts: dict[str, Any], cf_opts: dict[str, Any]
    ) -> DbHandle:
        options = Options(raw_mode=True)
        _configure(options, db_opts, DB_SETTERS, DB_OPTION_NAMES, "db")
        _configure(options, cf_opts, CF_SETTERS, CF_OPTION_NAMES, "cf")

        str_path = os.fsdecode(path)
        rdict = _native_call("open", Rdict, str_path, options)
        logger.debug(f"Opened RocksDB at {str_path}")
        return _RocksDbHandle(rdict, str_path)

    def close(self, db: DbHandle) -> None:
        while db.column_families:
            _native_call("close", db.column_families.pop().close)
        _native_call("close", db.rdict.close)
        logger.debug(f"Closed RocksDB at {db.path}")

    def put(
        self,
        db: DbHandle,
        key: bytes,
        value: bytes,
        write_opts: dict[str, Any],
        cf: CfHandle | None = None,
    ) -> None:
        target = cf.rdict if cf is not None else db.rdict
        if write_opts:
            _native_call("put", target.put, key, value, self._write_options(write_opts))
        else:
            _native_call("put", target.put, key, value)

    def get(self, db: DbHandle, key: bytes, read_opts: dict[str, Any]) -> bytes | None:
        source, native_opts = self._read_source(db, read_opts)
        if source is not db.rdict:
            if native_opts is not None:
                logger.warning("Snapshot reads ignore other read options")
            return _native_call("get", _snapshot_get, source, key)
        if native_opts is None:
            return _native_call("get", source.get, key)
        return _native_call("get", source.get, key, None, native_opts)

    def delete(self, db: DbHandle, key: bytes, write_opts: dict[str, Any]) -> None:
        if write_opts:
            _native_call("delete", db.rdict.delete, key, self._write_options(write_opts))
        else:
            _native_call("delete", db.rdict.delete, key)

    def count_estimate(self, db: DbHandle) -> int:
        count = _native_call("count", db.rdict.property_int_value, ESTIMATE_NUM_KEYS)
        if count is None:
            raise EngineError("count", f"property {ESTIMATE_NUM_KEYS} unavailable")
        return count

    def iterator_create(
        self, db: DbHandle, read_opts: dict[str, Any], mode: IteratorMode
    ) -> Cursor:
        source, native_opts = self._read_source(db, read_opts)
        if source is not db.rdict:
            # Snapshot.iter() does not pin the read view, so a cursor over
            # it would see later writes.
            raise InvalidOptionError(
                "snapshot", read_opts["snapshot"], "cursors cannot be pinned to a snapshot"
            )
        if native_opts is None:
            it = _native_call("iterator", source.iter)
        else:
            it = _native_call("iterator", source.iter, native_opts)
        return _RocksCursor(it, mode)

    def iterator_move(
        self, cursor: Cursor, directive: Directive
    ) -> bytes | tuple[bytes, bytes]:
        it = cursor.it
        if it is None:
            raise EngineError("iterator_move", "iterator is closed")

        if directive is Move.FIRST:
            _native_call("iterator_move", it.seek_to_first)
        elif directive is Move.LAST:
            _native_call("iterator_move", it.seek_to_last)
        elif isinstance(directive, Seek):
            _native_call("iterator_move", it.seek, directive.key)
        elif not it.valid():
            # Stepping an unpositioned RocksDB iterator is undefined
            raise InvalidIterator(directive)
        elif directive is Move.NEXT:
            _native_call("iterator_move", it.next)
        elif directive is Move.PREV:
            _native_call("iterator_move", it.prev)
        else:
            raise EngineError("iterator_move", f"unknown directive {directive!r}")

        if not it.valid():
            _native_call("iterator_move", it.status)
            raise InvalidIterator(directive)

        if cursor.mode is IteratorMode.KEYS_ONLY:
            return it.key()
        return it.key(), it.value()

    def iterator_close(self, cursor: Cursor) -> None:
        if cursor.it is None:
            raise EngineError("iterator_close", "iterator is already closed")
        # rocksdict frees the native iterator with its last reference
        cursor.it = None

    def create_column_family(
        self, db: DbHandle, name: str, cf_opts: dict[str, Any]
    ) -> CfHandle:
        options = Options(raw_mode=True)
        _configure(options, cf_opts, CF_SETTERS, CF_OPTION_NAMES, "cf")
        rdict = _native_call("create_column_family", db.rdict.create_column_family, name, options)
        db.column_families.append(rdict)
        logger.debug(f"Created column family {name} in {db.path}")
        return _RocksCfHandle(rdict, name)

    def column_family(self, db: DbHandle, name: str) -> CfHandle:
        rdict = _native_call("column_family", db.rdict.get_column_family, name)
        db.column_families.append(rdict)
        return _RocksCfHandle(rdict, name)

    def snapshot(self, db: DbHandle) -> SnapshotHandle:
        return _RocksSnapshot(_native_call("snapshot", db.rdict.snapshot))

    def release_snapshot(self, snapshot: SnapshotHandle) -> None:
        if snapshot.snapshot is None:
            raise EngineError("release_snapshot", "snapshot is already released")
        snapshot.snapshot = None

    def _read_source(
        self, db: DbHandle, read_opts: dict[str, Any]
    ) -> tuple[Any, ReadOptions | None]:
        """
        Pick what to read from and build native read options.

        A ``snapshot`` read option redirects the read to that snapshot.
        Other options are validated even when the snapshot cannot apply them.
        """
        opts = dict(read_opts)
        source: Any = db.rdict
        snapshot = opts.pop("snapshot", None)
        if snapshot is not None:
            if snapshot.snapshot is None:
                raise EngineError("read", "snapshot is released")
            source = snapshot.snapshot

        if not opts:
            return source, None

        native_opts = _native_call("read", ReadOptions)
        _configure(native_opts, opts, {}, READ_OPTION_NAMES, "read")
        return source, native_opts

    def _write_options(self, write_opts: dict[str, Any]) -> WriteOptions:
        native_opts = WriteOptions()
        _configure(native_opts, write_opts, {}, WRITE_OPTION_NAMES, "write")
        return native_opts
