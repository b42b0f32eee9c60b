"""
Shared pytest fixtures for binding tests.
"""

import bisect
import threading

import pytest

from rox.engine.database import Database
from rox.interfaces.native_engine import (
    CfHandle,
    Cursor,
    DbHandle,
    IteratorMode,
    Move,
    NativeEngine,
    Seek,
    SnapshotHandle,
)
from rox.models.exceptions import EngineError, InvalidIterator


class MemoryDb(DbHandle):
    __slots__ = ("path", "data", "column_families", "open")

    def __init__(self, path: bytes) -> None:
        self.path = path
        self.data: dict[bytes, bytes] = {}
        self.column_families: dict[str, dict[bytes, bytes]] = {}
        self.open = True


class MemoryCf(CfHandle):
    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name


class MemorySnapshot(SnapshotHandle):
    __slots__ = ("data",)

    def __init__(self, data: dict[bytes, bytes]) -> None:
        self.data = data


class MemoryCursor(Cursor):
    __slots__ = ("items", "mode", "pos", "closed")

    def __init__(self, items: list[tuple[bytes, bytes]], mode: IteratorMode) -> None:
        self.items = items
        self.mode = mode
        self.pos = -1
        self.closed = False


class RecordingEngine(NativeEngine):
    """
    In-memory NativeEngine that records every call it receives.

    Cursors iterate over a sorted copy of the data taken at creation.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.opened_with: list[tuple[bytes, dict, dict]] = []
        self.read_opts_seen: list[dict] = []
        self.write_opts_seen: list[dict] = []
        self.cursors: list[MemoryCursor] = []
        self.moves = 0
        self.close_calls = 0
        self.iterator_close_calls = 0
        self.fail_move_after: int | None = None

    def open(self, path, db_opts, cf_opts):
        self.opened_with.append((path, db_opts, cf_opts))
        return MemoryDb(path)

    def close(self, db):
        self.close_calls += 1
        if not db.open:
            raise EngineError("close", "database already closed")
        db.open = False

    def put(self, db, key, value, write_opts, cf=None):
        self.write_opts_seen.append(write_opts)
        target = db.column_families[cf.name] if cf is not None else db.data
        with self._lock:
            target[key] = value

    def get(self, db, key, read_opts):
        self.read_opts_seen.append(read_opts)
        source = read_opts.get("snapshot")
        data = source.data if source is not None else db.data
        return data.get(key)

    def delete(self, db, key, write_opts):
        with self._lock:
            db.data.pop(key, None)

    def count_estimate(self, db):
        return len(db.data)

    def iterator_create(self, db, read_opts, mode):
        self.read_opts_seen.append(read_opts)
        source = read_opts.get("snapshot")
        data = source.data if source is not None else db.data
        with self._lock:
            cursor = MemoryCursor(sorted(data.items()), mode)
            self.cursors.append(cursor)
        return cursor

    def iterator_move(self, cursor, directive):
        if cursor.closed:
            raise EngineError("iterator_move", "iterator is closed")
        with self._lock:
            self.moves += 1
        if self.fail_move_after is not None and self.moves > self.fail_move_after:
            raise EngineError("iterator_move", "injected I/O error")

        if directive is Move.FIRST:
            cursor.pos = 0
        elif directive is Move.LAST:
            cursor.pos = len(cursor.items) - 1
        elif directive is Move.NEXT:
            cursor.pos += 1
        elif directive is Move.PREV:
            cursor.pos -= 1
        elif isinstance(directive, Seek):
            keys = [k for k, _ in cursor.items]
            cursor.pos = bisect.bisect_left(keys, directive.key)

        if not 0 <= cursor.pos < len(cursor.items):
            raise InvalidIterator(directive)
        key, value = cursor.items[cursor.pos]
        if cursor.mode is IteratorMode.KEYS_ONLY:
            return key
        return key, value

    def iterator_close(self, cursor):
        with self._lock:
            self.iterator_close_calls += 1
            if cursor.closed:
                raise EngineError("iterator_close", "iterator is already closed")
            cursor.closed = True

    def create_column_family(self, db, name, cf_opts):
        db.column_families[name] = {}
        return MemoryCf(name)

    def column_family(self, db, name):
        if name not in db.column_families:
            raise EngineError("column_family", f"unknown column family {name}")
        return MemoryCf(name)

    def snapshot(self, db):
        return MemorySnapshot(dict(db.data))

    def release_snapshot(self, snapshot):
        snapshot.data = {}


@pytest.fixture
def engine():
    """Provide a fresh recording engine."""
    return RecordingEngine()


@pytest.fixture
def db(engine):
    """Provide a Database over the recording engine."""
    database = Database.open("/tmp/rox-memory", engine=engine)
    yield database
    if not database.is_closed:
        database.close()


@pytest.fixture
def abc_db(db):
    """Provide a database holding keys a, b, c with pickled values 1, 2, 3."""
    db.put("a", 1)
    db.put("b", 2)
    db.put("c", 3)
    return db


@pytest.fixture
def rocks_db(tmp_path):
    """Provide a RocksDB-backed Database in a temporary directory."""
    with Database.open(tmp_path / "db", {"create_if_missing": True}) as database:
        yield database
