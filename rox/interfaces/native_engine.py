"""
NativeEngine abstract base class: the boundary to the storage engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any


class DbHandle:
    """Opaque open-database token issued by a NativeEngine."""

    __slots__ = ()


class CfHandle:
    """Opaque column-family token, valid while its database is open."""

    __slots__ = ()


class SnapshotHandle:
    """Opaque point-in-time read view, scoped to its database."""

    __slots__ = ()


class Cursor:
    """Opaque positioned iterator over the sorted key space."""

    __slots__ = ()


class IteratorMode(Enum):
    KEYS_ONLY = "keys_only"
    PAIRS = "pairs"


class Move(Enum):
    FIRST = "first"
    LAST = "last"
    NEXT = "next"
    PREV = "prev"


@dataclass(frozen=True)
class Seek:
    """Position the cursor at the first key >= key."""

    key: bytes


Directive = Move | Seek


class NativeEngine(ABC):
    """
    Operations the binding needs from an embedded ordered key-value engine.

    Keys and values cross this boundary as bytes. Option mappings arrive
    already sanitized, with binding-only flags removed. Implementations
    raise EngineError (or a subclass) for any engine failure.
    """

    @abstractmethod
    def open(
        self, path: bytes, db_opts: dict[str, Any], cf_opts: dict[str, Any]
    ) -> DbHandle:
        """
        Open or create a database.

        Args:
            path: Filesystem path of the database directory.
            db_opts: Database options.
            cf_opts: Options for the default column family.

        Returns:
            A handle owned by the caller until close().
        """
        pass

    @abstractmethod
    def close(self, db: DbHandle) -> None:
        """Release every native resource held by the handle."""
        pass

    @abstractmethod
    def put(
        self,
        db: DbHandle,
        key: bytes,
        value: bytes,
        write_opts: dict[str, Any],
        cf: CfHandle | None = None,
    ) -> None:
        """Store value under key, in cf or the default column family."""
        pass

    @abstractmethod
    def get(self, db: DbHandle, key: bytes, read_opts: dict[str, Any]) -> bytes | None:
        """
        Read a key from the default column family.

        Returns:
            The stored bytes, or None when the key does not exist.
        """
        pass

    @abstractmethod
    def delete(self, db: DbHandle, key: bytes, write_opts: dict[str, Any]) -> None:
        """Remove key from the default column family."""
        pass

    @abstractmethod
    def count_estimate(self, db: DbHandle) -> int:
        """Return the engine's estimate of the number of keys."""
        pass

    @abstractmethod
    def iterator_create(
        self, db: DbHandle, read_opts: dict[str, Any], mode: IteratorMode
    ) -> Cursor:
        """
        Create an unpositioned cursor.

        Args:
            db: Database to iterate.
            read_opts: Read options for the cursor's lifetime.
            mode: Whether moves return keys or (key, value) pairs.
        """
        pass

    @abstractmethod
    def iterator_move(
        self, cursor: Cursor, directive: Directive
    ) -> bytes | tuple[bytes, bytes]:
        """
        Move the cursor and return the entry it lands on.

        Returns:
            The key in KEYS_ONLY mode, otherwise a (key, value) tuple.

        Raises:
            InvalidIterator: If the cursor moved past the key space.
        """
        pass

    @abstractmethod
    def iterator_close(self, cursor: Cursor) -> None:
        """Release the cursor."""
        pass

    @abstractmethod
    def create_column_family(
        self, db: DbHandle, name: str, cf_opts: dict[str, Any]
    ) -> CfHandle:
        """Create a column family and return its handle."""
        pass

    @abstractmethod
    def column_family(self, db: DbHandle, name: str) -> CfHandle:
        """Return the handle of an existing column family."""
        pass

    @abstractmethod
    def snapshot(self, db: DbHandle) -> SnapshotHandle:
        """Take a point-in-time read view."""
        pass

    @abstractmethod
    def release_snapshot(self, snapshot: SnapshotHandle) -> None:
        """Release a read view taken with snapshot()."""
        pass
