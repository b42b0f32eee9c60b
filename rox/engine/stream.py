"""
CursorStream - lazy iteration over a native engine cursor.
"""

import logging
from collections.abc import Iterator
from enum import IntEnum
from typing import Any

from rox.interfaces.native_engine import (
    Cursor,
    DbHandle,
    Directive,
    IteratorMode,
    Move,
    NativeEngine,
    Seek,
)
from rox.models.codec import decode
from rox.models.exceptions import InvalidIterator
from rox.models.options import Options, split_read_opts

logger = logging.getLogger(__name__)


class StreamState(IntEnum):
    """Lifecycle of a CursorStream."""

    UNINITIALIZED = 0  # No cursor yet
    POSITIONED = 1  # Cursor open, at least one move issued
    TERMINATED = 2  # Cursor released; absorbing


class CursorStream(Iterator[Any]):
    """
    Pull-based iterator over keys or (key, value) pairs.

    The cursor is created on the first next() call and released exactly
    once: when the cursor runs off the key space, when a move or decode
    raises, or when the consumer calls close() (directly, by leaving a
    ``with`` block, or by dropping the last reference).

    Streams are not restartable; iterate again by asking the database
    for a new stream.
    """

    def __init__(
        self,
        engine: NativeEngine,
        db: DbHandle,
        read_opts: Options | None = None,
        *,
        keys_only: bool = False,
        reverse: bool = False,
        start: bytes | None = None,
    ) -> None:
        """
        Initialize stream without touching the engine.

        Args:
            engine: Engine owning the database.
            db: Open database handle.
            read_opts: Read options; ``decode`` applies to pair values.
            keys_only: Yield keys instead of (key, value) pairs.
            reverse: Walk the key space in descending order.
            start: Key to seek to before the first element.
        """
        directives = split_read_opts(read_opts)

        self._engine = engine
        self._db = db
        self._read_opts = directives.options
        self._decode = directives.decode and not keys_only
        self._mode = IteratorMode.KEYS_ONLY if keys_only else IteratorMode.PAIRS
        self._cursor: Cursor | None = None
        self._state = StreamState.UNINITIALIZED

        self._first: Directive
        if start is not None:
            self._first = Seek(start)
        else:
            self._first = Move.LAST if reverse else Move.FIRST
        self._step = Move.PREV if reverse else Move.NEXT

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def keys_only(self) -> bool:
        return self._mode is IteratorMode.KEYS_ONLY

    def __iter__(self) -> "CursorStream":
        return self

    def __next__(self) -> Any:
        """
        Move the cursor once and return the element it lands on.

        Raises:
            StopIteration: When the cursor is exhausted or the stream closed.
        """
        if self._state is StreamState.TERMINATED:
            raise StopIteration

        if self._state is StreamState.UNINITIALIZED:
            try:
                self._cursor = self._engine.iterator_create(
                    self._db, self._read_opts, self._mode
                )
            except BaseException:
                self._state = StreamState.TERMINATED
                raise
            logger.debug(f"Acquired {self._mode.value} cursor")
            self._state = StreamState.POSITIONED
            directive = self._first
        else:
            directive = self._step

        try:
            entry = self._engine.iterator_move(self._cursor, directive)
            if self._decode:
                key, value = entry
                entry = (key, decode(value))
        except InvalidIterator:
            self.close()
            raise StopIteration from None
        except BaseException as e:
            self._release_after(e)
            raise

        return entry

    def close(self) -> None:
        """Release the cursor. Safe to call in any state."""
        if self._state is StreamState.TERMINATED:
            return

        self._state = StreamState.TERMINATED
        cursor, self._cursor = self._cursor, None
        if cursor is not None:
            self._engine.iterator_close(cursor)
            logger.debug(f"Released {self._mode.value} cursor")

    def _release_after(self, error: BaseException) -> None:
        # The original error wins over a failure to release the cursor
        try:
            self.close()
        except Exception as close_error:
            logger.warning(f"Failed to release cursor after {error!r}: {close_error}")

    def __enter__(self) -> "CursorStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_state", StreamState.TERMINATED) is not StreamState.TERMINATED:
            self.close()
