"""
Abstract base classes and handle types for the native engine boundary.
"""

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

__all__ = [
    "CfHandle",
    "Cursor",
    "DbHandle",
    "Directive",
    "IteratorMode",
    "Move",
    "NativeEngine",
    "Seek",
    "SnapshotHandle",
]
