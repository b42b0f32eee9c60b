"""
Option, codec and error models for the binding.
"""

from rox.models.codec import decode, encode
from rox.models.exceptions import (
    ClosedError,
    DecodeError,
    EngineError,
    InvalidIterator,
    InvalidOptionError,
    RoxError,
)
from rox.models.options import ReadDirectives, sanitize_opts, split_read_opts
from rox.models.outcome import NOT_FOUND

__all__ = [
    "NOT_FOUND",
    "ClosedError",
    "DecodeError",
    "EngineError",
    "InvalidIterator",
    "InvalidOptionError",
    "ReadDirectives",
    "RoxError",
    "decode",
    "encode",
    "sanitize_opts",
    "split_read_opts",
]
