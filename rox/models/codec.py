"""
Value codec: raw bytes pass through, anything else is pickled.
"""

import io
import pickle
from typing import Any

from rox.models.exceptions import DecodeError

# Bytes-like values are stored as-is
RAW_TYPES = (bytes, bytearray, memoryview)


def is_raw(value: Any) -> bool:
    return isinstance(value, RAW_TYPES)


def encode_raw(data: bytes | bytearray | memoryview) -> bytes:
    """
    Return the stored form of an already-binary value.

    ``bytes`` are returned unchanged (same object); other bytes-like
    values are copied into ``bytes``.

    Raises:
        TypeError: If data is not bytes-like.
    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"raw value must be bytes-like, got {type(data).__name__}")


def encode_term(value: Any) -> bytes:
    """Serialize an arbitrary value, even a bytes one."""
    return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)


def encode(value: Any) -> bytes:
    """
    Return the bytes stored for value.

    Args:
        value: Bytes-like data (stored as-is) or any picklable value.

    Returns:
        The on-disk representation.
    """
    if is_raw(value):
        return encode_raw(value)
    return encode_term(value)


def decode(data: bytes) -> Any:
    """
    Deserialize bytes written by encode_term.

    The whole buffer must be consumed by a single pickle, so raw bytes
    that merely start with a valid pickle are rejected too.

    Args:
        data: Stored bytes.

    Returns:
        The reconstructed value.

    Raises:
        DecodeError: If data is not an encoded value.
    """
    buf = io.BytesIO(data)
    try:
        value = pickle.Unpickler(buf).load()
    except Exception as e:
        raise DecodeError(data, f"{type(e).__name__}: {e}") from e

    if buf.tell() != len(data):
        raise DecodeError(data, f"{len(data) - buf.tell()} trailing bytes")
    return value
