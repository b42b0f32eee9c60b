"""
Custom exceptions for the RocksDB binding.
"""


class RoxError(Exception):
    """Base class for every error raised by the binding."""


class EngineError(RoxError):
    """
    Raised when the native engine reports a failure.

    The original engine exception is chained as ``__cause__``.
    """

    def __init__(self, operation: str, reason: object):
        """
        Initialize engine error.

        Args:
            operation: Name of the native operation that failed.
            reason: The failure reported by the engine.
        """
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class InvalidOptionError(EngineError):
    """Raised when the engine rejects an option name or value."""

    def __init__(self, name: str, value: object, reason: str = "unsupported option"):
        self.name = name
        self.value = value
        super().__init__("configure", f"{reason}: {name}={value!r}")


class ClosedError(RoxError):
    """Raised when a closed database handle is used or closed again."""

    def __init__(self, path: str, operation: str):
        self.path = path
        self.operation = operation
        super().__init__(f"Cannot {operation}: database at {path} is closed")


class DecodeError(RoxError):
    """
    Raised when stored bytes are not a valid encoded value.

    Distinct from a missing key and from engine failures.
    """

    def __init__(self, data: bytes, reason: str):
        """
        Initialize decode error.

        Args:
            data: The bytes that failed to decode.
            reason: Why decoding failed.
        """
        self.data = data
        self.reason = reason
        super().__init__(f"Cannot decode {len(data)} stored bytes: {reason}")


class InvalidIterator(RoxError):
    """
    Raised by the engine when a cursor has moved past the key space.

    Streams turn this into end-of-sequence.
    """

    def __init__(self, directive: object = None):
        self.directive = directive
        super().__init__(f"Iterator invalid after {directive!r}")
