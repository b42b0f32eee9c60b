"""
Dedicated outcome returned by ``get`` for missing keys.
"""


class NotFoundType:
    """Singleton marking a key that does not exist. Falsy."""

    _instance: "NotFoundType | None" = None

    def __new__(cls) -> "NotFoundType":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __reduce__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = NotFoundType()
