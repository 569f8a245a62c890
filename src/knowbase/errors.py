"""Error taxonomy shared by the store, the distance function and the providers."""

from __future__ import annotations


class KnowbaseError(Exception):
    """Base class for every error raised by knowbase."""


class CodecError(KnowbaseError, ValueError):
    """Malformed vector bytes or text."""


class LengthMismatchError(KnowbaseError, ValueError):
    """Two vectors of unequal dimensionality were compared."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"expected equal length arrays, got {left} and {right}")
        self.left = left
        self.right = right


class PersistenceError(KnowbaseError):
    """Underlying datastore I/O or constraint failure."""


class NotFoundError(KnowbaseError, LookupError):
    """No client registered for the requested provider."""


class ConfigError(KnowbaseError):
    """Unreadable or malformed configuration file."""


class NoModelProvidedError(KnowbaseError, ValueError):
    """A model reference is missing its model name."""


__all__ = [
    "KnowbaseError",
    "CodecError",
    "LengthMismatchError",
    "PersistenceError",
    "NotFoundError",
    "NoModelProvidedError",
    "ConfigError",
]
