"""Embedding store and exact similarity search for retrieval-augmented QA."""

from __future__ import annotations

from .errors import (
    CodecError,
    ConfigError,
    KnowbaseError,
    LengthMismatchError,
    NoModelProvidedError,
    NotFoundError,
    PersistenceError,
)

__version__ = "0.1.0"

__all__ = [
    "CodecError",
    "ConfigError",
    "KnowbaseError",
    "LengthMismatchError",
    "NoModelProvidedError",
    "NotFoundError",
    "PersistenceError",
    "__version__",
]
