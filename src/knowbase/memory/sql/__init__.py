"""SQLite persistence for fragments."""

from .db import connect, migrate, open_store
from .repositories import FragmentsRepo

__all__ = ["connect", "migrate", "open_store", "FragmentsRepo"]
