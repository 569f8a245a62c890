"""
Fragment memory
===============

Persistence and exact similarity search for embedded text fragments::

    from knowbase.memory import open_store, FragmentsRepo, Fragment
"""

from .models import DEFAULT_LABEL, Fragment
from .sql import FragmentsRepo, connect, migrate, open_store

__all__ = ["DEFAULT_LABEL", "Fragment", "FragmentsRepo", "connect", "migrate", "open_store"]
