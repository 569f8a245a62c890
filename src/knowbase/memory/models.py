"""Dataclass model for stored fragments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

import numpy as np

from .vec.codec import decode

DEFAULT_LABEL = "default"


@dataclass(slots=True)
class Fragment:
    """One row of the ``fragments`` table with its vector decoded."""

    id: int
    label: str
    name: str
    content: str
    embedding_model: str
    embedding_vector: np.ndarray = field(repr=False)
    created_at: int
    updated_at: int

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Fragment":
        """Build from a ``sqlite3.Row``; raises ``CodecError`` on a corrupt blob."""
        return cls(
            id=int(row["id"]),
            label=row["label"],
            name=row["name"],
            content=row["content"],
            embedding_model=row["embedding_model"],
            embedding_vector=decode(row["embedding_vector"]),
            created_at=int(row["created_at"]),
            updated_at=int(row["updated_at"]),
        )

    @property
    def dim(self) -> int:
        return int(self.embedding_vector.shape[0])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "name": self.name,
            "content": self.content,
            "embedding_model": self.embedding_model,
            "dim": self.dim,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
