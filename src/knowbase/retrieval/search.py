"""
Multi-bucket nearest-neighbour search
=====================================

Runs one exact ``nearest`` query per ``label pattern -> limit`` entry and
merges the buckets, keeping the first occurrence of each fragment id. Ranking
is exact inside a bucket only; bucket order is the mapping's order.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Union

import numpy as np

from knowbase.clients.proxy import ModelRef, ProviderProxy, PURPOSE_QUERY
from knowbase.memory.models import Fragment
from knowbase.memory.sql.repositories import FragmentsRepo

logger = logging.getLogger(__name__)

ALL_LABELS = "%"
DEFAULT_LIMIT = 5


def parse_limits(values: Iterable[str]) -> Dict[str, int]:
    """
    Parse ``["5", "QA:3", "policies:2"]`` into ``{"%": 5, "QA": 3, "policies": 2}``.

    A bare number applies to every label; ``*`` is accepted for ``%``. A limit
    that is not an integer falls back to :data:`DEFAULT_LIMIT`.
    """
    limits: Dict[str, int] = {}
    for raw in values:
        label, sep, strlimit = raw.rpartition(":")
        if not sep:
            label = ALL_LABELS
        if label in ("", "*"):
            label = ALL_LABELS
        try:
            limit = int(strlimit)
        except ValueError as exc:
            logger.warning("failed to parse limit %r, defaulting to %d: %s", raw, DEFAULT_LIMIT, exc)
            limit = DEFAULT_LIMIT
        limits[label] = limit
    return limits


def search_fragments(
    repo: FragmentsRepo,
    vector: Union[np.ndarray, Iterable[float]],
    limits: Mapping[str, int],
) -> List[Fragment]:
    """Query every bucket and merge, deduplicating by fragment id."""
    vector = np.asarray(vector, dtype=np.float64)

    merged: List[Fragment] = []
    seen: set[int] = set()
    for label, limit in limits.items():
        logger.debug("searching for fragments label=%s limit=%d", label, limit)
        for frag in repo.nearest(vector, label, limit):
            if frag.id in seen:
                continue
            seen.add(frag.id)
            merged.append(frag)
    return merged


def search(
    question: str,
    *,
    repo: FragmentsRepo,
    proxy: ProviderProxy,
    model: Union[str, ModelRef],
    limits: Mapping[str, int],
) -> List[Fragment]:
    """Embed ``question`` as a query and run :func:`search_fragments`."""
    vector = proxy.embed(question, model, PURPOSE_QUERY)
    return search_fragments(repo, vector, limits)


__all__ = ["ALL_LABELS", "DEFAULT_LIMIT", "parse_limits", "search_fragments", "search"]
