"""
Ingestion: file -> fragment
===========================

Reads a text file, skips it when the stored content is identical, otherwise
embeds it as a document and upserts the row.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

import numpy as np

from knowbase.clients.proxy import ModelRef, ProviderProxy, PURPOSE_DOCUMENT
from knowbase.errors import PersistenceError
from .models import DEFAULT_LABEL, Fragment
from .sql.repositories import FragmentsRepo

logger = logging.getLogger(__name__)


def ingest_text(
    *,
    repo: FragmentsRepo,
    proxy: ProviderProxy,
    model: Union[str, ModelRef],
    label: str,
    name: str,
    content: str,
) -> Optional[Fragment]:
    """
    Embed and store ``content`` under ``(label, name)``.

    :returns: The stored fragment, or ``None`` when nothing changed.
    """
    model = ModelRef.coerce(model)

    if not repo.is_dirty(label, name, content):
        logger.debug("Skipping already existing fragment (label=%s name=%s)", label, name)
        return None

    logger.debug("Embedding fragment (label=%s name=%s len=%d)", label, name, len(content))
    vector = proxy.embed(content, model, PURPOSE_DOCUMENT)

    frag = repo.upsert(label, name, content, str(model), vector)

    stored = frag.embedding_vector
    expected = np.asarray(vector, dtype=np.float64)
    if stored.shape != expected.shape or not np.array_equal(stored, expected, equal_nan=True):
        raise PersistenceError(
            f"stored embedding does not match original (label={label!r} name={name!r})"
        )
    return frag


def ingest_file(
    path: Union[str, Path],
    *,
    repo: FragmentsRepo,
    proxy: ProviderProxy,
    model: Union[str, ModelRef],
    label: str = DEFAULT_LABEL,
) -> Optional[Fragment]:
    """Read ``path`` as UTF-8 and ingest it; the normalized path is the fragment name."""
    logger.debug("Reading file %s", path)
    content = Path(path).read_text(encoding="utf-8")
    name = os.path.normpath(str(path))
    frag = ingest_text(repo=repo, proxy=proxy, model=model, label=label, name=name, content=content)
    if frag is not None:
        logger.info("Added fragment id=%d name=%s label=%s", frag.id, frag.name, frag.label)
    return frag


def ingest_files(
    paths: Iterable[Union[str, Path]],
    *,
    repo: FragmentsRepo,
    proxy: ProviderProxy,
    model: Union[str, ModelRef],
    label: str = DEFAULT_LABEL,
) -> List[Fragment]:
    """Ingest each path in order; stops at the first failure."""
    stored: List[Fragment] = []
    for path in paths:
        frag = ingest_file(path, repo=repo, proxy=proxy, model=model, label=label)
        if frag is not None:
            stored.append(frag)
    return stored
