import sys
from pathlib import Path

import numpy as np
import pytest

# Add src/ to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from knowbase.memory.sql import FragmentsRepo, open_store  # noqa: E402
from knowbase.memory.vec.distance import DecodeCache, VectorDistance  # noqa: E402


class FakeProvider:
    """Deterministic embedder/generator used instead of network clients."""

    provider = "Fake"

    def __init__(self, vectors=None, reply='{"answer": "42", "confidence_score": 0.9}'):
        self.vectors = dict(vectors or {})
        self.reply = reply
        self.embed_calls = []
        self.generate_calls = []

    def embed(self, text, model, purpose):
        self.embed_calls.append((text, model, purpose))
        if text in self.vectors:
            return self.vectors[text]
        # Stable fallback so unknown text still gets a vector.
        rng = np.random.default_rng(sum(text.encode("utf-8")))
        return rng.normal(size=4).tolist()

    def generate(self, messages, model, *, json_output=False):
        self.generate_calls.append((messages, model, json_output))
        return self.reply


@pytest.fixture
def distance():
    return VectorDistance(DecodeCache())


@pytest.fixture
def repo(tmp_path, distance):
    conn = open_store(tmp_path / "kb.db", distance)
    yield FragmentsRepo(conn, distance)
    conn.close()


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def proxy(fake_provider):
    from knowbase.clients.proxy import ProviderProxy

    p = ProviderProxy()
    p.register_embedder(fake_provider)
    p.register_generator(fake_provider)
    return p
