import os

import numpy as np
import pytest

from knowbase.errors import PersistenceError
from knowbase.memory import ingest
from knowbase.memory.ingest import ingest_file, ingest_files, ingest_text

MODEL = "Fake/embed"


def test_ingest_file_stores_document(tmp_path, repo, proxy, fake_provider):
    path = tmp_path / "notes.txt"
    path.write_text("hello world", encoding="utf-8")
    fake_provider.vectors["hello world"] = [0.5, 0.25]

    frag = ingest_file(path, repo=repo, proxy=proxy, model=MODEL, label="QA")

    assert frag.name == os.path.normpath(str(path))
    assert frag.label == "QA"
    assert frag.content == "hello world"
    assert frag.embedding_model == MODEL
    assert frag.embedding_vector.tolist() == [0.5, 0.25]
    assert fake_provider.embed_calls == [("hello world", "embed", "document")]


def test_unchanged_file_is_not_reembedded(tmp_path, repo, proxy, fake_provider):
    path = tmp_path / "notes.txt"
    path.write_text("same", encoding="utf-8")

    assert ingest_file(path, repo=repo, proxy=proxy, model=MODEL) is not None
    assert ingest_file(path, repo=repo, proxy=proxy, model=MODEL) is None
    assert len(fake_provider.embed_calls) == 1

    path.write_text("changed", encoding="utf-8")
    frag = ingest_file(path, repo=repo, proxy=proxy, model=MODEL)
    assert frag.content == "changed"
    assert len(fake_provider.embed_calls) == 2
    assert repo.count() == 1


def test_ingest_files_returns_only_stored(tmp_path, repo, proxy):
    paths = []
    for i in range(3):
        p = tmp_path / f"f{i}.txt"
        p.write_text(f"text {i}", encoding="utf-8")
        paths.append(p)
    ingest_file(paths[0], repo=repo, proxy=proxy, model=MODEL)

    stored = ingest_files(paths, repo=repo, proxy=proxy, model=MODEL)
    assert [f.content for f in stored] == ["text 1", "text 2"]


def test_roundtrip_mismatch_is_reported(repo, proxy, monkeypatch):
    real_upsert = repo.upsert

    def tampered(label, name, content, model, vector):
        return real_upsert(label, name, content, model, np.asarray(vector) + 1.0)

    monkeypatch.setattr(repo, "upsert", tampered)
    with pytest.raises(PersistenceError):
        ingest_text(repo=repo, proxy=proxy, model=MODEL, label="L", name="n", content="c")


def test_text_vectors_from_provider_are_parsed(repo, proxy, fake_provider):
    fake_provider.vectors["json"] = "[1.0, 2e0, -3]"
    frag = ingest_text(repo=repo, proxy=proxy, model=MODEL, label="L", name="n", content="json")
    assert frag.embedding_vector.tolist() == [1.0, 2.0, -3.0]


def test_ingest_logs_added_fragment(tmp_path, repo, proxy, caplog):
    path = tmp_path / "a.txt"
    path.write_text("a", encoding="utf-8")
    with caplog.at_level("INFO", logger=ingest.__name__):
        ingest_file(path, repo=repo, proxy=proxy, model=MODEL)
    assert "Added fragment" in caplog.text
