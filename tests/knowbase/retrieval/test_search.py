from types import SimpleNamespace

import numpy as np
import pytest

from knowbase.errors import CodecError
from knowbase.retrieval import search as search_mod
from knowbase.retrieval.search import ALL_LABELS, parse_limits, search, search_fragments

MODEL = "Fake/embed"


class StubRepo:
    """Returns canned buckets per label pattern."""

    def __init__(self, buckets):
        self.buckets = buckets
        self.calls = []

    def nearest(self, vector, label, limit):
        self.calls.append((label, limit))
        return self.buckets.get(label, [])[:limit]


def _frag(fid, label="L"):
    return SimpleNamespace(id=fid, label=label, name=f"n{fid}", content=f"c{fid}")


def test_merge_dedups_by_id_keeping_first():
    shared = _frag(7, "QA")
    repo = StubRepo({
        "QA": [shared],
        "policies": [_frag(7, "policies"), _frag(8, "policies")],
    })
    got = search_fragments(repo, [1.0, 0.0], {"QA": 1, "policies": 2})
    assert [f.id for f in got] == [7, 8]
    assert got[0] is shared
    assert repo.calls == [("QA", 1), ("policies", 2)]


def test_merge_preserves_bucket_order():
    repo = StubRepo({"a": [_frag(3), _frag(1)], "b": [_frag(2), _frag(3)]})
    got = search_fragments(repo, [1.0], {"b": 2, "a": 2})
    assert [f.id for f in got] == [2, 3, 1]


def test_bucket_failure_propagates():
    class Broken:
        def nearest(self, vector, label, limit):
            raise CodecError("invalid data length: 5 is not divisible by 8")

    with pytest.raises(CodecError):
        search_fragments(Broken(), [1.0], {"%": 3})


def test_end_to_end_against_store(repo):
    near = repo.upsert("QA", "near", "x", MODEL, [1.0, 0.1])
    far = repo.upsert("QA", "far", "y", MODEL, [0.0, 1.0])
    pol = repo.upsert("policies", "pol", "z", MODEL, [1.0, 0.5])

    got = search_fragments(repo, np.array([1.0, 0.0]), {"QA": 1, "policies": 1, "%": 5})
    assert [f.id for f in got] == [near.id, pol.id, far.id]
    assert len({f.id for f in got}) == len(got)


def test_search_embeds_question_as_query(repo, proxy, fake_provider):
    frag = repo.upsert("QA", "doc", "answer", MODEL, [1.0, 0.0])
    fake_provider.vectors["what?"] = [2.0, 0.0]

    got = search("what?", repo=repo, proxy=proxy, model=MODEL, limits={"%": 5})
    assert [f.id for f in got] == [frag.id]
    assert fake_provider.embed_calls == [("what?", "embed", "query")]


@pytest.mark.parametrize(
    "values, expected",
    [
        (["5"], {ALL_LABELS: 5}),
        (["QA:3", "policies:2", "procedures:1"], {"QA": 3, "policies": 2, "procedures": 1}),
        (["*:4"], {ALL_LABELS: 4}),
        (["QA:x"], {"QA": 5}),
        ([], {}),
    ],
)
def test_parse_limits(values, expected):
    assert parse_limits(values) == expected


def test_parse_limits_keeps_order():
    assert list(parse_limits(["b:1", "a:2", "7"])) == ["b", "a", ALL_LABELS]


def test_parse_limits_warns_on_bad_value(caplog):
    with caplog.at_level("WARNING", logger=search_mod.__name__):
        parse_limits(["nope"])
    assert "failed to parse limit" in caplog.text
