import re
from unittest.mock import MagicMock

import pytest

from conftest import make_vector
from sidekick.vector_db.qdrant_client import CodeVectorDB, point_id_for, repo_name_variants


def test_point_id_is_deterministic_uuid():
    point_id = point_id_for("user_repo__src_app_js__1-50")

    assert point_id == point_id_for("user_repo__src_app_js__1-50")
    assert point_id != point_id_for("user_repo__src_app_js__41-90")
    assert re.fullmatch(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", point_id)


def test_repo_name_variants():
    assert repo_name_variants("Foo") == ["Foo", "foo"]
    assert repo_name_variants("foo") == ["foo"]


def test_query_scope_matches_both_casings(vector_db):
    vector_db.upsert(
        [
            make_vector("lower", [1.0, 0.0, 0.0, 0.0], "foo"),
            make_vector("mixed", [0.9, 0.1, 0.0, 0.0], "Foo"),
            make_vector("upper", [1.0, 0.0, 0.0, 0.0], "FOO"),
            make_vector("other", [1.0, 0.0, 0.0, 0.0], "bar"),
        ]
    )

    results = vector_db.query([1.0, 0.0, 0.0, 0.0], top_k=10, repo_name="Foo")

    assert sorted(r.metadata["repoName"] for r in results) == ["Foo", "foo"]
    assert all("chunkId" not in r.metadata for r in results)


def test_query_without_scope_searches_everything_ranked(vector_db):
    vector_db.upsert(
        [
            make_vector("near", [1.0, 0.0, 0.0, 0.0], "a", filename="near.py"),
            make_vector("far", [0.0, 1.0, 0.0, 0.0], "b", filename="far.py"),
        ]
    )

    results = vector_db.query([1.0, 0.05, 0.0, 0.0], top_k=2)

    assert [r.filename for r in results] == ["near.py", "far.py"]
    assert results[0].score > results[1].score


def test_query_respects_top_k(vector_db):
    vector_db.upsert([make_vector(f"c{i}", [1.0, float(i), 0.0, 0.0], "r") for i in range(5)])

    assert len(vector_db.query([1.0, 0.0, 0.0, 0.0], top_k=3, repo_name="r")) == 3


def test_upsert_same_chunk_id_overwrites(vector_db):
    vector_db.upsert([make_vector("same", [1.0, 0.0, 0.0, 0.0], "r", filename="old.py")])
    vector_db.upsert([make_vector("same", [1.0, 0.0, 0.0, 0.0], "r", filename="new.py")])

    results = vector_db.query([1.0, 0.0, 0.0, 0.0], top_k=10, repo_name="r")

    assert [r.filename for r in results] == ["new.py"]


def test_upsert_is_batched():
    client = MagicMock()
    db = CodeVectorDB(client, collection_name="c", vector_size=4, batch_size=50)

    total = db.upsert([make_vector(f"c{i}", [1.0, 0.0, 0.0, 0.0], "r") for i in range(120)])

    assert total == 120
    sizes = [len(call.kwargs["points"]) for call in client.upsert.call_args_list]
    assert sizes == [50, 50, 20]


def test_failed_batch_aborts_remaining_batches():
    client = MagicMock()
    client.upsert.side_effect = [None, RuntimeError("payload too large"), None]
    db = CodeVectorDB(client, collection_name="c", vector_size=4, batch_size=2)

    with pytest.raises(RuntimeError):
        db.upsert([make_vector(f"c{i}", [1.0, 0.0, 0.0, 0.0], "r") for i in range(6)])

    assert client.upsert.call_count == 2


def test_delete_by_repo_uses_dual_case_scope(vector_db):
    vector_db.upsert(
        [
            make_vector("a", [1.0, 0.0, 0.0, 0.0], "Foo"),
            make_vector("b", [1.0, 0.0, 0.0, 0.0], "foo"),
            make_vector("c", [1.0, 0.0, 0.0, 0.0], "bar"),
        ]
    )

    assert vector_db.delete_by_repo("Foo") is True

    remaining = vector_db.query([1.0, 0.0, 0.0, 0.0], top_k=10)
    assert [r.metadata["repoName"] for r in remaining] == ["bar"]


def test_delete_failure_is_swallowed():
    client = MagicMock()
    client.delete.side_effect = ConnectionError("qdrant down")
    db = CodeVectorDB(client, collection_name="c")

    assert db.delete_by_repo("Foo") is False


def test_ensure_collection_is_idempotent(vector_db):
    vector_db.ensure_collection()

    assert vector_db.health_check() is True
    assert vector_db.get_collection_stats()["total_points"] == 0
