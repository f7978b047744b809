# tests/unit/rag/vector_store/test_unit_vector_stores.py - v4
"""Tests for vector store adapters: in-memory semantics, factory and import guard."""

from __future__ import annotations

import asyncio
import sys
import types
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from recipeai.config.settings import Settings
from recipeai.core.errors import StoreError
from recipeai.rag.vector_store.base_vector_store import check_upsert_lengths
from recipeai.rag.vector_store.memory_store import MemoryVectorStore
from recipeai.rag.vector_store.vector_store_factory import (
    UnsupportedVectorStoreError,
    create_vector_store,
    parse_store_url,
)

COL = "unit_col"


async def _seed(store: MemoryVectorStore) -> None:
    await store.open_collection(COL)
    await store.upsert(
        COL,
        ids=["a", "b", "c"],
        embeddings=[[1.0, 0.0], [0.0, 1.0], [0.7, 0.7]],
        documents=["doc a", "doc b", "doc c"],
        metadatas=[{"recipe_id": "r1"}, {"recipe_id": "r2"}, {"recipe_id": "r1"}],
    )


class TestMemoryCollections:

    @pytest.mark.asyncio
    async def test_open_is_idempotent(self, memory_store):
        await _seed(memory_store)
        await memory_store.open_collection(COL)
        assert await memory_store.count(COL) == 3

    @pytest.mark.asyncio
    async def test_exists(self, memory_store):
        assert not await memory_store.collection_exists(COL)
        await memory_store.open_collection(COL)
        assert await memory_store.collection_exists(COL)

    @pytest.mark.asyncio
    async def test_missing_collection_raises(self, memory_store):
        with pytest.raises(StoreError, match="does not exist") as exc:
            await memory_store.count("missing")
        assert exc.value.operation == "count"

    def test_provider_name(self, memory_store):
        assert memory_store.provider_name == "memory"


class TestMemoryUpsert:

    @pytest.mark.asyncio
    async def test_update_keeps_position(self, memory_store):
        await _seed(memory_store)
        await memory_store.upsert(COL, ["a"], [[1.0, 0.0]], ["doc a2"], [{"recipe_id": "r9"}])
        records = await memory_store.get(COL)
        assert [r.id for r in records] == ["a", "b", "c"]
        assert records[0].document == "doc a2"
        assert records[0].metadata == {"recipe_id": "r9"}

    @pytest.mark.asyncio
    async def test_length_mismatch_rejected(self, memory_store):
        await memory_store.open_collection(COL)
        with pytest.raises(StoreError, match="equal length"):
            await memory_store.upsert(COL, ["a", "b"], [[1.0, 0.0]], ["x", "y"])
        assert await memory_store.count(COL) == 0

    @pytest.mark.asyncio
    async def test_dimension_mismatch_rejects_whole_call(self, memory_store):
        await _seed(memory_store)
        with pytest.raises(StoreError, match="dimensions"):
            await memory_store.upsert(
                COL, ["d", "e"], [[1.0, 0.0], [1.0, 0.0, 0.0]], ["d", "e"],
            )
        assert await memory_store.count(COL) == 3

    @pytest.mark.asyncio
    async def test_mixed_dimensions_in_first_call(self, memory_store):
        await memory_store.open_collection(COL)
        with pytest.raises(StoreError):
            await memory_store.upsert(COL, ["a", "b"], [[1.0], [1.0, 2.0]], ["a", "b"])
        assert await memory_store.count(COL) == 0

    @pytest.mark.asyncio
    async def test_empty_upsert_is_noop(self, memory_store):
        await memory_store.open_collection(COL)
        await memory_store.upsert(COL, [], [], [])
        assert await memory_store.count(COL) == 0

    @pytest.mark.asyncio
    async def test_concurrent_upserts_all_land(self, memory_store):
        await memory_store.open_collection(COL)
        await asyncio.gather(*(
            memory_store.upsert(COL, [f"id{i}"], [[float(i), 1.0]], [f"doc{i}"])
            for i in range(20)
        ))
        assert await memory_store.count(COL) == 20


class TestMemoryQuery:

    @pytest.mark.asyncio
    async def test_ranked_by_cosine(self, memory_store):
        await _seed(memory_store)
        results = await memory_store.query(COL, [1.0, 0.1], top_k=3)
        assert [r.id for r in results] == ["a", "c", "b"]
        assert results[0].score == pytest.approx(0.995, abs=1e-3)
        assert results[0].recipe_id == "r1"

    @pytest.mark.asyncio
    async def test_top_k_bounds_results(self, memory_store):
        await _seed(memory_store)
        assert len(await memory_store.query(COL, [1.0, 0.0], top_k=1)) == 1
        assert len(await memory_store.query(COL, [1.0, 0.0], top_k=50)) == 3

    @pytest.mark.asyncio
    async def test_ties_in_insertion_order(self, memory_store):
        await memory_store.open_collection(COL)
        await memory_store.upsert(
            COL, ["x", "y", "z"], [[1.0, 0.0], [2.0, 0.0], [3.0, 0.0]], ["x", "y", "z"],
        )
        results = await memory_store.query(COL, [1.0, 0.0], top_k=3)
        assert [r.id for r in results] == ["x", "y", "z"]

    @pytest.mark.asyncio
    async def test_empty_collection(self, memory_store):
        await memory_store.open_collection(COL)
        assert await memory_store.query(COL, [1.0, 0.0]) == []

    @pytest.mark.asyncio
    async def test_query_dimension_mismatch(self, memory_store):
        await _seed(memory_store)
        with pytest.raises(StoreError, match="same length"):
            await memory_store.query(COL, [1.0, 0.0, 0.0])


class TestMemoryGetAndDelete:

    @pytest.mark.asyncio
    async def test_get_with_filter(self, memory_store):
        await _seed(memory_store)
        records = await memory_store.get(COL, where={"recipe_id": "r1"})
        assert [r.id for r in records] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_get_no_match(self, memory_store):
        await _seed(memory_store)
        assert await memory_store.get(COL, where={"recipe_id": "nope"}) == []

    @pytest.mark.asyncio
    async def test_delete_ignores_unknown(self, memory_store):
        await _seed(memory_store)
        await memory_store.delete(COL, ["a", "ghost"])
        assert [r.id for r in await memory_store.get(COL)] == ["b", "c"]

    @pytest.mark.asyncio
    async def test_delete_all_resets_dimensions(self, memory_store):
        await _seed(memory_store)
        assert await memory_store.delete_all(COL) == 3
        assert await memory_store.count(COL) == 0
        await memory_store.upsert(COL, ["n"], [[1.0, 2.0, 3.0]], ["n"])
        assert await memory_store.count(COL) == 1


class TestCheckUpsertLengths:
    def test_equal_lengths_pass(self):
        check_upsert_lengths(["a"], [[1.0]], ["d"], [{}])
        check_upsert_lengths(["a"], [[1.0]], ["d"], None)

    def test_metadata_mismatch(self):
        with pytest.raises(ValueError, match="metadatas=2"):
            check_upsert_lengths(["a"], [[1.0]], ["d"], [{}, {}])


class TestChromaDBImportGuard:
    def test_import_error(self):
        mod = sys.modules.get("chromadb")
        sys.modules["chromadb"] = None  # type: ignore[assignment]
        try:
            from recipeai.rag.vector_store.chromadb_store import ChromaDBStore
            with pytest.raises(ImportError, match="chromadb"):
                ChromaDBStore()
        finally:
            if mod is not None:
                sys.modules["chromadb"] = mod
            else:
                sys.modules.pop("chromadb", None)


class TestVectorStoreFactory:
    def test_memory(self):
        s = Settings(_env_file=None, vector_db_type="memory")
        assert isinstance(create_vector_store(s), MemoryVectorStore)

    def test_unsupported_type_rejected_by_settings(self):
        with pytest.raises(Exception):
            Settings(_env_file=None, vector_db_type="invalid_db")

    def test_unsupported_type_raises(self):
        s = Settings(_env_file=None, vector_db_type="memory").model_copy(
            update={"vector_db_type": "qdrant"},
        )
        with pytest.raises(UnsupportedVectorStoreError, match="qdrant"):
            create_vector_store(s)

    def test_chromadb_local(self, tmp_path: Path):
        pytest.importorskip("chromadb")
        s = Settings(_env_file=None, vector_db_type="chromadb", vector_db_path=tmp_path / "db")
        store = create_vector_store(s)
        assert store.provider_name == "chromadb"

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("http://chroma:8001", {"host": "chroma", "port": 8001, "ssl": False}),
            ("https://chroma.example.com", {"host": "chroma.example.com", "port": 443, "ssl": True}),
        ],
    )
    def test_chromadb_remote(self, monkeypatch, url, expected):
        captured = {}

        class FakeStore:
            def __init__(self, **kwargs):
                captured.update(kwargs)

        import recipeai.rag.vector_store.chromadb_store as chroma_mod
        monkeypatch.setattr(chroma_mod, "ChromaDBStore", FakeStore)
        s = Settings(_env_file=None, vector_db_type="chromadb", vector_db_url=url)
        create_vector_store(s)
        assert captured == expected


class TestParseStoreUrl:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("http://localhost:8000", ("localhost", 8000, False)),
            ("chroma:9000", ("chroma", 9000, False)),
            ("https://db.example.com/api", ("db.example.com", 443, True)),
            ("https://db.example.com:8443", ("db.example.com", 8443, True)),
            ("HTTPS://db.example.com", ("db.example.com", 443, True)),
            ("db", ("db", 8000, False)),
        ],
    )
    def test_parse(self, url, expected):
        assert parse_store_url(url) == expected

    def test_unknown_scheme(self):
        with pytest.raises(ValueError, match="scheme"):
            parse_store_url("grpc://chroma:50051")

    def test_missing_host(self):
        with pytest.raises(ValueError, match="no host"):
            parse_store_url("http://:8000")


class TestChromaDBClientWiring:
    """ChromaDBStore against a stand-in chromadb module; no server needed."""

    @pytest.fixture
    def fake_chromadb(self, monkeypatch):
        fake = types.SimpleNamespace(
            HttpClient=MagicMock(name="HttpClient"),
            PersistentClient=MagicMock(name="PersistentClient"),
            EphemeralClient=MagicMock(name="EphemeralClient"),
        )
        monkeypatch.setitem(sys.modules, "chromadb", fake)
        return fake

    def test_https_enables_ssl(self, fake_chromadb):
        from recipeai.rag.vector_store.chromadb_store import ChromaDBStore
        ChromaDBStore(host="chroma.example.com", port=443, ssl=True)
        fake_chromadb.HttpClient.assert_called_once_with(
            host="chroma.example.com", port=443, ssl=True,
        )

    def test_plain_http_by_default(self, fake_chromadb):
        from recipeai.rag.vector_store.chromadb_store import ChromaDBStore
        ChromaDBStore(host="chroma")
        fake_chromadb.HttpClient.assert_called_once_with(host="chroma", port=8000, ssl=False)

    @pytest.mark.asyncio
    async def test_collection_exists_accepts_names_and_objects(self, fake_chromadb):
        from recipeai.rag.vector_store.chromadb_store import ChromaDBStore
        store = ChromaDBStore()
        client = fake_chromadb.EphemeralClient.return_value
        client.list_collections.return_value = ["ingredients"]
        assert await store.collection_exists("ingredients")
        client.list_collections.return_value = [types.SimpleNamespace(name="ingredients")]
        assert await store.collection_exists("ingredients")
        assert not await store.collection_exists("other")

    @pytest.mark.asyncio
    async def test_collection_exists_surfaces_connection_errors(self, fake_chromadb):
        from recipeai.rag.vector_store.chromadb_store import ChromaDBStore
        store = ChromaDBStore(host="chroma")
        fake_chromadb.HttpClient.return_value.list_collections.side_effect = ConnectionError("refused")
        with pytest.raises(StoreError, match="list_collections"):
            await store.collection_exists("ingredients")
