"""Tests for the retrieval client."""
import time

import pytest

from emotalk.config import RetrievalConfig
from emotalk.retrieval.client import ChromaRetriever, RetrievedPassage, create_retriever


class MockCollection:
    """Mock chromadb collection for testing."""

    def __init__(self, results=None, error=None, delay_s=0.0):
        self.results = results
        self.error = error
        self.delay_s = delay_s
        self.calls = []

    def query(self, query_texts, n_results):
        self.calls.append((query_texts, n_results))
        if self.delay_s:
            time.sleep(self.delay_s)
        if self.error:
            raise self.error
        return self.results


class MockClient:
    """Mock chromadb client for testing."""

    def __init__(self, collection=None, missing=False):
        self.collection = collection
        self.missing = missing

    def get_collection(self, name):
        if self.missing:
            raise ValueError(f"Collection {name} does not exist.")
        return self.collection


def _results(document="Paris is the capital of France.", source="geo.md", doc_id="doc-1"):
    return {
        "ids": [[doc_id]],
        "documents": [[document]],
        "metadatas": [[{"source": source} if source else {}]],
        "distances": [[0.12]],
    }


class TestChromaRetriever:
    """Test ChromaRetriever.query."""

    @pytest.mark.asyncio
    async def test_returns_top_match(self):
        collection = MockCollection(results=_results())
        retriever = ChromaRetriever("facts", client=MockClient(collection))

        passage = await retriever.query("capital of France?")

        assert passage == RetrievedPassage(text="Paris is the capital of France.", source="geo.md", rank=1)
        assert collection.calls == [(["capital of France?"], 1)]

    @pytest.mark.asyncio
    async def test_source_falls_back_to_id(self):
        collection = MockCollection(results=_results(source=None))
        retriever = ChromaRetriever("facts", client=MockClient(collection))

        passage = await retriever.query("capital?")

        assert passage.source == "doc-1"

    @pytest.mark.asyncio
    async def test_empty_index(self):
        collection = MockCollection(results={"ids": [[]], "documents": [[]], "metadatas": [[]]})
        retriever = ChromaRetriever("facts", client=MockClient(collection))

        assert await retriever.query("anything") is None

    @pytest.mark.asyncio
    async def test_backend_error_degrades(self):
        collection = MockCollection(error=RuntimeError("connection refused"))
        retriever = ChromaRetriever("facts", client=MockClient(collection))

        assert await retriever.query("anything") is None

    @pytest.mark.asyncio
    async def test_missing_collection_degrades(self):
        retriever = ChromaRetriever("facts", client=MockClient(missing=True))

        assert await retriever.query("anything") is None

    @pytest.mark.asyncio
    async def test_timeout_degrades(self):
        collection = MockCollection(results=_results(), delay_s=0.5)
        retriever = ChromaRetriever("facts", client=MockClient(collection), timeout_s=0.05)

        assert await retriever.query("anything") is None

    @pytest.mark.asyncio
    async def test_blank_query_skips_backend(self):
        collection = MockCollection(results=_results())
        retriever = ChromaRetriever("facts", client=MockClient(collection))

        assert await retriever.query("   ") is None
        assert collection.calls == []

    @pytest.mark.asyncio
    async def test_no_caching(self):
        collection = MockCollection(results=_results())
        retriever = ChromaRetriever("facts", client=MockClient(collection))

        await retriever.query("same")
        await retriever.query("same")

        assert len(collection.calls) == 2


class TestCreateRetriever:
    """Test the retriever factory."""

    def test_disabled_without_index(self):
        assert create_retriever(RetrievalConfig()) is None
        assert create_retriever(None) is None

    def test_enabled_with_index(self):
        retriever = create_retriever(RetrievalConfig(index_name="docs", timeout_s=2.0))

        assert isinstance(retriever, ChromaRetriever)
        assert retriever.index_name == "docs"
        assert retriever.timeout_s == 2.0
