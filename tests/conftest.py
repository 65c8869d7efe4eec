"""Shared pytest configuration and fixtures.

Every unit test runs without a database, a Chroma server, or any remote
model; see :mod:`fakes` for the stand-ins.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fakes import DIMENSION, KeywordEmbeddings, RecordingPacer, make_llm, segment

from ragstream.chat.orchestrator import ChatOrchestrator
from ragstream.chat.session import SessionManager
from ragstream.embeddings import EmbeddingClient
from ragstream.ingestion.pipeline import IngestionPipeline
from ragstream.retrieval.memory_store import InMemoryVectorStore


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


@pytest.fixture()
def embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings()


@pytest.fixture()
def embedder(embeddings: KeywordEmbeddings) -> EmbeddingClient:
    return EmbeddingClient(embeddings, dimension=DIMENSION)


@pytest.fixture()
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore(DIMENSION)


@pytest.fixture()
def pacer() -> RecordingPacer:
    return RecordingPacer()


@pytest.fixture()
def pipeline(embedder: EmbeddingClient, store: InMemoryVectorStore, pacer: RecordingPacer) -> IngestionPipeline:
    return IngestionPipeline(embedder, store, pacer=pacer, chunk_size=1000, chunk_overlap=100)


@pytest.fixture()
def sessions() -> SessionManager:
    return SessionManager()


@pytest.fixture()
def llm() -> MagicMock:
    return make_llm(fragments=["The answer ", "is ", "beta."])


@pytest.fixture()
def orchestrator(
    embedder: EmbeddingClient,
    store: InMemoryVectorStore,
    sessions: SessionManager,
    llm: MagicMock,
) -> ChatOrchestrator:
    return ChatOrchestrator(embedder, store, sessions, llm, k=3)


@pytest.fixture()
def document() -> str:
    """2400 characters: alpha in [0,1000), beta in [1000,1800), gamma in [1800,2400)."""
    return segment("alpha", 1000) + segment("beta", 800) + segment("gamma", 600)
