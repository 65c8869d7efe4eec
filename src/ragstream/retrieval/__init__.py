"""
Retrieval — vector persistence and nearest-neighbour search.

This module wraps the vector database behind a small interface so that
ingestion and chat never need to know which backend is in use.

Public surface
--------------
- :class:`VectorStoreBase` — abstract backend (insert / nearest / session).
- :class:`InMemoryVectorStore` — process-local backend.
- :class:`PgVectorStore` — PostgreSQL + pgvector backend.
- :class:`ChromaVectorStore` — Chroma backend.
- :class:`SemanticRetriever` — embed a query, return ordered passages.
- :class:`Passage`, :class:`RetrievalResult`, :class:`DistanceMetric` — data models.
- :func:`create_vector_store` — settings-driven backend factory.
"""

from ragstream.retrieval.base import VectorStoreBase
from ragstream.retrieval.factory import create_vector_store
from ragstream.retrieval.memory_store import InMemoryVectorStore
from ragstream.retrieval.models import DistanceMetric, EmbeddedChunk, Passage, RetrievalResult
from ragstream.retrieval.retriever import SemanticRetriever

__all__ = [
    "ChromaVectorStore",
    "DistanceMetric",
    "EmbeddedChunk",
    "InMemoryVectorStore",
    "Passage",
    "PgVectorStore",
    "RetrievalResult",
    "SemanticRetriever",
    "VectorStoreBase",
    "create_vector_store",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import the remote backends to avoid pulling in their clients at import time."""
    if name == "ChromaVectorStore":
        from ragstream.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    if name == "PgVectorStore":
        from ragstream.retrieval.pgvector_store import PgVectorStore

        return PgVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
