"""Semantic retriever — embed a question and fetch its nearest passages.

Usage::

    from ragstream.retrieval.retriever import SemanticRetriever

    retriever = SemanticRetriever(embedder, store, k=3)
    result = retriever.retrieve("What does RAG stand for?")
    print(result.as_context())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ragstream.retrieval.models import RetrievalResult

if TYPE_CHECKING:
    from ragstream.embeddings import EmbeddingClient
    from ragstream.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

DEFAULT_K = 3


class SemanticRetriever:
    """Compose an :class:`~ragstream.embeddings.EmbeddingClient` with a store.

    Errors from either side propagate unchanged
    (:class:`~ragstream.errors.EmbeddingError`,
    :class:`~ragstream.errors.StorageError`); deciding what they mean for
    a request is the caller's job.
    """

    def __init__(self, embedder: EmbeddingClient, store: VectorStoreBase, *, k: int = DEFAULT_K) -> None:
        self._embedder = embedder
        self._store = store
        self.k = k

    def retrieve(self, query: str, *, k: int | None = None) -> RetrievalResult:
        vector = self._embedder.embed(query)
        return self.retrieve_by_embedding(vector, k=k)

    def retrieve_by_embedding(self, vector: list[float], *, k: int | None = None) -> RetrievalResult:
        k = self.k if k is None else k
        passages = self._store.nearest(vector, k)
        logger.debug("Retrieved %d passage(s) (k=%d)", len(passages), k)
        return RetrievalResult(passages=passages)
