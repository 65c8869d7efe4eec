"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from uuid import uuid4

import chromadb

from ragstream.config import settings
from ragstream.errors import StorageError
from ragstream.retrieval.base import VectorStoreBase
from ragstream.retrieval.models import DistanceMetric, Passage

logger = logging.getLogger(__name__)

# Chroma's HNSW space names for each metric.
_SPACE_MAP = {
    DistanceMetric.COSINE: "cosine",
    DistanceMetric.L2: "l2",
    DistanceMetric.INNER_PRODUCT: "ip",
}


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    dimension:
        Fixed embedding dimension.
    metric:
        Distance metric; fixed when the collection is first created.
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built Chroma client (tests pass an ``EphemeralClient``).
    """

    def __init__(
        self,
        dimension: int = settings.embedding_dim,
        metric: DistanceMetric | str = settings.distance_metric,
        *,
        collection_name: str = settings.chroma_collection,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        client: chromadb.ClientAPI | None = None,
    ) -> None:
        super().__init__(dimension, metric)
        self.collection_name = collection_name
        self._client = client or chromadb.HttpClient(host=host, port=port)
        self._collection = self._client.get_or_create_collection(
            collection_name,
            metadata={"hnsw:space": _SPACE_MAP[self.metric]},
        )

    # -- VectorStoreBase overrides --------------------------------------------

    def _insert(self, text: str, vector: list[float]) -> None:
        try:
            self._collection.add(ids=[uuid4().hex], documents=[text], embeddings=[vector])
        except Exception as exc:
            raise StorageError(f"Chroma insert failed: {exc}") from exc

    def _nearest(self, vector: list[float], k: int) -> list[Passage]:
        try:
            results = self._collection.query(
                query_embeddings=[vector],
                n_results=k,
                include=["documents", "distances"],
            )
        except Exception as exc:
            raise StorageError(f"Chroma query failed: {exc}") from exc

        docs = (results.get("documents") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]
        return [
            Passage(text=content or "", distance=float(dist))
            for content, dist in zip(docs, distances)
        ]

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
