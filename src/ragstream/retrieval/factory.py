"""Build the configured vector-store backend."""

from __future__ import annotations

from ragstream.config import Settings, settings
from ragstream.retrieval.base import VectorStoreBase


def create_vector_store(config: Settings = settings) -> VectorStoreBase:
    """Instantiate the backend named by ``config.vector_backend``.

    Backends are imported lazily so chromadb / SQLAlchemy are only loaded
    when selected.
    """
    if config.vector_backend == "pgvector":
        from ragstream.retrieval.pgvector_store import PgVectorStore

        return PgVectorStore(
            config.embedding_dim,
            config.distance_metric,
            database_url=config.database_url,
            table_name=config.documents_table,
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
        )

    if config.vector_backend == "chroma":
        from ragstream.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore(
            config.embedding_dim,
            config.distance_metric,
            collection_name=config.chroma_collection,
            host=config.chroma_host,
            port=config.chroma_port,
        )

    from ragstream.retrieval.memory_store import InMemoryVectorStore

    return InMemoryVectorStore(config.embedding_dim, config.distance_metric)
