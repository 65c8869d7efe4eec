"""Service wiring for the API, built once per process from settings.

Routes receive a :class:`Services` bundle through ``Depends(get_services)``;
tests swap it out with ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from ragstream.chat.llm import get_llm
from ragstream.chat.orchestrator import ChatOrchestrator
from ragstream.chat.session import SessionManager
from ragstream.config import Settings, settings
from ragstream.embeddings import EmbeddingClient
from ragstream.ingestion.pipeline import IngestionPipeline
from ragstream.retrieval.base import VectorStoreBase
from ragstream.retrieval.factory import create_vector_store

logger = logging.getLogger(__name__)


@dataclass
class Services:
    store: VectorStoreBase
    sessions: SessionManager
    pipeline: IngestionPipeline
    orchestrator: ChatOrchestrator


def build_services(config: Settings = settings) -> Services:
    """Construct every collaborator from *config*.

    The embedding client and vector store are shared by ingestion and chat
    so both paths use the same dimension and distance metric.
    """
    embedder = EmbeddingClient.from_settings(config)
    store = create_vector_store(config)
    sessions = SessionManager(max_sessions=config.session_max_count, idle_ttl=config.session_idle_ttl)
    pipeline = IngestionPipeline.from_settings(embedder, store, config)
    orchestrator = ChatOrchestrator(
        embedder,
        store,
        sessions,
        get_llm(config),
        k=config.retrieval_k,
        default_session_id=config.default_session_id,
    )
    logger.info(
        "Services ready (backend=%s, metric=%s, dim=%d)",
        config.vector_backend,
        config.distance_metric,
        config.embedding_dim,
    )
    return Services(store=store, sessions=sessions, pipeline=pipeline, orchestrator=orchestrator)


@lru_cache(maxsize=1)
def get_services() -> Services:
    return build_services(settings)
