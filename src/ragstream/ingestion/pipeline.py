"""Ingestion pipeline — chunk, embed and persist one document.

Embedding is fail-soft per chunk: a chunk whose embedding call fails is
logged, recorded in the report and skipped, and the rest of the document
is still ingested.  Storage and configuration errors are not per-chunk
problems and abort the run.

Chunks are processed strictly one after another; the pacer between
embedding calls is what keeps a large document under the remote
service's rate limit.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from ragstream.config import Settings, settings
from ragstream.errors import EmbeddingError, IngestionError
from ragstream.ingestion.chunker import MIN_CHUNK_LENGTH, iter_chunks
from ragstream.ingestion.pacing import FixedIntervalPacer, Pacer

if TYPE_CHECKING:
    from ragstream.embeddings import EmbeddingClient
    from ragstream.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

MIN_DOCUMENT_LENGTH = 50
DEFAULT_EMBED_INTERVAL = 0.5


class ChunkFailure(BaseModel):
    """A chunk that was skipped because its embedding failed."""

    index: int
    source_offset: int
    reason: str


class IngestionReport(BaseModel):
    """Outcome of one :meth:`IngestionPipeline.ingest` call.

    ``chunks_saved == 0`` with failures means every embedding call failed;
    that is still a report, not an exception.
    """

    chunks_total: int = 0
    chunks_saved: int = 0
    failures: list[ChunkFailure] = []

    @property
    def chunks_failed(self) -> int:
        return len(self.failures)

    def to_response(self) -> dict[str, int]:
        return {
            "chunksSaved": self.chunks_saved,
            "chunksTotal": self.chunks_total,
            "failedChunks": self.chunks_failed,
        }


class IngestionPipeline:
    """Chunker + EmbeddingClient + VectorStore with pacing.

    Parameters
    ----------
    embedder:
        Embedding client; its :class:`~ragstream.errors.EmbeddingError` is
        the only failure that is skipped.
    store:
        Destination vector store.
    pacer:
        Throttle applied before every embedding call.  Defaults to a
        :class:`FixedIntervalPacer` of :data:`DEFAULT_EMBED_INTERVAL` seconds.
    chunk_size / chunk_overlap / min_chunk_length:
        Chunker parameters.
    min_document_length:
        Texts shorter than this are rejected before any remote call.
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        *,
        pacer: Pacer | None = None,
        chunk_size: int = 1000,
        chunk_overlap: int = 100,
        min_chunk_length: int = MIN_CHUNK_LENGTH,
        min_document_length: int = MIN_DOCUMENT_LENGTH,
    ) -> None:
        if not chunk_size > chunk_overlap >= 0:
            raise ValueError("chunk_size must be greater than chunk_overlap, and overlap >= 0")
        self._embedder = embedder
        self._store = store
        self._pacer = pacer if pacer is not None else FixedIntervalPacer(DEFAULT_EMBED_INTERVAL)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.min_chunk_length = min_chunk_length
        self.min_document_length = min_document_length

    @classmethod
    def from_settings(
        cls,
        embedder: EmbeddingClient,
        store: VectorStoreBase,
        config: Settings = settings,
    ) -> IngestionPipeline:
        return cls(
            embedder,
            store,
            pacer=FixedIntervalPacer(config.embed_interval_seconds),
            chunk_size=config.chunk_size,
            chunk_overlap=config.chunk_overlap,
            min_chunk_length=config.min_chunk_length,
            min_document_length=config.min_document_length,
        )

    def validate(self, document_text: str | None) -> str:
        """Return the stripped text or raise :class:`IngestionError`."""
        text = (document_text or "").strip()
        if len(text) < self.min_document_length:
            raise IngestionError(
                f"Document text is too short to ingest ({len(text)} < {self.min_document_length} "
                "characters); the source may be image-only or corrupt."
            )
        return text

    def ingest(self, document_text: str | None) -> IngestionReport:
        """Ingest one document and report how many chunks were persisted."""
        text = self.validate(document_text)
        report = IngestionReport()

        with self._store.session() as store:
            chunks = iter_chunks(
                text,
                self.chunk_size,
                self.chunk_overlap,
                min_length=self.min_chunk_length,
            )
            for index, chunk in enumerate(chunks):
                report.chunks_total += 1
                self._pacer.wait()
                try:
                    vector = self._embedder.embed(chunk.text)
                except EmbeddingError as exc:
                    logger.warning(
                        "Skipping chunk %d (offset %d): %s",
                        index + 1,
                        chunk.source_offset,
                        exc,
                    )
                    report.failures.append(
                        ChunkFailure(index=index, source_offset=chunk.source_offset, reason=str(exc))
                    )
                    continue
                store.insert(chunk.text, vector)
                report.chunks_saved += 1

        logger.info(
            "Ingested document: %d/%d chunk(s) saved, %d skipped",
            report.chunks_saved,
            report.chunks_total,
            report.chunks_failed,
        )
        return report
