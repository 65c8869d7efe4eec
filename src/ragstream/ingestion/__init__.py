"""
Ingestion — document loading, chunking, and embedding into the vector store.

A document's text is validated, split into overlapping windows, and each
window is embedded and persisted one at a time.  A failed embedding skips
that window only.
"""

from ragstream.ingestion.chunker import Chunk, iter_chunks, split
from ragstream.ingestion.pacing import FixedIntervalPacer, NoPacing, Pacer, TokenBucketPacer
from ragstream.ingestion.pipeline import ChunkFailure, IngestionPipeline, IngestionReport

__all__ = [
    "Chunk",
    "ChunkFailure",
    "FixedIntervalPacer",
    "IngestionPipeline",
    "IngestionReport",
    "NoPacing",
    "Pacer",
    "TokenBucketPacer",
    "iter_chunks",
    "split",
]
