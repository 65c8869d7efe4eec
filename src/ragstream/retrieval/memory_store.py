"""Process-local vector store for development and tests."""

from __future__ import annotations

import heapq
import threading

from ragstream.retrieval.base import VectorStoreBase
from ragstream.retrieval.distance import DISTANCE_FUNCTIONS
from ragstream.retrieval.models import DistanceMetric, EmbeddedChunk, Passage


class InMemoryVectorStore(VectorStoreBase):
    """Exact nearest-neighbour search over a list, guarded by a lock.

    Rows are kept in insertion order and never updated, mirroring the
    append-only ``documents`` table.
    """

    def __init__(self, dimension: int, metric: DistanceMetric | str = DistanceMetric.COSINE) -> None:
        super().__init__(dimension, metric)
        self._rows: list[EmbeddedChunk] = []
        self._lock = threading.Lock()
        self._distance = DISTANCE_FUNCTIONS[self.metric]

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def rows(self) -> list[EmbeddedChunk]:
        with self._lock:
            return list(self._rows)

    def _insert(self, text: str, vector: list[float]) -> None:
        with self._lock:
            self._rows.append(EmbeddedChunk(text=text, vector=vector))

    def _nearest(self, vector: list[float], k: int) -> list[Passage]:
        with self._lock:
            rows = list(self._rows)
        scored = ((self._distance(vector, row.vector), i, row.text) for i, row in enumerate(rows))
        return [Passage(text=text, distance=dist) for dist, _, text in heapq.nsmallest(k, scored)]

    def health_check(self) -> bool:
        return True
