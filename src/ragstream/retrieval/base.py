"""Abstract base class for vector-store backends.

Adding a new backend only requires subclassing :class:`VectorStoreBase`
and implementing :meth:`~VectorStoreBase._insert`,
:meth:`~VectorStoreBase._nearest` and :meth:`~VectorStoreBase.health_check`.
Dimension checks and ordering guarantees live here so every backend
enforces them the same way.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from ragstream.errors import DimensionMismatchError
from ragstream.retrieval.models import DistanceMetric, Passage


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    dimension:
        Fixed vector length for every row in the store.
    metric:
        Distance function shared by the insert and query paths.
    """

    def __init__(self, dimension: int, metric: DistanceMetric | str = DistanceMetric.COSINE) -> None:
        self.dimension = dimension
        self.metric = DistanceMetric(metric)

    # -- public contract ------------------------------------------------------

    def insert(self, text: str, vector: Sequence[float]) -> None:
        """Persist one ``(text, vector)`` pair.

        Raises :class:`~ragstream.errors.DimensionMismatchError` before
        touching the backend when *vector* has the wrong length, and
        :class:`~ragstream.errors.StorageError` when the backend fails.
        """
        self._check_dimension(vector)
        self._insert(text, list(vector))

    def nearest(self, vector: Sequence[float], k: int = 3) -> list[Passage]:
        """Return at most *k* passages ordered by ascending distance."""
        self._check_dimension(vector)
        if k <= 0:
            return []
        hits = self._nearest(list(vector), k)
        return sorted(hits, key=lambda p: p.distance)[:k]

    @contextmanager
    def session(self) -> Iterator[VectorStoreBase]:
        """Scope a sequence of calls to one backend connection.

        The default implementation needs no connection and yields the store
        itself; pooled backends override this to check out a connection and
        return it on every exit path.
        """
        yield self

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def _insert(self, text: str, vector: list[float]) -> None: ...

    @abstractmethod
    def _nearest(self, vector: list[float], k: int) -> list[Passage]: ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

    # -- helpers --------------------------------------------------------------

    def _check_dimension(self, vector: Sequence[float]) -> None:
        if len(vector) != self.dimension:
            raise DimensionMismatchError(self.dimension, len(vector))
